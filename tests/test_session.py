"""Tests for the Discord session readiness gate and channel resolution."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from recapbot.errors import ChannelUnavailable
from recapbot.session import SessionHandle
from recapbot.sources import DiscordMessageSource


@pytest.fixture
def mock_client():
    """Create a mock Discord client."""
    client = MagicMock()
    client.user = MagicMock()
    client.user.name = "RecapBot"
    client.login = AsyncMock()
    client.close = AsyncMock()
    client.fetch_channel = AsyncMock()
    client.get_channel = MagicMock(return_value=None)
    return client


def _not_found() -> discord.NotFound:
    response = MagicMock()
    response.status = 404
    response.reason = "Not Found"
    return discord.NotFound(response, "Unknown Channel")


class TestReadiness:
    @pytest.mark.asyncio
    async def test_registers_ready_listener(self, mock_client):
        handle = SessionHandle(mock_client)
        mock_client.event.assert_called_once_with(handle.on_ready)

    @pytest.mark.asyncio
    async def test_concurrent_waiters_resume_once_ready(self, mock_client):
        handle = SessionHandle(mock_client)
        waiters = [asyncio.create_task(handle.await_ready()) for _ in range(3)]
        await asyncio.sleep(0)
        assert not any(w.done() for w in waiters)
        assert not handle.is_ready

        await handle.on_ready()
        await asyncio.gather(*waiters)

        assert handle.is_ready
        # Later calls return immediately.
        await asyncio.wait_for(handle.await_ready(), timeout=1)

    @pytest.mark.asyncio
    async def test_repeated_ready_events_are_ignored(self, mock_client):
        handle = SessionHandle(mock_client)
        await handle.on_ready()
        await handle.on_ready()
        assert handle.is_ready

    @pytest.mark.asyncio
    async def test_failure_is_raised_to_every_waiter(self, mock_client):
        handle = SessionHandle(mock_client)
        waiter = asyncio.create_task(handle.await_ready())
        await asyncio.sleep(0)

        handle.fail(RuntimeError("gateway down"))

        with pytest.raises(RuntimeError, match="gateway down"):
            await waiter
        with pytest.raises(RuntimeError, match="gateway down"):
            await handle.await_ready()
        assert not handle.is_ready

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_others(self, mock_client):
        handle = SessionHandle(mock_client)
        first = asyncio.create_task(handle.await_ready())
        second = asyncio.create_task(handle.await_ready())
        await asyncio.sleep(0)

        first.cancel()
        await handle.on_ready()
        await second

        assert first.cancelled()
        assert handle.is_ready


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_connect_error_fails_readiness(self, mock_client):
        mock_client.connect = AsyncMock(side_effect=RuntimeError("boom"))
        handle = SessionHandle(mock_client)

        await handle.start("token")

        mock_client.login.assert_awaited_once_with("token")
        with pytest.raises(RuntimeError, match="boom"):
            await handle.await_ready()

    @pytest.mark.asyncio
    async def test_login_failure_propagates(self, mock_client):
        mock_client.login = AsyncMock(side_effect=discord.LoginFailure("bad token"))
        handle = SessionHandle(mock_client)

        with pytest.raises(discord.LoginFailure):
            await handle.start("token")
        with pytest.raises(discord.LoginFailure):
            await handle.await_ready()

    @pytest.mark.asyncio
    async def test_close_closes_client(self, mock_client):
        never = asyncio.Event()

        async def _connect():
            await never.wait()

        mock_client.connect = _connect
        handle = SessionHandle(mock_client)
        await handle.start("token")
        await handle.on_ready()

        await handle.close()

        mock_client.close.assert_awaited_once()


class TestResolve:
    @pytest.mark.asyncio
    async def test_cached_text_channel(self, mock_client):
        channel = MagicMock(spec=discord.TextChannel)
        channel.id = 42
        mock_client.get_channel.return_value = channel
        handle = SessionHandle(mock_client)
        await handle.on_ready()

        source = await handle.resolve("42")

        assert isinstance(source, DiscordMessageSource)
        assert source.channel_id == 42
        mock_client.get_channel.assert_called_once_with(42)
        mock_client.fetch_channel.assert_not_called()

    @pytest.mark.asyncio
    async def test_falls_back_to_fetch(self, mock_client):
        channel = MagicMock(spec=discord.TextChannel)
        channel.id = 7
        mock_client.fetch_channel.return_value = channel
        handle = SessionHandle(mock_client)
        await handle.on_ready()

        source = await handle.resolve(7)

        assert source.channel_id == 7
        mock_client.fetch_channel.assert_awaited_once_with(7)

    @pytest.mark.asyncio
    async def test_unknown_channel(self, mock_client):
        mock_client.fetch_channel.side_effect = _not_found()
        handle = SessionHandle(mock_client)
        await handle.on_ready()

        with pytest.raises(ChannelUnavailable) as excinfo:
            await handle.resolve(404)
        assert excinfo.value.channel_id == 404

    @pytest.mark.asyncio
    async def test_malformed_id(self, mock_client):
        handle = SessionHandle(mock_client)
        await handle.on_ready()

        with pytest.raises(ChannelUnavailable):
            await handle.resolve("general")

    @pytest.mark.asyncio
    async def test_non_text_channel(self, mock_client):
        mock_client.get_channel.return_value = MagicMock(spec=discord.CategoryChannel)
        handle = SessionHandle(mock_client)
        await handle.on_ready()

        with pytest.raises(ChannelUnavailable, match="not a text channel"):
            await handle.resolve(5)

    @pytest.mark.asyncio
    async def test_waits_for_readiness(self, mock_client):
        channel = MagicMock(spec=discord.TextChannel)
        channel.id = 1
        mock_client.get_channel.return_value = channel
        handle = SessionHandle(mock_client)

        pending = asyncio.create_task(handle.resolve(1))
        await asyncio.sleep(0)
        assert not pending.done()
        mock_client.get_channel.assert_not_called()

        await handle.on_ready()
        source = await pending
        assert source.channel_id == 1
