"""Discord session lifecycle and channel resolution."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Optional

import discord

from .errors import ChannelUnavailable
from .sources import DiscordMessageSource

_LOG = logging.getLogger(__name__)


def default_intents() -> discord.Intents:
    intents = discord.Intents.default()
    intents.guilds = True
    intents.guild_messages = True
    intents.message_content = True
    return intents


class SessionHandle:
    """Owns the Discord client and a one-shot "ready" future.

    :meth:`await_ready` may be awaited any number of times from any number of
    coroutines; every waiter resumes once the client reports ready, or raises
    the error that stopped the client from getting there.
    """

    def __init__(self, client: Optional[discord.Client] = None) -> None:
        self.client = client if client is not None else discord.Client(intents=default_intents())
        self._ready: Optional[asyncio.Future[None]] = None
        self._runner: Optional[asyncio.Task[None]] = None
        self.client.event(self.on_ready)

    # ---------------------------------------------------------------- readiness

    def _ready_future(self) -> asyncio.Future[None]:
        if self._ready is None:
            self._ready = asyncio.get_running_loop().create_future()
        return self._ready

    @property
    def is_ready(self) -> bool:
        return self._ready is not None and self._ready.done() and self._ready.exception() is None

    async def on_ready(self) -> None:
        fut = self._ready_future()
        if fut.done():
            # Gateway reconnects fire on_ready again; the first one wins.
            return
        _LOG.info("Logged in as %s", self.client.user)
        fut.set_result(None)

    def fail(self, exc: BaseException) -> None:
        """Resolve the ready future with *exc* unless it already resolved."""
        fut = self._ready_future()
        if not fut.done():
            _LOG.error("Discord session failed before ready: %s", exc)
            fut.set_exception(exc)

    async def await_ready(self) -> None:
        await asyncio.shield(self._ready_future())

    # ---------------------------------------------------------------- lifecycle

    async def start(self, token: str) -> None:
        """Log in and keep the gateway connection running in the background."""
        self._ready_future()
        try:
            await self.client.login(token)
        except discord.LoginFailure as exc:
            self.fail(exc)
            raise
        self._runner = asyncio.create_task(self.client.connect(), name="discord-connect")
        self._runner.add_done_callback(self._on_runner_done)

    def _on_runner_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            if self._ready is not None and not self._ready.done():
                self._ready.cancel()
            return
        exc = task.exception()
        if exc is not None:
            self.fail(exc)
        else:
            self.fail(ConnectionError("Discord connection closed before becoming ready"))

    async def close(self) -> None:
        await self.client.close()
        if self._runner is not None:
            self._runner.cancel()
            with suppress(asyncio.CancelledError, Exception):
                await self._runner
        # Anyone still waiting on readiness must not hang forever.
        if self._ready is not None and not self._ready.done():
            self._ready.cancel()

    # ---------------------------------------------------------------- channels

    async def resolve(self, channel_id: int | str) -> DiscordMessageSource:
        """Return a message source for *channel_id*, waiting for readiness first.

        Raises:
            ChannelUnavailable: if the id is malformed, unknown, inaccessible,
                or not a text channel.
        """
        await self.await_ready()

        try:
            cid = int(channel_id)
        except (TypeError, ValueError):
            raise ChannelUnavailable(channel_id, "not a valid channel id") from None

        channel = self.client.get_channel(cid)
        if channel is None:
            try:
                channel = await self.client.fetch_channel(cid)
            except (discord.NotFound, discord.Forbidden, discord.HTTPException) as exc:
                raise ChannelUnavailable(cid, str(exc)) from exc

        if not isinstance(channel, discord.abc.Messageable):
            raise ChannelUnavailable(cid, f"{type(channel).__name__} is not a text channel")
        return DiscordMessageSource(channel)
