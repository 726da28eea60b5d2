"""Channel access behind a small capability interface.

The fetcher and dispatcher only ever talk to a :class:`MessageSource`, so the
core logic never depends on concrete discord.py channel types.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional, Protocol

import discord

from .errors import ChannelUnavailable

if TYPE_CHECKING:
    from collections.abc import Sequence

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawMessage:
    """A chat message exactly as fetched from the platform."""

    id: int
    author_name: str
    body: str
    created_at: datetime


class MessageSource(Protocol):
    """What the pipeline needs from a chat channel."""

    channel_id: int

    async def fetch_history_page(self, before: Optional[int], limit: int) -> Sequence[RawMessage]:
        """Return up to *limit* messages older than *before*, newest first."""
        ...

    async def post_message(self, text: str) -> None:
        """Send *text* to the channel."""
        ...

    @property
    def preferred_locale(self) -> Optional[str]:
        """Locale configured for the channel's server, if any."""
        ...


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_raw_message(message: discord.Message) -> RawMessage:
    """Convert a discord.py message into a :class:`RawMessage`."""
    return RawMessage(
        id=message.id,
        author_name=message.author.name,
        body=message.content or "",
        created_at=_as_utc(message.created_at),
    )


class DiscordMessageSource:
    """:class:`MessageSource` backed by a discord.py text channel."""

    def __init__(self, channel: discord.abc.Messageable) -> None:
        self._channel = channel
        self.channel_id: int = getattr(channel, "id", 0)

    async def fetch_history_page(self, before: Optional[int], limit: int) -> list[RawMessage]:
        cursor = discord.Object(id=before) if before is not None else None
        try:
            return [
                to_raw_message(msg)
                async for msg in self._channel.history(limit=limit, before=cursor)
            ]
        except (discord.NotFound, discord.Forbidden) as exc:
            raise ChannelUnavailable(self.channel_id, str(exc)) from exc

    async def post_message(self, text: str) -> None:
        try:
            await self._channel.send(text)
        except (discord.NotFound, discord.Forbidden) as exc:
            raise ChannelUnavailable(self.channel_id, str(exc)) from exc
        _LOG.info("Posted %d characters to channel %s", len(text), self.channel_id)

    @property
    def preferred_locale(self) -> Optional[str]:
        guild = getattr(self._channel, "guild", None)
        locale = getattr(guild, "preferred_locale", None)
        if locale is None:
            return None
        # discord.Locale is an enum whose value is the locale code.
        return getattr(locale, "value", None) or str(locale)
