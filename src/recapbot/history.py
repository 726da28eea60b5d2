"""Retrieve a channel's recent messages as a chronological transcript."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone
from typing import Optional

from .errors import InvalidInput
from .settings import PAGE_SIZE, FetchMode
from .sources import MessageSource, RawMessage

_LOG = logging.getLogger(__name__)

EMPTY_TRANSCRIPT = "**No messages to summarize.**"


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class Transcript:
    """Messages from one channel, oldest first."""

    def __init__(self, messages: Iterable[RawMessage] = ()) -> None:
        self.messages: list[RawMessage] = sorted(messages, key=lambda m: m.created_at)

    def __len__(self) -> int:
        return len(self.messages)

    @property
    def is_empty(self) -> bool:
        return not self.messages

    def render(self) -> str:
        if not self.messages:
            return EMPTY_TRANSCRIPT
        return "\n".join(f"{m.author_name}: {m.body}" for m in self.messages)

    def __str__(self) -> str:
        return self.render()


class ChannelHistoryFetcher:
    """Collects every message newer than ``now - lookback`` from a source.

    In ``PAGINATE`` mode history is walked backwards one page at a time and
    the walk stops as soon as a page reaches past the cutoff (or history runs
    out). ``SINGLE`` mode issues one request of ``single_limit`` messages and
    never asks for more, so busy channels may be truncated.
    """

    def __init__(
        self,
        mode: FetchMode = FetchMode.PAGINATE,
        *,
        page_size: int = PAGE_SIZE,
        single_limit: int = PAGE_SIZE,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.mode = FetchMode(mode)
        self.page_size = page_size
        self.single_limit = single_limit
        self.clock = clock

    async def fetch(self, source: MessageSource, lookback: timedelta) -> Transcript:
        if lookback <= timedelta(0):
            raise InvalidInput(f"Lookback must be positive, got {lookback}")

        cutoff = self.clock() - lookback
        _LOG.info(
            "Fetching channel %s since %s (mode=%s)",
            source.channel_id,
            cutoff.isoformat(),
            self.mode.value,
        )

        if self.mode is FetchMode.SINGLE:
            page = await source.fetch_history_page(None, self.single_limit)
            collected = [m for m in page if m.created_at >= cutoff]
            _LOG.info("Fetched %d messages, %d within window", len(page), len(collected))
        else:
            collected = await self._paginate(source, cutoff)

        transcript = Transcript(collected)
        _LOG.info("Transcript for channel %s has %d messages", source.channel_id, len(transcript))
        return transcript

    async def _paginate(self, source: MessageSource, cutoff: datetime) -> list[RawMessage]:
        collected: list[RawMessage] = []
        before: Optional[int] = None
        pages = 0

        while True:
            page = list(await source.fetch_history_page(before, self.page_size))
            pages += 1
            if not page:
                break

            collected.extend(m for m in page if m.created_at >= cutoff)
            _LOG.debug("Page %d: %d messages, %d collected so far", pages, len(page), len(collected))

            oldest = min(page, key=lambda m: (m.created_at, m.id))
            if oldest.created_at < cutoff:
                break
            before = oldest.id

        _LOG.info("Fetched %d page(s), %d messages within window", pages, len(collected))
        return collected
