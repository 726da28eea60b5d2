"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytest

from recapbot.errors import ChannelUnavailable
from recapbot.sources import RawMessage

NOW = datetime(2025, 1, 7, 12, 0, 0, tzinfo=timezone.utc)


def make_message(msg_id: int, minutes_ago: float, author: str = "alice", body: str | None = None) -> RawMessage:
    """Build a message *minutes_ago* minutes before :data:`NOW`."""
    return RawMessage(
        id=msg_id,
        author_name=author,
        body=body if body is not None else f"message {msg_id}",
        created_at=NOW - timedelta(minutes=minutes_ago),
    )


class FakeSource:
    """In-memory MessageSource that pages like Discord (newest first)."""

    def __init__(
        self,
        channel_id: int,
        messages: list[RawMessage] | None = None,
        *,
        locale: Optional[str] = None,
        fail_fetch: bool = False,
    ):
        self.channel_id = channel_id
        self.messages = list(messages or [])
        self.locale = locale
        self.fail_fetch = fail_fetch
        self.page_requests: list[tuple[Optional[int], int]] = []
        self.sent: list[str] = []

    async def fetch_history_page(self, before, limit):
        self.page_requests.append((before, limit))
        if self.fail_fetch:
            raise ChannelUnavailable(self.channel_id, "missing access")
        newest_first = sorted(self.messages, key=lambda m: m.id, reverse=True)
        if before is not None:
            newest_first = [m for m in newest_first if m.id < before]
        return newest_first[:limit]

    async def post_message(self, text: str) -> None:
        self.sent.append(text)

    @property
    def preferred_locale(self):
        return self.locale


class FakeResolver:
    """Maps channel ids to FakeSources; unknown ids are unavailable."""

    def __init__(self, *sources: FakeSource):
        self.sources = {str(s.channel_id): s for s in sources}
        self.resolved: list[str] = []

    async def resolve(self, channel_id):
        self.resolved.append(str(channel_id))
        try:
            return self.sources[str(channel_id)]
        except KeyError:
            raise ChannelUnavailable(channel_id) from None


class DummyLLM:
    """LLM stub that replays canned responses and records every call."""

    def __init__(self, *responses: str | Callable[[str], str]):
        self.responses = list(responses)
        self.calls: list[dict] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def last_prompt(self) -> Optional[str]:
        return self.calls[-1]["prompt"] if self.calls else None

    async def generate(self, prompt, *, temperature=1.0, max_tokens=None):
        self.calls.append({"prompt": prompt, "temperature": temperature, "max_tokens": max_tokens})
        if not self.responses:
            return ""
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        return response(prompt) if callable(response) else response


@pytest.fixture
def clock():
    """Fixed clock returning :data:`NOW`."""
    return lambda: NOW


@pytest.fixture
def dummy_llm():
    return DummyLLM("<analysis>scratch</analysis>\n1. **Topic**\n   - point")


@pytest.fixture
def channel_a():
    """Channel with three messages inside a two hour window and two outside."""
    return FakeSource(
        111,
        [
            make_message(1, 60 * 5, "carol", "old news"),
            make_message(2, 60 * 3, "dave", "still too old"),
            make_message(3, 90, "alice", "first"),
            make_message(4, 45, "bob", "second"),
            make_message(5, 5, "alice", "third"),
        ],
    )
