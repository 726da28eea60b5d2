"""Exception hierarchy for the recap pipeline.

Each stage raises the specific kind where the problem is detected. The
dispatch boundary logs that kind and re-raises :class:`DispatchFailed`, so
callers only ever see the generic failure.
"""

from __future__ import annotations

from typing import Any


class RecapError(Exception):
    """Base class for every error raised by recapbot."""

    kind = "RecapError"


class InvalidInput(RecapError):
    """Payload or setting could not be understood (e.g. an unparsable timeframe)."""

    kind = "InvalidInput"


class ChannelUnavailable(RecapError):
    """A source or destination channel could not be resolved or used."""

    kind = "ChannelUnavailable"

    def __init__(self, channel_id: int | str, reason: str = "not found or not accessible") -> None:
        self.channel_id = channel_id
        self.reason = reason
        super().__init__(f"Channel {channel_id} is unavailable: {reason}")


class NoSummaryGenerated(RecapError):
    """The language model returned an empty completion."""

    kind = "NoSummaryGenerated"


class ExtractionFailed(RecapError):
    """A required tag-delimited region was missing from a model response."""

    kind = "ExtractionFailed"

    def __init__(self, open_tag: str, close_tag: str) -> None:
        self.open_tag = open_tag
        self.close_tag = close_tag
        super().__init__(f"Response did not contain a {open_tag}...{close_tag} region")


class OutputTooLarge(RecapError):
    """The summary does not fit into a single chat message."""

    kind = "OutputTooLarge"

    def __init__(self, length: int, limit: int) -> None:
        self.length = length
        self.limit = limit
        super().__init__(f"Summary is too long ({length} characters, limit {limit}).")


class DispatchFailed(RecapError):
    """Generic failure surfaced to whoever invoked the dispatch.

    ``report`` carries the per-pair results when pairs were processed
    independently; it is ``None`` when the batch was aborted.
    """

    kind = "DispatchFailed"

    def __init__(self, message: str, report: Any = None) -> None:
        self.report = report
        super().__init__(message)
