"""Scheduled Discord channel recaps written by a language model."""

from .dispatch import DispatchController, DispatchPair, DispatchReport, DispatchRequest
from .errors import (
    ChannelUnavailable,
    DispatchFailed,
    ExtractionFailed,
    InvalidInput,
    NoSummaryGenerated,
    OutputTooLarge,
    RecapError,
)
from .history import ChannelHistoryFetcher, Transcript
from .session import SessionHandle

__all__ = [
    "DispatchController",
    "DispatchPair",
    "DispatchReport",
    "DispatchRequest",
    "ChannelUnavailable",
    "DispatchFailed",
    "ExtractionFailed",
    "InvalidInput",
    "NoSummaryGenerated",
    "OutputTooLarge",
    "RecapError",
    "ChannelHistoryFetcher",
    "Transcript",
    "SessionHandle",
]
