"""Parse human-readable lookback windows such as ``"1 day"`` or ``"3h30m"``."""

from __future__ import annotations

import re
from datetime import timedelta

from .errors import InvalidInput

DEFAULT_TIMEFRAME = "1 day"

_UNIT_SECONDS: dict[str, float] = {
    "ms": 0.001,
    "millisecond": 0.001,
    "milliseconds": 0.001,
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hr": 3600,
    "hrs": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
    "w": 604800,
    "wk": 604800,
    "week": 604800,
    "weeks": 604800,
}

_TERM = re.compile(r"(\d+(?:\.\d+)?)\s*([a-z]+)")


def parse_duration(text: str) -> timedelta | None:
    """Return the duration described by *text*, or ``None`` if it is unparsable.

    Accepts one or more ``<number> <unit>`` terms, optionally separated by
    whitespace, commas or ``and`` (``"1 day 2 hours"``, ``"1h, 30m"``).
    """
    cleaned = text.strip().lower()
    if not cleaned:
        return None

    total = 0.0
    pos = 0
    for match in _TERM.finditer(cleaned):
        gap = cleaned[pos:match.start()]
        if gap.strip(" ,") not in ("", "and"):
            return None
        unit = _UNIT_SECONDS.get(match.group(2))
        if unit is None:
            return None
        total += float(match.group(1)) * unit
        pos = match.end()

    if pos == 0 or cleaned[pos:].strip(" ,"):
        return None
    return timedelta(seconds=total)


def parse_lookback(timeframe: str | int | float | None) -> timedelta:
    """Turn a payload ``timeframe`` into a positive :class:`timedelta`.

    Strings are human-readable durations. Plain numbers (and numeric strings)
    count days, matching the simple payload format. ``None`` means
    :data:`DEFAULT_TIMEFRAME`.

    Raises:
        InvalidInput: if the value does not parse or is not positive.
    """
    if timeframe is None:
        timeframe = DEFAULT_TIMEFRAME

    if isinstance(timeframe, bool):
        raise InvalidInput(f"Invalid timeframe: {timeframe!r}")
    if isinstance(timeframe, (int, float)):
        lookback: timedelta | None = timedelta(days=timeframe)
    elif isinstance(timeframe, str):
        stripped = timeframe.strip()
        if re.fullmatch(r"\d+(?:\.\d+)?", stripped):
            lookback = timedelta(days=float(stripped))
        else:
            lookback = parse_duration(stripped)
    else:
        raise InvalidInput(f"Invalid timeframe: {timeframe!r}")

    if not lookback or lookback <= timedelta(0):
        raise InvalidInput(f"Invalid timeframe: {timeframe!r}")
    return lookback
