"""Pull the user-facing text out of tagged model responses."""

from __future__ import annotations

import re

from ..errors import ExtractionFailed

_ANALYSIS_RE = re.compile(r"<analysis>.*?</analysis>", re.IGNORECASE | re.DOTALL)
_BLANK_LINES_RE = re.compile(r"\n(?:[ \t]*\n)+")


def strip_analysis(text: str) -> str:
    """Remove the first ``<analysis>...</analysis>`` region and trim.

    A response without the region is returned trimmed but otherwise intact.
    """
    return _ANALYSIS_RE.sub("", text, count=1).strip()


def extract(text: str, open_tag: str, close_tag: str) -> str:
    """Return the trimmed text between the first *open_tag* / *close_tag* pair.

    Tag matching is case-insensitive.

    Raises:
        ExtractionFailed: if no complete region is present.
    """
    pattern = re.compile(
        re.escape(open_tag) + r"(.*?)" + re.escape(close_tag),
        re.IGNORECASE | re.DOTALL,
    )
    match = pattern.search(text)
    if match is None:
        raise ExtractionFailed(open_tag, close_tag)
    return match.group(1).strip()


def normalize(text: str) -> str:
    """Trim and collapse blank-line runs to a single newline."""
    return _BLANK_LINES_RE.sub("\n", text.strip())
