"""Prompt pipeline: summary generation, formatting and response extraction."""

from .extraction import extract, normalize, strip_analysis
from .prompts import NOTHING_NOTABLE, SummaryContext, SummaryPolicy
from .summarizer import LLMProtocol, SummaryFormatter, SummaryGenerator

__all__ = [
    "extract",
    "normalize",
    "strip_analysis",
    "NOTHING_NOTABLE",
    "SummaryContext",
    "SummaryPolicy",
    "LLMProtocol",
    "SummaryFormatter",
    "SummaryGenerator",
]
