"""Summary generation and the optional formatting pass."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from ..errors import NoSummaryGenerated
from ..history import Transcript
from .extraction import extract, normalize, strip_analysis
from .prompts import (
    NOTHING_NOTABLE,
    SummaryContext,
    SummaryPolicy,
    build_format_prompt,
    build_summary_prompt,
    render_custom_prompt,
)

_LOG = logging.getLogger(__name__)

FORMATTED_OPEN = "<formatted_summary>"
FORMATTED_CLOSE = "</formatted_summary>"


class LLMProtocol(Protocol):
    """Protocol for LLM interface."""

    async def generate(
        self,
        prompt: str,
        *,
        temperature: float = 1.0,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Generate text from a prompt."""
        ...


class SummaryGenerator:
    """Turns a transcript into a Markdown topic summary."""

    def __init__(
        self,
        llm: LLMProtocol,
        policy: Optional[SummaryPolicy] = None,
        *,
        temperature: float = 0.1,
        max_tokens: int = 2000,
        template: Optional[str] = None,
    ):
        """
        Initialize generator.

        Args:
            llm: LLM instance that implements generate()
            policy: Topic triage rules for the prompt
            temperature: Sampling temperature for the completion
            max_tokens: Completion budget
            template: Optional replacement for the built-in prompt
        """
        self.llm = llm
        self.policy = policy or SummaryPolicy()
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.template = template

    def build_prompt(self, transcript: Transcript, context: SummaryContext) -> str:
        if self.template is not None:
            return render_custom_prompt(self.template, transcript.render(), context)
        return build_summary_prompt(transcript.render(), context, self.policy)

    async def summarize(self, transcript: Transcript, context: SummaryContext) -> str:
        """
        Generate the summary for *transcript*.

        An empty transcript short-circuits to :data:`NOTHING_NOTABLE` without
        calling the model.

        Raises:
            NoSummaryGenerated: if the model returns no text
        """
        if transcript.is_empty:
            _LOG.info("Empty transcript; skipping model call")
            return NOTHING_NOTABLE

        prompt = self.build_prompt(transcript, context)
        completion = await self.llm.generate(
            prompt,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        _LOG.debug("Completion: %s", completion)

        summary = normalize(strip_analysis(completion or ""))
        if not summary:
            raise NoSummaryGenerated("No summary was generated.")
        return summary


class SummaryFormatter:
    """Second pass that only polishes presentation and language."""

    def __init__(self, llm: LLMProtocol, *, temperature: float = 0.1, max_tokens: int = 2000):
        self.llm = llm
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def format(self, summary: str, locale: str) -> str:
        """
        Reformat *summary* for *locale*.

        Raises:
            NoSummaryGenerated: if the model returns no text
            ExtractionFailed: if the reply lacks the formatted_summary wrapper
        """
        prompt = build_format_prompt(summary, locale)
        completion = await self.llm.generate(
            prompt,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        _LOG.debug("Formatting completion: %s", completion)

        if not completion or not completion.strip():
            raise NoSummaryGenerated("No formatted summary was generated.")

        formatted = normalize(extract(completion, FORMATTED_OPEN, FORMATTED_CLOSE))
        if not formatted:
            raise NoSummaryGenerated("No formatted summary was generated.")
        return formatted
