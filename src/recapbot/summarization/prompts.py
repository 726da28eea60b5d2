"""Prompt templates for the summary and formatting passes."""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidInput
from ..settings import MAX_MESSAGE_LENGTH, MediumOverflow

NOTHING_NOTABLE = "**Nothing notable was discussed.**"


@dataclass(frozen=True)
class SummaryContext:
    """Metadata the model needs to judge relevance and audience."""

    timeframe: str
    channel: str
    now: str  # ISO-8601
    locale: str


@dataclass(frozen=True)
class SummaryPolicy:
    """Topic triage rules written into the summary prompt."""

    max_high_topics: int = 2
    topic_threshold: int = 5
    medium_overflow: MediumOverflow = MediumOverflow.ELABORATE


def _overflow_rule(policy: SummaryPolicy) -> str:
    t = policy.topic_threshold
    if policy.medium_overflow is MediumOverflow.DROP:
        return (
            f"If there are {t} or more topics of high and medium importance combined, "
            f"discard the least important medium topics until fewer than {t} remain."
        )
    return (
        f"If there are {t} or more topics of high and medium importance combined, "
        "briefly explain the medium importance topics."
    )


def build_summary_prompt(transcript: str, context: SummaryContext, policy: SummaryPolicy) -> str:
    """
    Build the single-request analysis + summary prompt.

    Args:
        transcript: Rendered ``author: body`` lines
        context: Window, destination and clock metadata
        policy: Topic triage rules

    Returns:
        Prompt text asking for ``<analysis>`` reasoning followed by the summary
    """
    high = "1" if policy.max_high_topics <= 1 else f"1-{policy.max_high_topics}"

    return f"""You are an advanced AI assistant specializing in analyzing and summarizing discussions from Discord channels. Your task is to provide a technical, extremely concise and professional summary of the issues discussed, focusing solely on factual information and omitting any personal details.

The transcript covers the last {context.timeframe} and the summary will be posted to the channel {context.channel}.
The current date and time is {context.now}. The readers' locale is {context.locale}.

Here is the Discord transcript you need to analyze and summarize:

<discord_transcript>
{transcript}
</discord_transcript>

Please follow these steps to create your summary:

1. Carefully read and analyze the provided transcript.

2. Conduct your analysis inside <analysis> tags, breaking down the text as follows:
   a. Identify the language used in the transcript, and write your analysis in the same language.
   b. List the main topics and issues discussed.
   c. Identify any conclusions, agreements, or significant disagreements.
   d. Extract key technical points, data, or statistics.
   e. Note any unresolved points or areas requiring further discussion.
   f. Identify and list key phrases or terms crucial to understanding the discussion.
   g. Compare any dates, deadlines or meetings mentioned with the current date and time. Discard content that is already in the past or no longer relevant.
   h. Categorize the topics based on their importance or relevance (high, medium, low).
   i. Discard the topics with low importance.
   j. Ensure there are no more than {high} topics of high importance.
   k. {_overflow_rule(policy)}
   l. If there are no important topics or the transcript is empty, note this fact.
   m. Critically evaluate your analysis, focusing on how to make each point concise without losing essential information.

3. Based on your analysis, create a summary that adheres to the following guidelines:
   - Write the summary in the same language as the original transcript.
   - Maintain strict objectivity and avoid personal opinions.
   - Use clear, concise, and technical language.
   - Focus on factual information and omit any personal details.
   - Ensure the summary is as condensed as possible while retaining important points.
   - Do not include empty lines as spacers.
   - If nothing notable was discussed, reply with exactly: {NOTHING_NOTABLE}

4. Format your summary as a numbered list of topics discussed, with each topic having a sublist of relevant points. Use Markdown formatting for the list structure.

5. Review your summary to ensure it meets all requirements before submitting. Remember to use the same language as the original text and maintain a professional tone throughout.

Begin your response with your analysis in <analysis> tags, followed by the final summary in the format shown above."""


def render_custom_prompt(template: str, transcript: str, context: SummaryContext) -> str:
    """Fill a user-supplied template.

    Available fields: ``{transcript}``, ``{timeframe}``, ``{channel}``,
    ``{now}``, ``{locale}``. Literal braces must be doubled.
    """
    try:
        return template.format(
            transcript=transcript,
            timeframe=context.timeframe,
            channel=context.channel,
            now=context.now,
            locale=context.locale,
        )
    except (KeyError, IndexError, ValueError) as exc:
        raise InvalidInput(f"Summary prompt template is invalid: {exc}") from exc


def build_format_prompt(summary: str, locale: str) -> str:
    """Build the presentation-only second pass prompt."""
    return f"""You are a meticulous editor preparing a Discord message. Below is a summary of a channel discussion.

<summary>
{summary}
</summary>

Rewrite it for presentation only:
- Use Discord Markdown: a short bold header, numbered topics, and indented bullet points for details.
- Use emphasis sparingly, for key terms only.
- Write the whole text in the language of the locale {locale}; translate if the summary uses another language.
- Do not add, remove or reorder topics or points, and do not change any facts, names or numbers.
- Do not include empty lines.
- Keep the result under {MAX_MESSAGE_LENGTH} characters.

Reply with the formatted text wrapped in <formatted_summary></formatted_summary> tags and nothing else."""
