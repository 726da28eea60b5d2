"""Batch entry point: fetch, summarize, format and post for each channel pair."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional, Protocol

from .duration import DEFAULT_TIMEFRAME, parse_lookback
from .errors import DispatchFailed, InvalidInput, OutputTooLarge
from .history import ChannelHistoryFetcher, utc_now
from .settings import MAX_MESSAGE_LENGTH, FailurePolicy, Settings, load_prompt_template
from .sources import MessageSource
from .summarization import SummaryContext, SummaryFormatter, SummaryGenerator, SummaryPolicy
from .text_generators import get_text_generator

_LOG = logging.getLogger(__name__)

SUCCESS_STATUS = "Summary sent to the channels."
FAILURE_MESSAGE = "Failed to summarize messages."


class ChannelResolver(Protocol):
    async def resolve(self, channel_id: int | str) -> MessageSource:
        ...


@dataclass(frozen=True)
class DispatchPair:
    source_channel_id: str
    target_channel_id: str


@dataclass(frozen=True)
class DispatchRequest:
    pairs: tuple[DispatchPair, ...]
    timeframe: str
    lookback: timedelta

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "DispatchRequest":
        """Validate an invocation payload.

        Accepts ``source_channel_ids`` (+ optional positional
        ``target_channel_ids``) or a single ``source_channel_id`` /
        ``target_channel_id``. ``timeframe`` is a duration string or a number
        of days and is parsed here, before anything touches the network.

        Raises:
            InvalidInput: on a malformed payload or timeframe.
        """
        if not isinstance(payload, Mapping):
            raise InvalidInput("Payload must be a JSON object")

        if "source_channel_ids" in payload:
            sources = _id_list(payload["source_channel_ids"], "source_channel_ids")
            raw_targets = payload.get("target_channel_ids")
            targets = sources if raw_targets is None else _id_list(raw_targets, "target_channel_ids")
        elif "source_channel_id" in payload:
            sources = [_channel_id(payload["source_channel_id"], "source_channel_id")]
            raw_target = payload.get("target_channel_id")
            targets = sources if raw_target is None else [_channel_id(raw_target, "target_channel_id")]
        else:
            raise InvalidInput("Payload needs source_channel_ids or source_channel_id")

        if not sources:
            raise InvalidInput("source_channel_ids is empty")
        if len(targets) != len(sources):
            raise InvalidInput(
                f"target_channel_ids has {len(targets)} entries, expected {len(sources)}"
            )

        raw_timeframe = payload.get("timeframe")
        lookback = parse_lookback(raw_timeframe)
        return cls(
            pairs=tuple(DispatchPair(s, t) for s, t in zip(sources, targets)),
            timeframe=_timeframe_label(raw_timeframe),
            lookback=lookback,
        )


def _channel_id(value: Any, name: str) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise InvalidInput(f"{name} must be a string or integer id, got {value!r}")
    text = str(value).strip()
    if not text:
        raise InvalidInput(f"{name} is empty")
    return text


def _id_list(value: Any, name: str) -> list[str]:
    if not isinstance(value, (list, tuple)):
        raise InvalidInput(f"{name} must be a list")
    return [_channel_id(v, name) for v in value]


def _timeframe_label(raw: Any) -> str:
    if raw is None:
        return DEFAULT_TIMEFRAME
    if isinstance(raw, (int, float)) or (isinstance(raw, str) and re.fullmatch(r"\d+(?:\.\d+)?", raw.strip())):
        days = float(raw)
        count = int(days) if days.is_integer() else days
        return f"{count} day" if count == 1 else f"{count} days"
    return str(raw).strip()


@dataclass
class PairResult:
    pair: DispatchPair
    posted: bool = False
    error_kind: Optional[str] = None
    error: Optional[str] = None


@dataclass
class DispatchReport:
    results: list[PairResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.posted for r in self.results)

    @property
    def failed(self) -> list[PairResult]:
        return [r for r in self.results if not r.posted]


def _kind(exc: BaseException) -> str:
    return getattr(exc, "kind", type(exc).__name__)


class DispatchController:
    """Runs the recap pipeline for every pair in a request, one at a time."""

    def __init__(
        self,
        resolver: ChannelResolver,
        fetcher: ChannelHistoryFetcher,
        generator: SummaryGenerator,
        formatter: Optional[SummaryFormatter] = None,
        *,
        default_locale: str = "en-US",
        failure_policy: FailurePolicy = FailurePolicy.ABORT,
        max_length: int = MAX_MESSAGE_LENGTH,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.resolver = resolver
        self.fetcher = fetcher
        self.generator = generator
        self.formatter = formatter
        self.default_locale = default_locale
        self.failure_policy = FailurePolicy(failure_policy)
        self.max_length = max_length
        self.clock = clock
        self.last_report: Optional[DispatchReport] = None

    @classmethod
    def from_settings(cls, resolver: ChannelResolver, settings: Settings) -> "DispatchController":
        llm = get_text_generator(settings.llm_api, settings.model)
        policy = SummaryPolicy(
            topic_threshold=settings.topic_threshold,
            medium_overflow=settings.medium_overflow,
        )
        generator = SummaryGenerator(
            llm,
            policy,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            template=load_prompt_template(settings.prompt_file),
        )
        formatter = None
        if settings.format_pass:
            formatter = SummaryFormatter(
                llm,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
            )
        fetcher = ChannelHistoryFetcher(settings.fetch_mode, single_limit=settings.fetch_limit)
        return cls(
            resolver,
            fetcher,
            generator,
            formatter,
            default_locale=settings.default_locale,
            failure_policy=settings.failure_policy,
        )

    async def dispatch(self, request: DispatchRequest | Mapping[str, Any]) -> str:
        """Process every pair and return the success status.

        Raises:
            DispatchFailed: if any pair failed (or the payload was invalid). The
                specific error is logged and chained as ``__cause__``.
        """
        try:
            if not isinstance(request, DispatchRequest):
                request = DispatchRequest.from_payload(request)
        except Exception as exc:
            _LOG.error("Handler error (%s): %s", _kind(exc), exc)
            raise DispatchFailed(FAILURE_MESSAGE) from exc

        report = DispatchReport()
        self.last_report = report

        if self.failure_policy is FailurePolicy.ABORT:
            try:
                for pair in request.pairs:
                    await self.process_pair(pair, request)
                    report.results.append(PairResult(pair, posted=True))
            except Exception as exc:
                _LOG.exception("Handler error (%s): %s", _kind(exc), exc)
                raise DispatchFailed(FAILURE_MESSAGE) from exc
            return SUCCESS_STATUS

        first_error: Optional[BaseException] = None
        for pair in request.pairs:
            try:
                await self.process_pair(pair, request)
            except Exception as exc:
                _LOG.exception(
                    "Pair %s -> %s failed (%s): %s",
                    pair.source_channel_id,
                    pair.target_channel_id,
                    _kind(exc),
                    exc,
                )
                report.results.append(PairResult(pair, error_kind=_kind(exc), error=str(exc)))
                first_error = first_error or exc
            else:
                report.results.append(PairResult(pair, posted=True))

        if first_error is not None:
            _LOG.error("%d of %d pair(s) failed", len(report.failed), len(report.results))
            raise DispatchFailed(FAILURE_MESSAGE, report=report) from first_error
        return SUCCESS_STATUS

    async def process_pair(self, pair: DispatchPair, request: DispatchRequest) -> None:
        """Fetch, summarize, optionally format, check length, post."""
        source = await self.resolver.resolve(pair.source_channel_id)
        transcript = await self.fetcher.fetch(source, request.lookback)
        _LOG.debug("Transcript for %s:\n%s", pair.source_channel_id, transcript.render())

        target = await self.resolver.resolve(pair.target_channel_id)
        locale = target.preferred_locale or self.default_locale
        context = SummaryContext(
            timeframe=request.timeframe,
            channel=f"<#{pair.target_channel_id}>",
            now=self.clock().isoformat(),
            locale=locale,
        )

        summary = await self.generator.summarize(transcript, context)
        if self.formatter is not None and not transcript.is_empty:
            summary = await self.formatter.format(summary, locale)
        _LOG.info("Summary for %s: %d characters", pair.source_channel_id, len(summary))

        if len(summary) >= self.max_length:
            raise OutputTooLarge(len(summary), self.max_length)

        await target.post_message(summary)
        _LOG.info(
            "Summary sent to the channel. source=%s target=%s",
            pair.source_channel_id,
            pair.target_channel_id,
        )
