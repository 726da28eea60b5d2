"""Runtime configuration read from the environment.

Secrets (DISCORD_TOKEN, OPENAI_API_KEY, ANTHROPIC_API_KEY) stay in the
environment / .env and are picked up by the SDK clients directly. Everything
here is a tunable with a sensible default.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from .errors import InvalidInput

# Discord rejects message bodies at or above this many characters.
MAX_MESSAGE_LENGTH = 2000

# Platform maximum for a single history request.
PAGE_SIZE = 100

# Request sizes accepted in single fetch mode.
FETCH_LIMITS = (PAGE_SIZE, 1000)

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "chatgpt": "gpt-4o-mini",
    "anthropic": "claude-haiku-4-5",
}


class FetchMode(str, enum.Enum):
    """How channel history is retrieved."""

    PAGINATE = "paginate"  # walk backwards page by page until the cutoff
    SINGLE = "single"  # one bounded request, filtered client-side


class MediumOverflow(str, enum.Enum):
    """What the prompt asks for when too many topics survive triage."""

    ELABORATE = "elaborate"
    DROP = "drop"


class FailurePolicy(str, enum.Enum):
    ABORT = "abort"
    ISOLATE = "isolate"


@dataclass(frozen=True)
class Settings:
    llm_api: str = "openai"
    model: str = "gpt-4o-mini"
    temperature: float = 0.1
    max_tokens: int = 2000
    fetch_mode: FetchMode = FetchMode.PAGINATE
    fetch_limit: int = PAGE_SIZE
    topic_threshold: int = 5
    medium_overflow: MediumOverflow = MediumOverflow.ELABORATE
    format_pass: bool = False
    default_locale: str = "en-US"
    failure_policy: FailurePolicy = FailurePolicy.ABORT
    prompt_file: Optional[Path] = None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidInput(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise InvalidInput(f"{name} must be a number, got {raw!r}") from None


def _env_choice(name: str, enum_cls: type[enum.Enum], default: enum.Enum) -> enum.Enum:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    try:
        return enum_cls(raw)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidInput(f"{name} must be one of: {allowed} (got {raw!r})") from None


def load_settings() -> Settings:
    """Build a :class:`Settings` from the current environment."""
    llm_api = (os.getenv("RECAP_LLM_API") or "openai").strip().lower()
    if llm_api not in DEFAULT_MODELS:
        raise InvalidInput(f"RECAP_LLM_API must be 'openai' or 'anthropic' (got {llm_api!r})")

    fetch_limit = _env_int("RECAP_FETCH_LIMIT", PAGE_SIZE)
    if fetch_limit not in FETCH_LIMITS:
        raise InvalidInput(f"RECAP_FETCH_LIMIT must be 100 or 1000 (got {fetch_limit})")

    topic_threshold = _env_int("RECAP_TOPIC_THRESHOLD", 5)
    if topic_threshold < 1:
        raise InvalidInput("RECAP_TOPIC_THRESHOLD must be at least 1")

    prompt_file = (os.getenv("RECAP_PROMPT_FILE") or "").strip()

    return Settings(
        llm_api=llm_api,
        model=(os.getenv("RECAP_MODEL") or "").strip() or DEFAULT_MODELS[llm_api],
        temperature=_env_float("RECAP_TEMPERATURE", 0.1),
        max_tokens=_env_int("RECAP_MAX_TOKENS", 2000),
        fetch_mode=_env_choice("RECAP_FETCH_MODE", FetchMode, FetchMode.PAGINATE),
        fetch_limit=fetch_limit,
        topic_threshold=topic_threshold,
        medium_overflow=_env_choice("RECAP_MEDIUM_OVERFLOW", MediumOverflow, MediumOverflow.ELABORATE),
        format_pass=_env_bool("RECAP_FORMAT_PASS", False),
        default_locale=(os.getenv("RECAP_DEFAULT_LOCALE") or "en-US").strip(),
        failure_policy=_env_choice("RECAP_FAILURE_POLICY", FailurePolicy, FailurePolicy.ABORT),
        prompt_file=Path(prompt_file).expanduser() if prompt_file else None,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return load_settings()


# --------------------- Prompt override file ---------------------

_PROMPT_CACHE: Optional[str] = None
_PROMPT_MTIME: Optional[float] = None
_PROMPT_PATH: Optional[Path] = None


def _project_root() -> Path:
    """Repository root: settings.py lives at src/recapbot/settings.py."""
    return Path(__file__).resolve().parents[2]


def load_prompt_template(path: Optional[Path]) -> Optional[str]:
    """Return the contents of a summary-prompt override file, if usable.

    Relative paths are tried as given and then repo-root-relative. Uses a
    simple mtime cache to avoid re-reading unchanged files. Returns ``None``
    when no file is configured or none of the candidates is readable.
    """
    global _PROMPT_CACHE, _PROMPT_MTIME, _PROMPT_PATH  # noqa: PLW0603

    if path is None:
        return None

    candidates = [path]
    if not path.is_absolute():
        candidates.append(_project_root() / path)

    for candidate in candidates:
        if not candidate.is_file():
            continue
        mtime = candidate.stat().st_mtime
        if _PROMPT_PATH == candidate and _PROMPT_CACHE is not None and _PROMPT_MTIME == mtime:
            return _PROMPT_CACHE
        text = candidate.read_text(encoding="utf-8")
        _PROMPT_CACHE = text
        _PROMPT_MTIME = mtime
        _PROMPT_PATH = candidate
        return text
    return None
