# text_generators/openai_chatgpt.py
from __future__ import annotations

from typing import Any, Dict, List, Optional
import logging

from openai import AsyncOpenAI

from .base import TextGeneratorAPI

_CLIENT_CACHE: Dict[str, AsyncOpenAI] = {}
_LOG = logging.getLogger(__name__)


class OpenAIChatTextGenerator(TextGeneratorAPI):
    """Completion backend for OpenAI models.

    - Defaults to "gpt-4o-mini" through Chat Completions.
    - gpt-5 family models go through the Responses API, which takes
      ``max_output_tokens`` and ignores temperature.

    Requires OPENAI_API_KEY in the environment.
    """

    def __init__(self, model: str = "gpt-4o-mini") -> None:
        self.model = model

    def _get_client(self) -> AsyncOpenAI:
        if "default" not in _CLIENT_CACHE:
            _CLIENT_CACHE["default"] = AsyncOpenAI()  # picks up OPENAI_API_KEY
        return _CLIENT_CACHE["default"]

    def _is_gpt5(self) -> bool:
        return (self.model or "").lower().startswith("gpt-5")

    async def generate(
        self,
        prompt: str,
        *,
        temperature: float = 1.0,
        max_tokens: Optional[int] = None,
    ) -> str:
        if not isinstance(prompt, str):
            raise TypeError("prompt must be a string")

        client = self._get_client()

        if self._is_gpt5():
            kwargs: Dict[str, Any] = {
                "model": self.model,
                "input": [{"role": "user", "content": prompt}],
                "reasoning": {"effort": "low"},
            }
            if max_tokens is not None:
                kwargs["max_output_tokens"] = max_tokens
            _LOG.debug("OpenAI Responses: model=%s prompt_chars=%d", self.model, len(prompt))
            resp = await client.responses.create(**kwargs)

            text = getattr(resp, "output_text", None)
            if not text:
                parts: List[str] = []
                for item in getattr(resp, "output", None) or []:
                    for c in getattr(item, "content", []) or []:
                        tt = getattr(c, "text", None)
                        if tt:
                            parts.append(tt)
                text = "\n".join(parts)
            return (text or "").strip()

        kwargs = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        _LOG.debug("OpenAI Chat Completions: model=%s prompt_chars=%d", self.model, len(prompt))
        resp = await client.chat.completions.create(**kwargs)
        if not resp.choices:
            return ""
        return (resp.choices[0].message.content or "").strip()
