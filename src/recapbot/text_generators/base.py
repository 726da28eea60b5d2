from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class TextGeneratorAPI(ABC):
    """Abstract base class for completion providers."""

    model: str

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        temperature: float = 1.0,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Return the completion for a single-turn user *prompt*.

        An empty string means the provider produced no text.
        """
        raise NotImplementedError
