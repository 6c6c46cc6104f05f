"""Reasoning service providers.

The reasoning service is reached through an OpenAI-compatible chat
completions endpoint (Gemini, OpenAI or a local vLLM all speak it).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from openai import AsyncOpenAI

from shared.observability import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a tourism analytics assistant. Answer with a single JSON object "
    "that follows the requested structure exactly."
)


class ReasoningProvider(ABC):
    """Abstract text-in/text-out completion provider."""

    name: str = "reasoning"
    model: str = ""

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        temperature: float = 0.4,
        max_tokens: int = 4096,
    ) -> str:
        """Send one prompt and return the raw response text."""
        pass


class OpenAICompatibleProvider(ReasoningProvider):
    """Provider for any OpenAI-compatible chat completions API.

    Retries are disabled: one attempt per report keeps latency bounded.
    """

    name = "openai-compatible"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout: float = 45.0,
    ):
        self.model = model
        self.timeout = timeout
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )
        logger.info(
            "Reasoning provider initialized",
            model=model,
            base_url=base_url or "default",
        )

    async def complete(
        self,
        prompt: str,
        temperature: float = 0.4,
        max_tokens: int = 4096,
    ) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
