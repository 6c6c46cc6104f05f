"""Reasoning client.

Wraps the single outbound call per report. ``query`` never raises for
service problems: every failure comes back as a ReasoningError variant so
the caller can switch to the fallback path.
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum

import httpx
import openai
from pydantic import BaseModel

from shared.config import LLMSettings
from shared.observability import get_logger, log_external_call_end, log_external_call_start

from .providers import OpenAICompatibleProvider, ReasoningProvider

logger = get_logger(__name__)

SERVICE_NAME = "reasoning-service"


class ReasoningError(str, Enum):
    """Why the reasoning service produced no usable text."""

    UNCONFIGURED = "unconfigured"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    SERVICE = "service"
    EMPTY_RESPONSE = "empty_response"
    UNEXPECTED = "unexpected"


class ReasoningResult(BaseModel):
    """Raw response text, or the error that prevented one."""

    text: str | None = None
    error: ReasoningError | None = None
    detail: str | None = None
    model: str | None = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None


class ReasoningClient:
    """Dependency-injected client for the reasoning service.

    Whether a credential is configured is decided once at construction;
    an unconfigured client answers every query with UNCONFIGURED without
    any network I/O.
    """

    def __init__(
        self,
        settings: LLMSettings,
        provider: ReasoningProvider | None = None,
    ):
        self.settings = settings
        self.timeout = settings.timeout_seconds
        if provider is None and settings.api_key:
            provider = OpenAICompatibleProvider(
                api_key=settings.api_key,
                model=settings.model,
                base_url=settings.base_url,
                timeout=settings.timeout_seconds,
            )
        self.provider = provider

        if self.provider is None:
            logger.warning("Reasoning service not configured, reports use the fallback path")

    @property
    def is_configured(self) -> bool:
        return self.provider is not None

    @property
    def model(self) -> str | None:
        return self.provider.model if self.provider else None

    async def query(self, prompt: str) -> ReasoningResult:
        """Send one prompt. Single attempt, bounded by the configured timeout."""
        if self.provider is None:
            return ReasoningResult(error=ReasoningError.UNCONFIGURED)

        log_external_call_start(logger, SERVICE_NAME, "complete")
        start = time.perf_counter()
        error: ReasoningError | None = None
        detail: str | None = None
        text: str | None = None

        try:
            text = await asyncio.wait_for(
                self.provider.complete(
                    prompt,
                    temperature=self.settings.temperature,
                    max_tokens=self.settings.max_tokens,
                ),
                timeout=self.timeout,
            )
        except (TimeoutError, openai.APITimeoutError, httpx.TimeoutException) as e:
            error, detail = ReasoningError.TIMEOUT, str(e) or "timed out"
        except (openai.APIConnectionError, httpx.HTTPError, OSError) as e:
            error, detail = ReasoningError.TRANSPORT, str(e)
        except openai.APIError as e:
            error, detail = ReasoningError.SERVICE, str(e)
        except Exception as e:
            logger.exception("Unexpected reasoning provider failure")
            error, detail = ReasoningError.UNEXPECTED, f"{type(e).__name__}: {e}"

        if error is None and not (text and text.strip()):
            error, detail, text = ReasoningError.EMPTY_RESPONSE, "empty response", None

        duration_ms = (time.perf_counter() - start) * 1000
        log_external_call_end(
            logger,
            SERVICE_NAME,
            "complete",
            success=error is None,
            duration_ms=duration_ms,
            error=detail,
        )
        return ReasoningResult(
            text=text if error is None else None,
            error=error,
            detail=detail,
            model=self.model,
            duration_ms=round(duration_ms, 2),
        )
