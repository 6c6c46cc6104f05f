"""Reasoning service boundary."""

from .client import ReasoningClient, ReasoningError, ReasoningResult
from .providers import OpenAICompatibleProvider, ReasoningProvider

__all__ = [
    "ReasoningClient",
    "ReasoningError",
    "ReasoningResult",
    "ReasoningProvider",
    "OpenAICompatibleProvider",
]
