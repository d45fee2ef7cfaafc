"""Summarization providers."""

from .base import SummarizationProvider
from .factory import available_providers, create_provider
from .gemini import GeminiProvider
from .openai_compatible import OpenAICompatibleProvider

__all__ = [
    "SummarizationProvider",
    "GeminiProvider",
    "OpenAICompatibleProvider",
    "available_providers",
    "create_provider",
]
