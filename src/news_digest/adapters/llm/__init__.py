"""AI provider adapters and the summarizer."""

from news_digest.adapters.llm.providers import (
    AnthropicProvider,
    OpenAIProvider,
    build_providers,
    provider_order,
)
from news_digest.adapters.llm.summarizer import Summarizer, Summary

__all__ = [
    "AnthropicProvider",
    "OpenAIProvider",
    "Summarizer",
    "Summary",
    "build_providers",
    "provider_order",
]
