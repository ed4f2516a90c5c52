"""LLM provider implementations."""

from .base import LLMProvider, ModelConfig
from .completion import LangChainCompletionProvider
from .factory import get_completion_provider
from .openai_compatible import OpenAICompatibleProvider

__all__ = [
    "LLMProvider",
    "ModelConfig",
    "LangChainCompletionProvider",
    "OpenAICompatibleProvider",
    "get_completion_provider",
]
