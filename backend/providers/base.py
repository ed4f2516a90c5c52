"""Base classes and models for LLM providers."""

from abc import ABC, abstractmethod
from typing import Any

from langchain_openai import ChatOpenAI
from pydantic import BaseModel


class ModelConfig(BaseModel):
    """Configuration for a single model call.

    Attributes:
        provider_type: Provider key (e.g., "openrouter")
        model_id: Model identifier (e.g., "anthropic/claude-3.5-sonnet")
        api_base: Base URL for the API endpoint (empty uses the provider default)
        api_key: API key (empty string for local servers)
    """

    model_config = {"frozen": True}

    provider_type: str
    model_id: str
    api_base: str = ""
    api_key: str = ""


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Every supported provider speaks the OpenAI chat API, so implementations
    are thin wrappers around ChatOpenAI with provider-specific defaults.
    """

    @abstractmethod
    def get_llm(self, config: ModelConfig, **options: Any) -> ChatOpenAI:
        """Return a configured LLM client for the given model.

        Args:
            config: Model configuration with provider details
            **options: Extra ChatOpenAI arguments (temperature, max_tokens,
                      timeout, extra_body, ...)

        Returns:
            A configured ChatOpenAI client
        """
        pass
