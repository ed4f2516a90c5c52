"""Unified provider for all OpenAI-compatible APIs.

Debaters are routed through OpenRouter in production. The direct OpenAI and
local Ollama entries exist for development against a single vendor or a
local model server; all of them use LangChain's ChatOpenAI client.
"""

from dataclasses import dataclass
from typing import Any

from langchain_openai import ChatOpenAI

from .base import LLMProvider, ModelConfig


@dataclass
class ProviderConfig:
    """Configuration for an OpenAI-compatible provider.

    Attributes:
        default_base_url: Default API endpoint URL (None uses OpenAI's default)
        api_key_required: Whether an API key must be provided
        api_key_env_var: Environment variable name for the API key (for error messages)
        default_headers: Custom HTTP headers to include in requests
    """

    default_base_url: str | None = None
    api_key_required: bool = True
    api_key_env_var: str = ""
    default_headers: dict[str, str] | None = None


# Provider configurations registry
PROVIDER_CONFIGS: dict[str, ProviderConfig] = {
    "openrouter": ProviderConfig(
        default_base_url="https://openrouter.ai/api/v1",
        api_key_required=True,
        api_key_env_var="OPENROUTER_API_KEY",
    ),
    "openai": ProviderConfig(
        api_key_required=True,
        api_key_env_var="OPENAI_API_KEY",
    ),
    "ollama": ProviderConfig(
        default_base_url="http://localhost:11434/v1",
        api_key_required=False,
    ),
}


class OpenAICompatibleProvider(LLMProvider):
    """Unified provider for all OpenAI-compatible APIs.

    Handles: openrouter, openai, ollama

    - Cloud providers (openrouter, openai): API key required
    - Local providers (ollama): No API key required, custom base URL
    - Attribution headers (OpenRouter rankings) can be supplied per instance
    """

    def __init__(
        self,
        provider_type: str,
        default_headers: dict[str, str] | None = None,
    ):
        """Initialize the provider.

        Args:
            provider_type: One of: openrouter, openai, ollama
            default_headers: Headers added to every request, merged over the
                           provider's own defaults

        Raises:
            KeyError: If provider_type is not recognized
        """
        if provider_type not in PROVIDER_CONFIGS:
            raise KeyError(
                f"Unknown provider type: {provider_type}. "
                f"Valid types: {list(PROVIDER_CONFIGS.keys())}"
            )
        self.provider_type = provider_type
        self.provider_config = PROVIDER_CONFIGS[provider_type]
        self.default_headers = {
            **(self.provider_config.default_headers or {}),
            **(default_headers or {}),
        }

    def get_llm(self, config: ModelConfig, **options: Any) -> ChatOpenAI:
        """Return a ChatOpenAI client configured for this provider.

        Args:
            config: Model configuration with provider details
            **options: Extra ChatOpenAI arguments, passed through unchanged

        Returns:
            A configured ChatOpenAI client

        Raises:
            ValueError: If api_key is required but not provided
        """
        if self.provider_config.api_key_required and not config.api_key:
            raise ValueError(
                f"{self.provider_type.title()} API key is required. "
                f"Supply it with the debate or via {self.provider_config.api_key_env_var}."
            )

        kwargs: dict = {"model": config.model_id, **options}

        # Set base URL (from config or provider default)
        if base_url := (config.api_base or self.provider_config.default_base_url):
            kwargs["base_url"] = base_url

        # Set API key (use "not-needed" placeholder for local providers)
        kwargs["api_key"] = config.api_key or "not-needed"

        if self.default_headers:
            kwargs["default_headers"] = self.default_headers

        return ChatOpenAI(**kwargs)
