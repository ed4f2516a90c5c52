"""Factory functions for creating LLM providers."""

from shared.config import Settings, get_settings

from .completion import LangChainCompletionProvider
from .openai_compatible import OpenAICompatibleProvider


def get_completion_provider(
    settings: Settings | None = None,
) -> LangChainCompletionProvider:
    """Build the OpenRouter-backed completion provider used by debaters.

    Args:
        settings: Settings to read limits and attribution from (defaults to
                 the cached application settings)

    Returns:
        A completion provider streaming through OpenRouter
    """
    settings = settings or get_settings()
    provider = OpenAICompatibleProvider(
        "openrouter",
        default_headers={
            "HTTP-Referer": settings.app_url,  # For OpenRouter rankings
            "X-Title": settings.app_title,  # For OpenRouter rankings
        },
    )
    return LangChainCompletionProvider(
        provider,
        provider_type="openrouter",
        api_base=settings.openrouter_base_url,
        temperature=settings.temperature,
        max_tokens=settings.max_output_tokens,
        timeout=settings.turn_timeout_seconds,
    )

