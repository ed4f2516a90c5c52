"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together the debate module's
concrete implementations: which store backs it, which completion provider
the debaters speak through, and the background runner and cleaner.
"""

from typing import TYPE_CHECKING

from shared.config import get_settings

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.debates.cleanup import RetentionCleaner
    from modules.debates.credentials import CredentialCache
    from modules.debates.interfaces import ICompletionProvider, IDebateStore
    from modules.debates.service import DebateService


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached as singletons
    within the container. Use reset() to clear them for testing.
    """

    def __init__(self) -> None:
        self._debate_store: "IDebateStore | None" = None
        self._completion_provider: "ICompletionProvider | None" = None
        self._credential_cache: "CredentialCache | None" = None
        self._debate_service: "DebateService | None" = None
        self._retention_cleaner: "RetentionCleaner | None" = None

    @property
    def debate_store(self) -> "IDebateStore":
        """Get the debate store selected by STORAGE_BACKEND."""
        if self._debate_store is None:
            if get_settings().storage_backend == "memory":
                from modules.debates.memory_store import InMemoryDebateStore
                self._debate_store = InMemoryDebateStore()
            else:
                from modules.debates.repository import DebateRepository
                from shared.database import get_supabase_client
                self._debate_store = DebateRepository(get_supabase_client())
        return self._debate_store

    @property
    def completion_provider(self) -> "ICompletionProvider":
        """Get the completion provider debaters stream through."""
        if self._completion_provider is None:
            from providers.factory import get_completion_provider
            self._completion_provider = get_completion_provider()
        return self._completion_provider

    @property
    def credential_cache(self) -> "CredentialCache":
        if self._credential_cache is None:
            from datetime import timedelta
            from modules.debates.credentials import CredentialCache
            self._credential_cache = CredentialCache(
                ttl=timedelta(hours=get_settings().credential_ttl_hours)
            )
        return self._credential_cache

    @property
    def debates(self) -> "DebateService":
        """Get the debate service instance."""
        if self._debate_service is None:
            from modules.debates.service import build_debate_service
            self._debate_service = build_debate_service(
                store=self.debate_store,
                provider=self.completion_provider,
                credential_store=None,  # Per-user key storage is not wired yet
                credential_cache=self.credential_cache,
            )
        return self._debate_service

    @property
    def retention_cleaner(self) -> "RetentionCleaner":
        """Get the retention cleaner for finished debates."""
        if self._retention_cleaner is None:
            from modules.debates.service import build_retention_cleaner
            self._retention_cleaner = build_retention_cleaner(
                self.debate_store,
                credential_cache=self.credential_cache,
                locks=self.debates.lock_registries,
            )
        return self._retention_cleaner

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._debate_store = None
        self._completion_provider = None
        self._credential_cache = None
        self._debate_service = None
        self._retention_cleaner = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    The next call to get_container() will create a fresh container with new
    service instances. Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_debate_service() -> "DebateService":
    """FastAPI dependency for debate service."""
    return get_container().debates


def get_debate_store() -> "IDebateStore":
    """FastAPI dependency for the debate store."""
    return get_container().debate_store
