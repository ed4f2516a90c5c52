"""
Short-lived provider credentials.

A caller's key is kept in memory per debate so a later resume can reuse it.
The cache is best-effort: after a restart or expiry the caller supplies the
key again, or it is looked up in the per-user credential store.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from shared.models import AuthenticatedUser

from .exceptions import CredentialRequiredError
from .interfaces import ICredentialStore
from .models import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Entry:
    credential: str
    expires_at: datetime


class CredentialCache:
    """In-memory credentials keyed by debate ID, each with an expiry."""

    def __init__(
        self,
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utc_now,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    def set(self, debate_id: str, credential: str) -> None:
        self._entries[debate_id] = _Entry(credential, self._clock() + self.ttl)

    def get(self, debate_id: str) -> Optional[str]:
        """Return the cached credential, dropping it if it has expired."""
        entry = self._entries.get(debate_id)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[debate_id]
            return None
        return entry.credential

    def delete(self, debate_id: str) -> None:
        self._entries.pop(debate_id, None)

    def evict_expired(self) -> int:
        """Remove expired entries and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, debate_id: str) -> bool:
        return self.get(debate_id) is not None


class CredentialResolver:
    """
    Finds the credential to run a debate with.

    Order: the explicitly supplied value, then the debate's cached value,
    then the authenticated caller's stored credential.
    """

    def __init__(
        self,
        cache: CredentialCache,
        credential_store: Optional[ICredentialStore] = None,
    ):
        self.cache = cache
        self._credential_store = credential_store

    def remember(self, debate_id: str, credential: str) -> None:
        self.cache.set(debate_id, credential)

    async def resolve(
        self,
        debate_id: str,
        explicit: Optional[str] = None,
        user: Optional[AuthenticatedUser] = None,
    ) -> str:
        """
        Raises:
            CredentialRequiredError: If no source has a credential
        """
        if explicit and explicit.strip():
            credential = explicit.strip()
            self.cache.set(debate_id, credential)
            return credential

        cached = self.cache.get(debate_id)
        if cached:
            return cached

        if user is not None and self._credential_store is not None:
            stored = await self._credential_store.get_credential(user.id)
            if stored:
                logger.debug(f"Debate {debate_id}: using stored credential of user {user.id}")
                self.cache.set(debate_id, stored)
                return stored

        raise CredentialRequiredError(debate_id)
