"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

from datetime import datetime, timezone, timedelta
from typing import Optional

import jwt  # PyJWT
import pytest

from modules.debates.memory_store import InMemoryDebateStore
from modules.debates.models import Debate, DebaterConfig, Speaker, Turn
from shared.config import Settings


# Test JWT secret (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"


def create_test_token(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
    expired: bool = False,
    secret: str = TEST_JWT_SECRET,
) -> str:
    """
    Create a test JWT token shaped like a Supabase access token.

    Args:
        user_id: User ID to include in the token
        email: Email to include in the token
        expired: If True, creates an expired token
        secret: Signing secret

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload = {
        "sub": user_id,
        "email": email,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(exp.timestamp()),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


class ScriptedProvider:
    """
    Completion provider that replays scripted responses, one per call.

    A script is a list of chunks; an Exception in place of a script (or of a
    chunk) is raised at that point. Once the scripts run out, every call
    answers with text whose words are unique to that call, so unscripted
    turns never look circular or agreeable.
    """

    def __init__(self, scripts: Optional[list] = None):
        self.scripts = list(scripts or [])
        self.calls: list[dict] = []

    async def stream(self, model, messages, credential, reasoning=None):
        self.calls.append(
            {
                "model": model,
                "messages": messages,
                "credential": credential,
                "reasoning": reasoning,
            }
        )
        n = len(self.calls)
        script = self.scripts.pop(0) if self.scripts else [f"claim{n} ", f"evidence{n} ", f"rebuttal{n}"]
        if isinstance(script, Exception):
            raise script
        for chunk in script:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk


@pytest.fixture
def settings() -> Settings:
    """Settings with fast polling, built without reading the environment file."""
    return Settings(
        _env_file=None,
        storage_backend="memory",
        stream_poll_interval_seconds=0.01,
        turn_timeout_seconds=1.0,
        provider_max_retries=2,
    )


@pytest.fixture
def store() -> InMemoryDebateStore:
    return InMemoryDebateStore()


@pytest.fixture
def debater_a() -> DebaterConfig:
    return DebaterConfig(model="openai/gpt-4o-mini", name="Optimist", objective="Argue for")


@pytest.fixture
def debater_b() -> DebaterConfig:
    return DebaterConfig(model="anthropic/claude-3-haiku", name="Skeptic", objective="Argue against")


@pytest.fixture
def make_debate(store, debater_a, debater_b):
    """Factory that inserts a debate into the store."""

    def _make(debate_id: str = "debate-1", **overrides) -> Debate:
        fields = {
            "id": debate_id,
            "topic": "Should cities ban private cars downtown?",
            "debater_a": debater_a,
            "debater_b": debater_b,
            "max_turns": 3,
        }
        fields.update(overrides)
        return store.insert_debate(Debate(**fields))

    return _make


def make_turn(number: int, speaker: Speaker, content: str, debate_id: str = "debate-1") -> Turn:
    return Turn(debate_id=debate_id, number=number, speaker=speaker, content=content)


@pytest.fixture
def turn_factory():
    return make_turn


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "test-user-123"


@pytest.fixture
def auth_token(test_user_id: str) -> str:
    """Create a valid auth token for testing."""
    return create_test_token(user_id=test_user_id)


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers with a valid token."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def scripted_provider():
    """Factory for ScriptedProvider instances."""
    return ScriptedProvider


@pytest.fixture
def token_factory():
    """Factory for test JWTs with custom claims or secret."""
    return create_test_token
