"""Shared fixtures: fast password hashing and a scripted LLM stub."""

from __future__ import annotations

import json

import pytest

from uniadvisor.services.auth_service import CredentialStore
from uniadvisor.services.errors import PersistenceError
from uniadvisor.services.user_store import JsonUserStore

# Low iteration count keeps the suite fast; production uses config.PASSWORD_HASH_METHOD.
FAST_HASH = "pbkdf2:sha256:1000"


class StubLLM:
    """Returns scripted replies in order; an Exception in the script is raised."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def complete(self, messages, *, model, temperature, json_mode=False):
        self.calls.append(
            {
                "messages": [dict(m) for m in messages],
                "model": model,
                "temperature": temperature,
                "json_mode": json_mode,
            }
        )
        reply = self.replies.pop(0) if self.replies else "ok"
        if isinstance(reply, Exception):
            raise reply
        return reply


class FailingStore(JsonUserStore):
    """JSON store whose writes can be switched to fail."""

    def __init__(self, path):
        super().__init__(path)
        self.fail = False

    def save(self, users):
        if self.fail:
            raise PersistenceError("Could not persist user data.")
        super().save(users)


def four_universities() -> dict:
    return {
        "universities": [
            {"name": "University of Toronto", "reason": "Top engineering faculty."},
            {"name": "University of Waterloo", "reason": "Co-op program fits your hours."},
            {"name": "McGill University", "reason": "Strong research culture."},
            {"name": "University of British Columbia", "reason": "Broad engineering options."},
        ]
    }


@pytest.fixture
def universities() -> dict:
    return four_universities()


@pytest.fixture
def universities_json(universities) -> str:
    return json.dumps(universities)


@pytest.fixture
def users_path(tmp_path):
    return tmp_path / "users.json"


@pytest.fixture
def credentials(users_path) -> CredentialStore:
    return CredentialStore(store=JsonUserStore(users_path), password_hash_method=FAST_HASH)
