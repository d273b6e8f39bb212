"""Credential store: signup, password checks and user lookup.

Supports:
- Username/password accounts hashed with werkzeug (salted, fixed work factor)
- Per-user profile replacement for ProfileService

Storage: one JSON document (see config.USERS_FILE), rewritten on every
mutation. A single lock serializes read-modify-persist cycles; the in-memory
map is only swapped after the write succeeded.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable

from werkzeug.security import check_password_hash, generate_password_hash

from config import PASSWORD_HASH_METHOD

from .errors import DuplicateUser, InvalidCredentials, InvalidInput, NotFound
from .models import Profile, User
from .user_store import JsonUserStore

logger = logging.getLogger(__name__)


def _normalize_username(username: str | None) -> str:
    return (username or "").strip()


class CredentialStore:
    """Owns the durable set of users."""

    def __init__(
        self,
        *,
        store: JsonUserStore | None = None,
        password_hash_method: str | None = None,
    ) -> None:
        self._store = store if store is not None else JsonUserStore()
        self._hash_method = password_hash_method or PASSWORD_HASH_METHOD
        self._lock = threading.Lock()
        self._users: dict[str, User] = {user.username: user for user in self._store.load()}
        logger.info("Loaded %d user(s) from %s", len(self._users), self._store.path)

    def _persist(self, users: dict[str, User]) -> None:
        # Caller holds self._lock.
        self._store.save(users.values())
        self._users = users

    def count(self) -> int:
        return len(self._users)

    def create(self, username: str | None, password: str | None) -> User:
        username = _normalize_username(username)
        if not username or not password:
            raise InvalidInput("Missing fields")

        # Hash outside the lock; it is deliberately slow.
        password_hash = generate_password_hash(password, method=self._hash_method)
        user = User(username=username, password_hash=password_hash)

        with self._lock:
            if username in self._users:
                raise DuplicateUser("User already exists")
            users = dict(self._users)
            users[username] = user
            self._persist(users)

        logger.info("Created user %s", username)
        return user

    def verify(self, username: str | None, password: str | None) -> User:
        username = _normalize_username(username)
        user = self._users.get(username) if username else None
        if user is None or not password or not check_password_hash(user.password_hash, password):
            logger.info("Failed login for %s", username or "<empty>")
            raise InvalidCredentials("Invalid credentials")
        return user

    def get(self, username: str) -> User:
        user = self._users.get(_normalize_username(username))
        if user is None:
            raise NotFound("User not found")
        return user

    def replace_profile(self, username: str, mutate: Callable[[Profile], Profile]) -> User:
        """Apply `mutate` to the stored profile and persist before committing.

        If `mutate` raises or the write fails, the stored user is unchanged.
        """
        username = _normalize_username(username)
        with self._lock:
            current = self._users.get(username)
            if current is None:
                raise NotFound("User not found")
            updated = replace(current, profile=mutate(current.profile))
            users = dict(self._users)
            users[username] = updated
            self._persist(users)
        return updated
