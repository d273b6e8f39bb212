"""JSON file persistence for user records.

The whole user set is rewritten on every save. Writes land in a temporary
file next to the target and are moved into place with `os.replace`, so
readers see either the old document or the new one.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable

from config import USERS_FILE

from .errors import PersistenceError
from .models import User

logger = logging.getLogger(__name__)


class JsonUserStore:
    """Key-value style store: `load()` every user, `save()` every user."""

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path is not None else USERS_FILE

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[User]:
        if not self._path.exists():
            return []
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not read user store {self._path}: {e}") from e

        if not isinstance(raw, dict):
            raise PersistenceError(f"Unexpected document in user store {self._path}")
        records = raw.get("users", [])
        try:
            return [User.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Corrupt user record in {self._path}: {e}") from e

    def save(self, users: Iterable[User]) -> None:
        payload = {"users": [user.to_dict() for user in users]}
        tmp_name = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                json.dump(payload, fh, ensure_ascii=False, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error("Failed to write user store %s: %s", self._path, e)
            raise PersistenceError("Could not persist user data.") from e
