"""Bearer tokens: signed, expiring claims binding a request to a username.

Tokens are stateless, so there is nothing to revoke on logout; a token stays
valid until it expires.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer

from config import SESSION_SECRET, SESSION_TTL_DAYS

from .errors import Unauthenticated

_SALT = "uniadvisor-session"


@dataclass(frozen=True)
class SessionClaims:
    username: str
    issued_at: datetime
    expires_at: datetime


class SessionIssuer:
    def __init__(self, *, secret: str | None = None, ttl: timedelta | None = None) -> None:
        self._serializer = URLSafeTimedSerializer(secret or SESSION_SECRET, salt=_SALT)
        self._ttl = ttl if ttl is not None else timedelta(days=SESSION_TTL_DAYS)

    def issue(self, username: str) -> str:
        return self._serializer.dumps({"sub": username})

    def decode(self, token: str | None) -> SessionClaims:
        token = (token or "").strip()
        if not token:
            raise Unauthenticated("Not logged in")
        try:
            payload, issued_at = self._serializer.loads(
                token,
                max_age=int(self._ttl.total_seconds()),
                return_timestamp=True,
            )
        except SignatureExpired as e:
            raise Unauthenticated("Session expired") from e
        except BadData as e:
            raise Unauthenticated("Invalid token") from e

        username = payload.get("sub") if isinstance(payload, dict) else None
        if not isinstance(username, str) or not username:
            raise Unauthenticated("Invalid token")
        return SessionClaims(username=username, issued_at=issued_at, expires_at=issued_at + self._ttl)

    def verify(self, token: str | None) -> str:
        return self.decode(token).username
