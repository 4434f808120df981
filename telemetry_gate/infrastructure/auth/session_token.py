"""Signed session tokens (HS256 JWT) carried in the session cookie."""
import threading
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable

from jose import jwt, JWTError

from telemetry_gate.domain.session import Session

ALGORITHM = "HS256"
TOKEN_TYPE = "session"


class SessionTokens:
    """Mints, verifies and revokes session tokens.

    Revocation is process-local. A revoked token id is kept only until the
    token's own expiry, after which the signature check rejects it anyway;
    expired ids are pruned whenever another token is revoked.
    """

    def __init__(
        self,
        secret_key: str,
        max_age_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ):
        if not secret_key:
            raise ValueError("secret_key is required")
        self._secret_key = secret_key
        self.max_age_seconds = max_age_seconds
        self._clock = clock
        self._revoked: dict[str, float] = {}  # token id -> expiry, epoch seconds
        self._lock = threading.Lock()

    def issue(self, principal: str) -> tuple[Session, str]:
        """Create a session for ``principal`` and return it with its token."""
        now = datetime.now(timezone.utc)
        token_id = uuid.uuid4().hex
        expires = now + timedelta(seconds=self.max_age_seconds)
        payload = {
            "sub": principal,
            "jti": token_id,
            "type": TOKEN_TYPE,
            "iat": now,
            "exp": expires,
        }
        token = jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)
        return Session(principal, token_id, expires.timestamp()), token

    def verify(self, token: str | None) -> Session | None:
        """Return the session for a valid, unexpired, unrevoked token."""
        if not token:
            return None
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[ALGORITHM])
        except JWTError:
            return None
        if payload.get("type") != TOKEN_TYPE or not payload.get("sub"):
            return None
        token_id = payload.get("jti")
        if token_id is None or self.is_revoked(token_id):
            return None
        return Session(payload["sub"], token_id, payload.get("exp"))

    def revoke(self, token_id: str, expires_at: float | None = None) -> None:
        """Reject ``token_id`` until ``expires_at`` (default: a full max age from now)."""
        now = self._clock()
        if expires_at is None:
            expires_at = now + self.max_age_seconds
        with self._lock:
            for stale in [tid for tid, exp in self._revoked.items() if exp <= now]:
                del self._revoked[stale]
            self._revoked[token_id] = expires_at

    def is_revoked(self, token_id: str) -> bool:
        with self._lock:
            return token_id in self._revoked

    @property
    def revoked_count(self) -> int:
        with self._lock:
            return len(self._revoked)
