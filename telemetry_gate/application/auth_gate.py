"""Authentication gate -- login, logout, status and the protected-route guard."""
import logging
import secrets

from telemetry_gate.domain.errors import AuthError, CredentialError, LockoutError
from telemetry_gate.domain.session import Session
from telemetry_gate.infrastructure.audit import AuditLog
from telemetry_gate.infrastructure.auth.bruteforce import LockoutTracker
from telemetry_gate.infrastructure.auth.session_token import SessionTokens

log = logging.getLogger("telemetry_gate.auth")

DEMO_DISPLAY_NAME = "Demo User"


class AuthenticationGate:
    """Checks the single demo principal, guarded by a LockoutTracker."""

    def __init__(
        self,
        tracker: LockoutTracker,
        tokens: SessionTokens,
        username: str,
        password: str,
        display_name: str = DEMO_DISPLAY_NAME,
        audit: AuditLog | None = None,
    ):
        self._tracker = tracker
        self._tokens = tokens
        self._username = username
        self._password = password
        self._display_name = display_name
        self._audit = audit or AuditLog(None)

    @property
    def tracker(self) -> LockoutTracker:
        return self._tracker

    def _credentials_match(self, username: str, password: str) -> bool:
        user_ok = secrets.compare_digest(username.encode("utf-8"), self._username.encode("utf-8"))
        pass_ok = secrets.compare_digest(password.encode("utf-8"), self._password.encode("utf-8"))
        return user_ok and pass_ok

    def login(self, identity: str, username: str, password: str) -> tuple[Session, str]:
        """Authenticate and return the new session with its signed token.

        Raises LockoutError without looking at the credentials when the
        identity is locked, CredentialError when they do not match.
        """
        lock = self._tracker.check(identity)
        if lock.locked:
            self._audit.log_event("login_locked", identity, {"seconds_remaining": lock.seconds_remaining})
            raise LockoutError(lock.seconds_remaining)

        ok = self._credentials_match(username or "", password or "")
        self._tracker.register(identity, ok)
        if not ok:
            log.info("identity=%s login failed", identity)
            self._audit.log_event("login_failed", identity, {"username": username})
            raise CredentialError()

        session, token = self._tokens.issue(self._display_name)
        log.info("identity=%s login succeeded", identity)
        self._audit.log_event("login_succeeded", identity, {"username": username})
        return session, token

    def logout(self, session: Session | None) -> None:
        """Destroy ``session``. Safe to call with None or twice."""
        if session is None or session.token_id is None:
            return
        self._tokens.revoke(session.token_id, session.expires_at)
        self._audit.log_event("logout", session.principal)

    def session_from_token(self, token: str | None) -> Session | None:
        return self._tokens.verify(token)

    @staticmethod
    def status(session: Session | None) -> dict:
        if session is None:
            return {"authenticated": False, "user": None}
        return {"authenticated": True, "user": session.to_public_dict()}

    @staticmethod
    def require(session: Session | None) -> str:
        """Return the session's principal or raise AuthError."""
        if session is None:
            raise AuthError()
        return session.principal
