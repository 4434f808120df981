"""FastAPI dependencies: client identity, session lookup and route guards."""
import secrets

from fastapi import Depends, Request

from telemetry_gate.application.auth_gate import AuthenticationGate
from telemetry_gate.domain.errors import AuthError
from telemetry_gate.domain.session import Session

SESSION_COOKIE = "session"
API_KEY_HEADER = "x-api-key"


def client_identity(request: Request) -> str:
    """Lockout key for the caller: first X-Forwarded-For hop, else peer address."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    if request.client and request.client.host:
        return request.client.host
    return "local"


def get_gate(request: Request) -> AuthenticationGate:
    return request.app.state.gate


def get_session(request: Request, gate: AuthenticationGate = Depends(get_gate)) -> Session | None:
    """The caller's session, or None. Never raises."""
    return gate.session_from_token(request.cookies.get(SESSION_COOKIE))


def require_session(
    session: Session | None = Depends(get_session),
    gate: AuthenticationGate = Depends(get_gate),
) -> str:
    """Principal of the caller's session. Raises AuthError (401) otherwise."""
    return gate.require(session)


def require_session_or_api_key(
    request: Request,
    session: Session | None = Depends(get_session),
) -> str:
    """Like require_session, but also accepts the configured demo API key."""
    if session is not None:
        return session.principal
    expected = request.app.state.settings.demo_api_key
    supplied = request.headers.get(API_KEY_HEADER)
    if expected and supplied and secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
        return "api-key"
    raise AuthError()
