"""Authentication API routes -- login, logout, me."""
from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, field_validator

from telemetry_gate.api.body import read_json
from telemetry_gate.application.auth_gate import AuthenticationGate
from telemetry_gate.domain.session import Session
from telemetry_gate.infrastructure.auth.dependencies import (
    SESSION_COOKIE,
    client_identity,
    get_gate,
    get_session,
)

router = APIRouter(prefix="/api", tags=["auth"])


class LoginRequest(BaseModel):
    # Missing or malformed fields count as a failed attempt rather than a 422.
    username: str = ""
    password: str = ""

    @field_validator("username", "password", mode="before")
    @classmethod
    def _text(cls, value):
        return "" if value is None else str(value)


async def login_form(request: Request) -> LoginRequest:
    """Whatever the client sent, as a LoginRequest. Never rejects."""
    try:
        data = await read_json(request)
    except ValueError:
        data = None
    return LoginRequest.model_validate(data if isinstance(data, dict) else {})


@router.post("/login")
def api_login(
    request: Request,
    response: Response,
    gate: AuthenticationGate = Depends(get_gate),
    req: LoginRequest = Depends(login_form),
):
    """Check the lockout, then the credentials; set the session cookie on success.

    401 on bad credentials, 429 with the remaining minutes while locked.
    """
    identity = client_identity(request)
    _session, token = gate.login(identity, req.username, req.password)
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=request.app.state.settings.session_max_age,
        httponly=True,
        samesite="lax",
    )
    return {"ok": True}


@router.post("/logout")
def api_logout(
    response: Response,
    session: Session | None = Depends(get_session),
    gate: AuthenticationGate = Depends(get_gate),
):
    gate.logout(session)
    response.delete_cookie(SESSION_COOKIE, httponly=True, samesite="lax")
    return {"ok": True}


@router.get("/me")
def api_me(session: Session | None = Depends(get_session)):
    return AuthenticationGate.status(session)
