"""Session -- the authenticated principal bound to one client context."""


class Session:
    """Present only after a successful login. Absence means unauthenticated."""

    def __init__(self, principal: str, token_id: str | None = None, expires_at: float | None = None):
        self._principal = principal
        self._token_id = token_id
        self._expires_at = expires_at

    @property
    def principal(self) -> str:
        return self._principal

    @property
    def token_id(self) -> str | None:
        return self._token_id

    @property
    def expires_at(self) -> float | None:
        """Epoch seconds after which the backing token is no longer accepted."""
        return self._expires_at

    @property
    def authenticated(self) -> bool:
        return True

    def to_public_dict(self) -> dict:
        return {"name": self._principal}
