"""Error taxonomy raised by the gate, the bridge and configuration loading.

Routes never build error payloads themselves: each error knows its HTTP
status and its JSON body, and the handlers in ``telemetry_gate.api.errors``
translate them.
"""
import math


class GateError(Exception):
    """Base class for every expected failure in the service."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class CredentialError(GateError):
    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class LockoutError(GateError):
    """Too many recent failures for one client identity."""

    status_code = 429

    def __init__(self, seconds_remaining: int):
        self.seconds_remaining = max(0, int(seconds_remaining))
        self.minutes = max(1, math.ceil(self.seconds_remaining / 60))
        super().__init__(f"Too many attempts. Try again in {self.minutes} minute(s).")

    def to_dict(self) -> dict:
        return {"error": self.message, "minutes": self.minutes}


class AuthError(GateError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class BridgeError(GateError):
    """The external query endpoint failed, timed out or answered non-2xx."""

    status_code = 502

    def __init__(self, details: str, upstream_status: int | None = None, upstream_body: str | None = None):
        super().__init__("Query bridge failed")
        self.details = details
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body

    def to_dict(self) -> dict:
        body = {"error": self.message, "details": self.details}
        if self.upstream_status is not None:
            body["status"] = self.upstream_status
        return body


class InternalError(GateError):
    status_code = 500


class BadRequestError(GateError):
    """A request body that could not be decoded into the expected shape."""

    status_code = 400
