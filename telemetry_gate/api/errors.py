"""Translate domain errors into JSON responses."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from telemetry_gate.domain.errors import BridgeError, GateError

log = logging.getLogger("telemetry_gate.api")


async def gate_error_handler(request: Request, exc: GateError) -> JSONResponse:
    if isinstance(exc, BridgeError):
        log.warning("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    log.info("%s %s rejected: %s", request.method, request.url.path, first.get("msg", "invalid request"))
    return JSONResponse(status_code=422, content={"error": "Invalid request"})


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("%s %s failed", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal error"})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GateError, gate_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
