"""
Failure taxonomy of the relay and its translation into the uniform error body.

Services raise one of the ``RelayError`` subclasses below; nothing is caught in
the routers. The FastAPI handlers registered by ``register_error_handlers``
turn every failure into ``(status, {"error": true, "message", "details"})``.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .schemas.common import RelayErrorResp

logger = logging.getLogger("mineru_relay.errors")


class RelayError(Exception):
    status_code: int = 500
    kind: str = "relay_error"

    def __init__(self, message: str, *, status_code: Optional[int] = None, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details


class BadRequest(RelayError):
    """Caller error; never reaches the remote."""

    status_code = 400
    kind = "bad_request"


class RemoteRejected(RelayError):
    """The remote understood the call but declined it."""

    status_code = 500
    kind = "remote_rejected"


class RemoteUnavailable(RelayError):
    """Network failure or timeout talking to a remote."""

    status_code = 500
    kind = "remote_unavailable"


class MalformedResponse(RelayError):
    """A 2xx remote response that does not have the expected shape."""

    status_code = 500
    kind = "malformed_response"


class UploadFailed(RelayError):
    """The PUT to the presigned URL failed after a successful allocation."""

    status_code = 500
    kind = "upload_failed"


def translate(exc: RelayError) -> tuple[int, RelayErrorResp]:
    return exc.status_code, RelayErrorResp(message=exc.message, details=exc.details)


def error_response(status_code: int, body: RelayErrorResp) -> JSONResponse:
    return JSONResponse(body.model_dump(exclude_none=True), status_code=status_code)


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    status_code, body = translate(exc)
    logger.warning(
        {
            "event": "relay.error",
            "kind": exc.kind,
            "status": status_code,
            "path": request.url.path,
            "error": exc.message,
        }
    )
    return error_response(status_code, body)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
    return await relay_error_handler(
        request,
        BadRequest("Invalid request body", details={"fields": fields}),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
