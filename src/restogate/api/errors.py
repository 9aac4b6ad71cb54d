"""
restogate.api.errors

Exception handlers that turn the closed error taxonomy into HTTP responses.

Responsibilities:
- Render every `ServiceError` as a stable JSON envelope.
- Map request-body validation failures to 400.
- Hide unexpected exception details from clients in production.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from restogate.errors import AuthenticationError, ErrorKind, ServiceError
from restogate.observability.logging import get_logger
from restogate.settings import Settings

log = get_logger(__name__)


def error_response(
    status_code: int,
    code: ErrorKind,
    message: str,
    detail: dict[str, Any] | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {"code": code.value, "message": message}
    body.update(detail or {})
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": body},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI, *, settings: Settings) -> None:
    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        fields: dict[str, Any] = {"status_code": exc.status_code, "error_kind": exc.kind.value}
        if isinstance(exc, AuthenticationError):
            fields["failure"] = exc.failure.value
        log.warning("service_error", reason=exc.message, **fields)
        return error_response(exc.status_code, exc.kind, exc.public_message, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {"loc": list(e.get("loc", ())), "message": e.get("msg", "")} for e in exc.errors()
        ]
        log.info("request_validation_failed", errors=errors)
        return error_response(400, ErrorKind.validation, "Validation failed", {"errors": errors})

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        log.exception("unhandled_error")
        detail = None if settings.env == "prod" else {"detail": repr(exc)}
        return error_response(500, ErrorKind.internal, "Internal Server Error", detail)


# --- Module Notes -----------------------------------------------------------
# Envelope: {"success": false, "error": {"code", "message", ...detail}}.
