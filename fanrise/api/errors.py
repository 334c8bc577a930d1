"""Centralized exception handlers for the FastAPI application.

Domain exceptions are mapped to HTTP responses with one consistent
error format:

    {
        "message": "Human-readable error message",
        "code": "MACHINE_READABLE_ERROR_CODE",
        "timestamp": "2024-01-01T00:00:00+00:00",
        "errors": [{"field": "...", "message": "..."}]   # validation only
    }

Clients should branch on the status and `code`, never on `message`.

Usage:
    app = FastAPI()
    setup_exception_handlers(app, settings)
"""

from __future__ import annotations

import logging
import traceback
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fanrise.config import Settings
from fanrise.core.errors import ErrorCode, FanriseError, InternalError
from fanrise.core.utils import utc_now

logger = logging.getLogger(__name__)


def error_body(message: str, code: ErrorCode, **extra: Any) -> dict[str, Any]:
    return {
        "message": message,
        "code": code.value,
        "timestamp": utc_now().isoformat(),
        **extra,
    }


def _field_name(loc: tuple | list) -> str:
    # ("body", "email") -> "email"; ("query", "page") -> "page"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "request"


def _clean_message(msg: str) -> str:
    prefix = "Value error, "
    return msg[len(prefix):] if msg.startswith(prefix) else msg


_HTTP_STATUS_CODES: dict[int, ErrorCode] = {
    status.HTTP_401_UNAUTHORIZED: ErrorCode.UNAUTHENTICATED,
    status.HTTP_403_FORBIDDEN: ErrorCode.FORBIDDEN,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
}


def setup_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Register all exception handlers on the app."""

    @app.exception_handler(FanriseError)
    async def fanrise_error_handler(request: Request, exc: FanriseError) -> JSONResponse:
        extra = exc.to_dict()
        message = extra.pop("message")
        extra.pop("code")
        if isinstance(exc, InternalError):
            # Logged in full, but clients only see the generic message
            logger.error(
                f"Internal error on {request.method} {request.url.path}: {exc.message}",
                exc_info=exc,
            )
            message = InternalError.default_message
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(message, exc.code, **extra),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = [
            {"field": _field_name(err.get("loc", ())), "message": _clean_message(err.get("msg", ""))}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("Validation failed", ErrorCode.VALIDATION_ERROR, errors=errors),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code = _HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.HTTP_ERROR)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail), code),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        extra: dict[str, Any] = {}
        if not settings.is_production:
            extra["details"] = str(exc)
            extra["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(
                "Something went wrong on the server",
                ErrorCode.INTERNAL_ERROR,
                **extra,
            ),
        )
