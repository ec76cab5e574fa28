"""
Application exceptions and the handlers that map them to HTTP responses.

Error taxonomy:
- request validation      -> 400, field-level messages
- authentication          -> 401 (raised as HTTPException in api.deps)
- wrong role              -> 403
- missing or not owned    -> 404 (same response for both)
- upstream AI failure     -> 500, generic message outside development
- anything else           -> 500 "Internal server error"
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from eduvoice.config import Settings, sanitize_error

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """The AI gateway call failed (transport error or non-2xx status)."""

    generic_message = "AI service request failed."

    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class GenerationError(GatewayError):
    """The gateway answered but the output is not the structure we asked for."""

    generic_message = "AI service returned an invalid response."


def format_validation_errors(exc: RequestValidationError) -> str:
    """Flatten validation errors into 'field: message; field: message'."""
    parts = []
    for error in exc.errors():
        loc = [str(p) for p in error.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc)
        parts.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": format_validation_errors(exc),
            "errors": jsonable_encoder(exc.errors(), custom_encoder={Exception: str}),
        },
    )


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Install the error taxonomy on an application."""

    async def gateway_exception_handler(request: Request, exc: GatewayError) -> JSONResponse:
        logger.exception(
            "AI gateway failure on %s %s (upstream status=%s): %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": sanitize_error(exc, settings=settings, generic_message=exc.generic_message)},
        )

    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(GatewayError, gateway_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
