"""
Error taxonomy and the handlers that turn it into JSON responses.

Every failure is converted at the boundary of the operation that detected
it into ``{"message": ..., "error": ...}`` with a matching status code.
Nothing here retries.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message if detail is None else f"{self.message}: {detail}")

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        if self.detail:
            body["error"] = self.detail
        return body


# ── Identity ───────────────────────────────────────────────────────────


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized. Please log in."


class InvalidState(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid or expired state parameter."


class UnresolvedIdentity(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "User not found. Please log in again."


# ── Caller input ───────────────────────────────────────────────────────


class MissingCode(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Authorization code is required."


class InvalidRequest(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request."


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


# ── Delegated credentials ──────────────────────────────────────────────


class NotConnected(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Google account not connected."


class CredentialInvalid(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Google authorization is no longer valid. Please reconnect your Google account."


# ── Provider ───────────────────────────────────────────────────────────


class ExchangeFailed(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to connect Google account."


class SendFailed(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to send email."


# ── Handlers ───────────────────────────────────────────────────────────


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed."
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": message},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    names = (".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors())
    fields = ", ".join(name for name in names if name)
    content: Dict[str, Any] = {"message": "Malformed request."}
    if fields:
        content["error"] = f"Invalid fields: {fields}"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach JSON error rendering for the taxonomy above."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
