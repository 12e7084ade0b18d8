"""
Error Module

Application errors carry the HTTP status they map to; the handlers registered
by `register_error_handlers` render them into the response envelope.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that are reported to the client as-is."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = 400


class ConflictError(AppError):
    """Duplicate of an existing record (reported as 400)."""

    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class UpstreamError(AppError):
    """The external metadata API could not serve the request."""

    status_code = 502


class RepoNotFoundError(UpstreamError):
    status_code = 404


class RateLimitedError(UpstreamError):
    status_code = 429

    def __init__(self, message: str = "GitHub API rate limit exceeded", reset_at: Optional[str] = None):
        if reset_at:
            message = f"{message}. Resets at: {reset_at}"
        super().__init__(message)
        self.reset_at = reset_at


class TransportError(UpstreamError):
    status_code = 502


def _envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"success": False, "message": message}
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return _envelope(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        problems = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            problems.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
        return _envelope(400, "; ".join(problems) or "Invalid request")

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return _envelope(500, "Internal server error")
