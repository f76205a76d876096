from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class JiraMediatorError(Exception):
    """Base class for every failure raised by the mediator."""


class MalformedInput(JiraMediatorError):
    """Caller input cannot be represented on the wire. Raised before any request."""


class RemoteRejected(JiraMediatorError):
    """
    The JIRA server answered with a non-success status.

    `messages` holds the server's errorMessages (or the raw body text when the
    body was not in JIRA's error format) and `errors` holds the per-field map.
    """

    def __init__(
        self,
        status_code: int,
        messages: Optional[Sequence[str]] = None,
        errors: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        self.messages: List[str] = list(messages or [])
        self.errors: Dict[str, Any] = dict(errors or {})
        super().__init__(self._describe())

    def _describe(self) -> str:
        parts = list(self.messages)
        parts.extend(f"{name}: {text}" for name, text in self.errors.items())
        detail = "; ".join(parts) if parts else "no details"
        return f"JIRA responded with {self.status_code}: {detail}"


class NotFound(RemoteRejected):
    """404 on a key-addressed call."""

    def __init__(
        self,
        key: str,
        messages: Optional[Sequence[str]] = None,
        errors: Optional[Dict[str, Any]] = None,
    ):
        self.key = key
        super().__init__(404, messages, errors)


class InvalidTransition(JiraMediatorError):
    """The named transition matched zero, or more than one, available transition."""

    def __init__(self, name: str, available: Sequence[str]):
        self.name = name
        self.available = list(available)
        matches = sum(1 for candidate in self.available if candidate == name)
        reason = "is ambiguous" if matches > 1 else "is not available"
        super().__init__(f"Transition '{name}' {reason}; available: {', '.join(self.available) or 'none'}")


class ErrorResponse(BaseModel):
    """Standard API error response."""
    error: str = Field(..., description="Short error type")
    message: str = Field(..., description="Human readable error message")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Optional extra details")


def _error_json(error: str, message: str, status_code: int, details: Optional[Dict[str, Any]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, message=message, details=details).model_dump(),
    )


def install_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(HTTPException)
    async def http_exception_handler(_: Request, exc: HTTPException):
        return _error_json("HTTPException", str(exc.detail), exc.status_code)

    @app.exception_handler(NotFound)
    async def not_found_handler(_: Request, exc: NotFound):
        return _error_json("NotFound", f"Issue '{exc.key}' not found", 404, {"messages": exc.messages})

    @app.exception_handler(RemoteRejected)
    async def remote_rejected_handler(_: Request, exc: RemoteRejected):
        logger.warning("JIRA rejected request: %s", exc)
        status_code = exc.status_code if exc.status_code >= 400 else 502
        return _error_json(
            "RemoteRejected",
            str(exc),
            status_code,
            {"upstream_status": exc.status_code, "messages": exc.messages, "errors": exc.errors},
        )

    @app.exception_handler(InvalidTransition)
    async def invalid_transition_handler(_: Request, exc: InvalidTransition):
        return _error_json("InvalidTransition", str(exc), 409, {"name": exc.name, "available": exc.available})

    @app.exception_handler(MalformedInput)
    async def malformed_input_handler(_: Request, exc: MalformedInput):
        return _error_json("MalformedInput", str(exc), 422)

    @app.exception_handler(httpx.RequestError)
    async def httpx_request_error_handler(_: Request, exc: httpx.RequestError):
        logger.error("httpx RequestError: %s", exc)
        return _error_json("UpstreamRequestError", "Failed to contact upstream service", 502)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return _error_json("InternalServerError", "An unexpected error occurred", 500)
