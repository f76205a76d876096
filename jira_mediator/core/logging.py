from __future__ import annotations

import logging
import sys
import time
from typing import Callable, Optional

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from .config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
PACKAGE_LOGGER = "jira_mediator"


def _level(name: Optional[str], default: int) -> int:
    if not name:
        return default
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


def configure_logging(settings: Settings) -> logging.Logger:
    """
    Install the stdout handler and apply levels from settings.

    LOG_LEVEL drives the root logger. JIRA_LOG_LEVEL, when set, overrides it for
    the package loggers only, so upstream call lines (DEBUG) can be switched on
    without turning up every library. Returns the package logger.
    """
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
    root_level = _level(settings.LOG_LEVEL, logging.INFO)
    root.setLevel(root_level)

    package = logging.getLogger(PACKAGE_LOGGER)
    package.setLevel(_level(settings.JIRA_LOG_LEVEL, root_level))
    # httpx logs every request at INFO, which duplicates the transport's own lines
    logging.getLogger("httpx").setLevel(max(root_level, logging.WARNING))
    return package


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and latency for each request served."""

    def __init__(self, app, logger_name: str = f"{PACKAGE_LOGGER}.request"):
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next: Callable):
        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            status_code = getattr(response, "status_code", 500)
            self.logger.log(
                logging.WARNING if status_code >= 500 else logging.INFO,
                "%s %s -> %s (%.2f ms)",
                request.method,
                request.url.path,
                status_code,
                (time.perf_counter() - start) * 1000.0,
            )


def install_request_logging(app: FastAPI) -> None:
    """Attach request logging middleware to the app."""
    app.add_middleware(RequestLoggingMiddleware)
