"""WSGI middleware for request logging and crash recovery."""

from __future__ import annotations

import functools
import logging
import sys
from collections.abc import Callable, Iterable
from typing import Any

logger = logging.getLogger(__name__)

WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]

_ERROR_STATUS = "500 Internal Server Error"
_ERROR_HEADERS = [
    ("Content-Type", "text/plain; charset=utf-8"),
    ("X-Content-Type-Options", "nosniff"),
]
_ERROR_BODY = b"Internal Server Error\n"


def logging_middleware(app: WSGIApp) -> WSGIApp:
    """Log each incoming request at debug level and pass it on."""

    @functools.wraps(app)
    def wrapped(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        logger.debug(
            "[%s] %s", environ.get("REQUEST_METHOD", ""), environ.get("PATH_INFO", "")
        )
        return app(environ, start_response)

    return wrapped


def recovery_middleware(app: WSGIApp) -> WSGIApp:
    """Turn unhandled exceptions into a 500 Internal Server Error response."""

    @functools.wraps(app)
    def wrapped(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        try:
            result = app(environ, start_response)
            try:
                body = list(result)
            finally:
                close = getattr(result, "close", None)
                if close is not None:
                    close()
        except Exception:
            logger.exception("recovered from an unhandled error")
            start_response(_ERROR_STATUS, list(_ERROR_HEADERS), sys.exc_info())
            return [_ERROR_BODY]
        return body

    return wrapped