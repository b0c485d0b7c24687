"""Exception handlers for the HTTP boundary.

Domain errors carry a machine-readable ``code``; the envelope returned to
clients is ``{"status": "error", "code": ..., "message": ...}``.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from repoverse.domain.exceptions import (
    RateLimitExceededError,
    RepositoryFetchError,
    RepoverseError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[RepoverseError], int] = {
    UserNotFoundError: 404,
    RateLimitExceededError: 429,
    RepositoryFetchError: 502,
}


def _envelope(
    status_code: int,
    code: str,
    message: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "code": code, "message": message},
        headers=headers,
    )


def _status_for(exc: RepoverseError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[cls]
    return 500


async def _domain_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RepoverseError)
    status_code = _status_for(exc)
    logger.warning("%s on %s: %s", exc.code, request.url.path, exc)

    headers = None
    if isinstance(exc, RateLimitExceededError) and exc.reset_epoch:
        headers = {"Retry-After": str(max(0, exc.reset_epoch - int(time.time())))}
    return _envelope(status_code, exc.code, str(exc), headers)


async def _validation_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    problems = [
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p not in ('path', 'query'))}: "
        f"{err.get('msg', 'invalid value')}"
        for err in exc.errors()
    ]
    return _envelope(422, "INVALID_REQUEST", "; ".join(problems))


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return _envelope(500, "INTERNAL_ERROR", "Something went wrong while building the universe.")


def register_error_handlers(app: FastAPI) -> None:
    """Attach the domain, validation and catch-all handlers to *app*."""
    app.add_exception_handler(RepoverseError, _domain_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(Exception, _unexpected_error)
