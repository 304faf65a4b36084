"""Global exception handlers giving every service the same error body.

Responses are ``{"detail": "<message>"}`` like FastAPI's own HTTPException.
"""

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from libs.bitable.errors import ExternalServiceError
from libs.common.logging import get_logger

logger = get_logger(__name__)


def _error_response(
    status_code: int, message: str, extra: dict | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"detail": message, **(extra or {})}
    )


async def _domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = getattr(exc, "status_code", 500)
    message = getattr(exc, "message", str(exc))
    if status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {message}")
    return _error_response(status_code, message, getattr(exc, "extra", None))


async def _external_error_handler(
    request: Request, exc: ExternalServiceError
) -> JSONResponse:
    if exc.status_code == 404:
        return _error_response(404, "Record not found")
    logger.error(
        f"External service failure on {request.url.path}: {type(exc).__name__}: {exc}"
    )
    return _error_response(exc.status_code, "Upstream data service error")


async def _transport_error_handler(
    request: Request, exc: httpx.HTTPError
) -> JSONResponse:
    logger.error(f"Upstream request failed on {request.url.path}: {exc!r}")
    return _error_response(502, "Upstream data service unavailable")


def add_exception_handlers(app: FastAPI, *domain_errors: type[Exception]) -> None:
    """
    Register handlers for external-service and transport failures, plus any
    domain error base classes carrying ``status_code`` and ``message``.
    """
    app.add_exception_handler(ExternalServiceError, _external_error_handler)
    app.add_exception_handler(httpx.HTTPError, _transport_error_handler)
    for error_cls in domain_errors:
        app.add_exception_handler(error_cls, _domain_error_handler)
