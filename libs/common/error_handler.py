"""Global exception handlers producing the structured error envelope.

Every error leaves the API as::

    {
        "error": {"code": "NOT_FOUND", "message": "Order not found", "details": null},
        "timestamp": "2025-01-01T00:00:00+00:00",
        "path": "/api/v1/orders/...",
        "request_id": "9f3c..."
    }

``request_id`` matches the ``X-Request-ID`` response header. Clients should
parse ``error.code`` rather than rely on the HTTP status alone.
"""

from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger, get_request_id

logger = get_logger(__name__)

STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_409_CONFLICT: "CONFLICT",
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: "PAYLOAD_TOO_LARGE",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "VALIDATION_ERROR",
    status.HTTP_429_TOO_MANY_REQUESTS: "RATE_LIMITED",
    status.HTTP_500_INTERNAL_SERVER_ERROR: "INTERNAL_SERVER_ERROR",
}


def error_body(
    request: Request,
    code: str,
    message: str,
    details: Optional[Any] = None,
) -> dict:
    return {
        "error": {"code": code, "message": message, "details": details},
        "timestamp": utc_now().isoformat(),
        "path": request.url.path,
        "request_id": get_request_id(),
    }


def _unpack_detail(status_code: int, detail: Any) -> tuple[str, str, Any]:
    """Split an HTTPException detail into (code, message, details).

    Services may raise ``HTTPException(detail={"code": ..., "message": ...})``
    to pick a specific code; plain string details get a status-derived code.
    """
    default_code = STATUS_CODES.get(status_code, "HTTP_EXCEPTION")
    if isinstance(detail, dict):
        return (
            detail.get("code", default_code),
            str(detail.get("message", "")),
            detail.get("details"),
        )
    return default_code, str(detail), None


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    code, message, details = _unpack_detail(exc.status_code, exc.detail)
    if exc.status_code >= 500:
        logger.error("HTTP %s error: %s", exc.status_code, message)
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_body(request, code, message, details)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder(
            error_body(
                request,
                "VALIDATION_ERROR",
                "Request validation failed",
                exc.errors(),
            )
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(request, "INTERNAL_SERVER_ERROR", "Internal server error"),
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Register the structured error handlers on ``app``."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
