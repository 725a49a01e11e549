"""Global exception handlers for consistent error responses.

Every failure leaves the service as ``{"error": str, "details"?: str}``; rate
limit rejections use ``{"error": str, "retryAfterSeconds": int}``.

Design:
- AppError subclasses → the status they carry (400, 429, upstream status, 500)
- Starlette HTTPException (404, 405) → same flat shape
- Unexpected Exception → 500 (safety net)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chat_proxy.core.errors import AppError, RateLimitAppError
from chat_proxy.core.logging import get_request_id

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render a domain error with the status code it carries.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the flat error body.
    """
    status_code = exc.status_code

    logger.log(
        logging.ERROR if status_code >= 500 else logging.WARNING,
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    if isinstance(exc, RateLimitAppError):
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.message, "retryAfterSeconds": exc.retry_after_seconds},
            headers=exc.headers or None,
        )

    content = {"error": exc.message}
    if exc.details is not None:
        content["details"] = exc.details

    return JSONResponse(status_code=status_code, content=content)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing errors (unknown path, wrong method) in the flat shape."""

    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 405:
        message = "Method not allowed"

    logger.info(
        "http_error_handled",
        extra={
            "status_code": exc.status_code,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Returns the exception's message text as ``details`` but never a traceback
    or the exception type.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with status 500.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={"error": INTERNAL_ERROR_MESSAGE, "details": str(exc)},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
