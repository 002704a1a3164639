"""
Exception Handlers for the FastAPI Application.

Provider and service errors carry their own HTTP status and a message that
is safe to return. Anything else reaches the global handler, which logs the
full context and answers 500 with an error ID clients can quote when
reporting the problem.
"""

import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from matlinks.auth.errors import AuthProviderError
from matlinks.billing.errors import PaymentProviderError
from matlinks.core.logging_config import get_logger
from matlinks.core.monitoring import log_error
from matlinks.server.services.errors import ServiceError

logger = get_logger(__name__)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def payment_provider_error_handler(request: Request, exc: PaymentProviderError) -> JSONResponse:
    """
    Answer a failed Stripe call.

    Card errors keep Stripe's message; other failures get a generic one so
    that API keys and request details never leak to clients.
    """
    log_error(
        "payment_provider_error",
        exc.message,
        {"kind": exc.kind.value, "code": exc.code, "path": request.url.path},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.public_message, "error_type": exc.kind.value},
    )


async def auth_provider_error_handler(request: Request, exc: AuthProviderError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} auth provider error ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler to log detailed error information.

    This handler is called for any unhandled exception in the application.
    It logs the full error context and returns a JSON response with an error ID
    that clients can use to reference the error when reporting issues.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with error details and error ID
    """
    error_id = id(exc)

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(PaymentProviderError, payment_provider_error_handler)
    app.add_exception_handler(AuthProviderError, auth_provider_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")
