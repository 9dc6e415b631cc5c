"""Global error handlers for the FastAPI Docker demo."""

# Standard library imports
import traceback

# Third-party imports
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Local application imports
from ..models.errors import ErrorResponse, ErrorType
from .request_helpers import generate_request_id, get_client_ip

logger = structlog.get_logger(__name__)

# Map HTTP status codes to error types
ERROR_TYPE_MAPPING = {
    400: ErrorType.VALIDATION,
    404: ErrorType.RESOURCE_NOT_FOUND,
    405: ErrorType.VALIDATION,
    422: ErrorType.VALIDATION,
    500: ErrorType.INTERNAL_SERVER,
    503: ErrorType.SERVICE_UNAVAILABLE,
    504: ErrorType.TIMEOUT,
}


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions, including 404 for unknown routes."""

    request_id = generate_request_id()
    error_type = ERROR_TYPE_MAPPING.get(exc.status_code, ErrorType.INTERNAL_SERVER)

    logger.warning(
        "HTTP exception occurred",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=request_id,
        path=request.url.path,
        method=request.method,
        client_ip=get_client_ip(request),
    )

    error_response = ErrorResponse(
        error=str(exc.detail), error_type=error_type, request_id=request_id
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""

    request_id = generate_request_id()

    logger.error(
        "Unexpected exception occurred",
        request_id=request_id,
        path=request.url.path,
        method=request.method,
        exception_type=type(exc).__name__,
        exception_message=str(exc),
        traceback=traceback.format_exc(),
    )

    # Don't expose internal details
    error_response = ErrorResponse(
        error="An unexpected error occurred",
        error_type=ErrorType.INTERNAL_SERVER,
        request_id=request_id,
    )

    return JSONResponse(status_code=500, content=error_response.model_dump())


def register_error_handlers(app: FastAPI) -> None:
    """Install the handlers that render every error as an ErrorResponse."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
