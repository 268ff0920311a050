"""
Centralized API Error Handling
Maps core exceptions to consistent JSON error responses
"""

import json
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from agrosync.core.exceptions import (
    AgroSyncError, EntityNotFoundError, LocalStoreUnavailableError, UnknownEntityTypeError
)
from .schemas import ErrorCode, APIErrorResponse, APIErrorDetail

logger = logging.getLogger(__name__)


class DateTimeEncoder(json.JSONEncoder):
    """Custom JSON encoder that handles datetime objects"""
    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


def safe_json_response(content: Dict[str, Any], status_code: int = 200) -> JSONResponse:
    """Create JSONResponse with datetime-safe serialization"""
    json_content = json.loads(json.dumps(content, cls=DateTimeEncoder))
    return JSONResponse(status_code=status_code, content=json_content)


class APIError(Exception):
    """API error with standardized error codes"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[List[APIErrorDetail]] = None,
        request_id: Optional[str] = None
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or []
        self.request_id = request_id or str(uuid.uuid4())
        super().__init__(message)


class ValidationAPIError(APIError):
    """Validation-specific API error"""

    def __init__(self, message: str, field_errors: List[APIErrorDetail]):
        super().__init__(
            message=message,
            error_code=ErrorCode.VALIDATION_ERROR,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=field_errors
        )


# Core exception -> (status code, error code)
_CORE_ERROR_MAPPING = {
    EntityNotFoundError: (status.HTTP_404_NOT_FOUND, ErrorCode.NOT_FOUND),
    UnknownEntityTypeError: (status.HTTP_400_BAD_REQUEST, ErrorCode.UNKNOWN_ENTITY_TYPE),
    LocalStoreUnavailableError: (status.HTTP_503_SERVICE_UNAVAILABLE, ErrorCode.LOCAL_STORE_UNAVAILABLE),
}


def _error_response(message: str, error_code: ErrorCode, status_code: int,
                    details: Optional[List[APIErrorDetail]] = None,
                    request_id: Optional[str] = None) -> JSONResponse:
    error_response = APIErrorResponse(
        error=message,
        error_code=error_code,
        details=details or None,
        request_id=request_id or str(uuid.uuid4())
    )
    return safe_json_response(content=error_response.model_dump(), status_code=status_code)


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handler for APIError"""
    logger.error(f"API Error: {exc.message} (code: {exc.error_code.value}, request_id: {exc.request_id})")
    return _error_response(exc.message, exc.error_code, exc.status_code, exc.details, exc.request_id)


async def core_error_handler(request: Request, exc: AgroSyncError) -> JSONResponse:
    """Handler for exceptions raised by the data layer"""
    status_code, error_code = status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.INTERNAL_ERROR
    for exc_type, mapping in _CORE_ERROR_MAPPING.items():
        if isinstance(exc, exc_type):
            status_code, error_code = mapping
            break

    log = logger.error if status_code >= 500 else logger.warning
    log(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")
    return _error_response(str(exc), error_code, status_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """HTTP exception handler with standardized format"""
    error_code_mapping = {
        401: ErrorCode.UNAUTHORIZED,
        404: ErrorCode.NOT_FOUND,
        422: ErrorCode.VALIDATION_ERROR,
    }
    error_code = error_code_mapping.get(exc.status_code, ErrorCode.INTERNAL_ERROR)

    logger.warning(f"HTTP Exception: {exc.detail} (status: {exc.status_code})")
    response = _error_response(str(exc.detail), error_code, exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors"""
    field_errors = [
        APIErrorDetail(
            field=" -> ".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            code=error["type"]
        )
        for error in exc.errors()
    ]

    logger.warning(f"Validation Error: {len(field_errors)} field errors")
    return _error_response("Validation failed", ErrorCode.VALIDATION_ERROR,
                           status.HTTP_422_UNPROCESSABLE_ENTITY, field_errors)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler"""
    request_id = str(uuid.uuid4())
    logger.error(f"Unhandled exception: {exc} (request_id: {request_id})", exc_info=True)
    return _error_response("Internal server error", ErrorCode.INTERNAL_ERROR,
                           status.HTTP_500_INTERNAL_SERVER_ERROR, request_id=request_id)


def register_error_handlers(app: FastAPI):
    app.exception_handler(APIError)(api_error_handler)
    app.exception_handler(AgroSyncError)(core_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
