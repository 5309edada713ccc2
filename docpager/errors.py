"""
Pagination error classes and utilities.

Provides:
- Error code registry for every pagination failure
- Base exception class carrying code, details and HTTP status
- Shared error response model
- Utility to convert exceptions to error responses
- (Optional) FastAPI exception handler registration

Common Usage Patterns:
=====================

Raising from the engine:
>>> from docpager.errors import ReservedFieldError
>>>
>>> raise ReservedFieldError("__proto__")

Converting for an API envelope:
>>> from docpager.errors import exception_to_response
>>>
>>> try:
...     paginator.get_pipeline()
... except Exception as e:
...     error_response = exception_to_response(e)

FastAPI Integration:
>>> from fastapi import FastAPI
>>> from docpager.errors import register_pagination_exception_handlers
>>>
>>> app = FastAPI()
>>> register_pagination_exception_handlers(app)

Error Code Taxonomy:
===================
- RESERVED_FIELD : cursor or filter field collides with an unsafe token (422)
- INVALID_CURSOR : opaque cursor cannot be decoded for its type (422)
- INVALID_LIMIT : effective page size is not positive (422)
- UNSUPPORTED_FILTER_OPERATOR : unknown match operator in strict mode (422)
- PAGE_INFO_NOT_SET : result projected before counts were supplied (500)
- AGGREGATE_RESULT_INVALID : executor returned an unusable document (502)
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import FastAPI
from pydantic import BaseModel


class ErrorCode(str, Enum):
    """
    Standardized error codes for the pagination engine.

    Error codes follow the ALL_CAPS naming convention and are copied into the
    ``details`` of every error response under the ``code`` key.
    """

    # ==========================================
    # GENERAL ERRORS
    # ==========================================
    VALIDATION_FAILED = "VALIDATION_FAILED"  # HTTP 422 - Input validation failed
    INTERNAL_ERROR = "INTERNAL_ERROR"  # HTTP 500 - Generic internal error

    # ==========================================
    # REQUEST ERRORS (422 Unprocessable Entity)
    # ==========================================
    RESERVED_FIELD = "RESERVED_FIELD"  # Field name is an unsafe token
    INVALID_CURSOR = "INVALID_CURSOR"  # Cursor cannot be decoded
    INVALID_LIMIT = "INVALID_LIMIT"  # Page size is not positive
    UNSUPPORTED_FILTER_OPERATOR = (
        "UNSUPPORTED_FILTER_OPERATOR"  # Unknown match operator
    )

    # ==========================================
    # USAGE ERRORS (500 Internal Server Error)
    # ==========================================
    PAGE_INFO_NOT_SET = "PAGE_INFO_NOT_SET"  # get() called before set_page_info()

    # ==========================================
    # EXECUTOR ERRORS (502 Bad Gateway)
    # ==========================================
    AGGREGATE_RESULT_INVALID = "AGGREGATE_RESULT_INVALID"  # Unusable facet output


class ErrorResponse(BaseModel):
    """
    Standardized error response model.

    Attributes:
        type: Error type categorization (e.g., "validation_error")
        message: Human-readable error message
        details: Optional dictionary containing additional error context
        timestamp: ISO 8601 timestamp of when the error occurred
        request_id: Unique identifier for tracing and debugging purposes
    """

    type: str
    message: str
    details: Optional[Dict[str, Any]] = None
    timestamp: str
    request_id: str


class PaginationError(Exception):
    """
    Base exception class for all pagination errors.

    Attributes:
        message: Human-readable error message
        details: Dictionary containing additional error context
        error_type: Categorization of the error (validation_error, usage_error, etc.)
        error_code: Specific error code from the ErrorCode enum
        status_code: HTTP status code a caller should map this error to
        timestamp: ISO 8601 timestamp when error occurred
        request_id: Unique identifier for request tracing

    Example:
        >>> error = PaginationError("Something broke")
        >>> error.to_error_response().type
        'internal_error'
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_type: str = "internal_error",
        error_code: Optional[ErrorCode] = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        request_id: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        self.error_type = error_type
        self.error_code = error_code
        self.status_code = status_code
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.request_id = request_id or str(uuid.uuid4())
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """
        Convert exception to ErrorResponse Pydantic model.

        Includes the error code in details if present.

        Returns:
            ErrorResponse: Pydantic model ready for JSON serialization
        """
        details = {
            **self.details,
            **({"code": self.error_code.value} if self.error_code else {}),
        }
        return ErrorResponse(
            type=self.error_type,
            message=self.message,
            details=details if details else None,
            timestamp=self.timestamp,
            request_id=self.request_id,
        )


class ReservedFieldError(PaginationError):
    """
    Raised when a cursor or filter field name is a reserved/unsafe token.

    Args:
        field: The rejected field name
        details: Optional additional context
    """

    def __init__(self, field: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Reserved word can not be used as field: {field!r}",
            details={**(details or {}), "field": field},
            error_type="validation_error",
            error_code=ErrorCode.RESERVED_FIELD,
            status_code=422,
        )
        self.field = field


class InvalidCursorError(PaginationError):
    """
    Raised when an opaque cursor cannot be decoded for its declared type.

    Args:
        cursor: The cursor string that failed to decode
        cursor_type: The declared cursor type
        reason: Why decoding failed
    """

    def __init__(
        self,
        cursor: Any,
        cursor_type: str,
        reason: str = "malformed cursor",
    ):
        super().__init__(
            message=f"Invalid cursor for type {cursor_type}: {reason}",
            details={
                "cursor": str(cursor),
                "cursor_type": cursor_type,
                "reason": reason,
            },
            error_type="validation_error",
            error_code=ErrorCode.INVALID_CURSOR,
            status_code=422,
        )
        self.cursor = cursor
        self.cursor_type = cursor_type
        self.reason = reason


class InvalidLimitError(PaginationError):
    """Raised when the effective page size is not a positive integer."""

    def __init__(self, limit: Any):
        super().__init__(
            message=f"Page size must be a positive integer, got {limit!r}",
            details={"limit": str(limit)},
            error_type="validation_error",
            error_code=ErrorCode.INVALID_LIMIT,
            status_code=422,
        )
        self.limit = limit


class UnsupportedFilterOperatorError(PaginationError):
    """
    Raised for an unknown match operator when the compiler runs in strict mode.

    In the default mode the offending clause is dropped instead.
    """

    def __init__(self, field: str, operator: Any):
        super().__init__(
            message=f"Unsupported filter operator {operator!r} on field {field!r}",
            details={"field": field, "operator": str(operator)},
            error_type="validation_error",
            error_code=ErrorCode.UNSUPPORTED_FILTER_OPERATOR,
            status_code=422,
        )
        self.field = field
        self.operator = operator


class PageInfoNotSetError(PaginationError):
    """Raised when a page is projected before its counts were supplied."""

    def __init__(self) -> None:
        super().__init__(
            message="Page info is not set; call set_page_info() before get()",
            error_type="usage_error",
            error_code=ErrorCode.PAGE_INFO_NOT_SET,
            status_code=500,
        )


class AggregateResultError(PaginationError):
    """Raised when the executor returns a result the engine cannot read."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Invalid aggregate result: {reason}",
            details=details,
            error_type="executor_error",
            error_code=ErrorCode.AGGREGATE_RESULT_INVALID,
            status_code=502,
        )


def exception_to_response(exc: Exception) -> ErrorResponse:
    """
    Convert any exception to a standardized ErrorResponse Pydantic model.

    1. PaginationError: Uses the built-in to_error_response() method
    2. Generic Exception: Creates a safe internal error response

    Args:
        exc: Any Python exception to convert

    Returns:
        ErrorResponse: Standardized Pydantic model ready for JSON serialization

    Note:
        Generic exceptions are converted to "internal_error" responses; only
        the original exception type is kept in the details.
    """
    if isinstance(exc, PaginationError):
        return exc.to_error_response()
    return ErrorResponse(
        type="internal_error",
        message="Internal server error",
        details={"error_type": type(exc).__name__},
        timestamp=datetime.now(timezone.utc).isoformat(),
        request_id=str(uuid.uuid4()),
    )


def register_pagination_exception_handlers(app: FastAPI) -> None:
    """
    Register an exception handler for pagination errors on a FastAPI app.

    Every PaginationError raised from a route is returned as a JSON
    ErrorResponse with the error's own status code.

    Args:
        app: FastAPI application instance to register handlers on
    """
    from fastapi import Request
    from fastapi.responses import JSONResponse

    @app.exception_handler(PaginationError)
    async def pagination_exception_handler(
        request: Request, exc: PaginationError
    ) -> JSONResponse:
        error_response = exc.to_error_response()
        return JSONResponse(
            status_code=exc.status_code, content=error_response.model_dump()
        )
