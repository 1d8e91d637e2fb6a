"""
Error Handling Module for LedgerBooks

This module provides centralized error handling with:
- Custom exception hierarchy
- Standardized {"success": false, "message": ...} error envelope
- Error logging
- Database error translation
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union
from uuid import UUID
import logging

from fastapi import FastAPI, Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("ledgerbooks.errors")


class ErrorCode(str, Enum):
    """Standardized error codes for the application"""

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    UNBALANCED_VOUCHER = "UNBALANCED_VOUCHER"
    INVALID_FINANCIAL_YEAR = "INVALID_FINANCIAL_YEAR"

    # Authentication/Authorization Errors
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    VOUCHER_NOT_FOUND = "VOUCHER_NOT_FOUND"
    FINANCIAL_YEAR_NOT_FOUND = "FINANCIAL_YEAR_NOT_FOUND"
    PENDING_CHANGE_NOT_FOUND = "PENDING_CHANGE_NOT_FOUND"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"

    # Business Rule Errors
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"
    FINANCIAL_YEAR_CLOSED = "FINANCIAL_YEAR_CLOSED"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"

    # System Errors
    DATABASE_ERROR = "DATABASE_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(Exception):
    """Base exception for all application exceptions"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.field = field
        self.original_error = original_error
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        result = {
            "code": self.code.value,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result


# ============================================================================
# Validation Exceptions
# ============================================================================

class ValidationException(AppException):
    """Input validation failed"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
            field=field,
        )


class UnbalancedVoucherException(ValidationException):
    """Voucher debits and credits do not agree"""

    def __init__(self, total_debit: Any, total_credit: Any):
        super().__init__(
            message="Total Debit must equal Total Credit",
            field="entries",
            details={"total_debit": str(total_debit), "total_credit": str(total_credit)},
            code=ErrorCode.UNBALANCED_VOUCHER,
        )


# ============================================================================
# Authentication/Authorization Exceptions
# ============================================================================

class AuthenticationException(AppException):
    """Caller could not be identified"""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            code=ErrorCode.UNAUTHORIZED,
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class AuthorizationException(AppException):
    """Caller is not allowed to perform the operation"""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            code=ErrorCode.FORBIDDEN,
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
        )


# ============================================================================
# Resource Exceptions
# ============================================================================

class NotFoundException(AppException):
    """Resource not found exception"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[Union[str, UUID]] = None,
        message: Optional[str] = None,
        code: ErrorCode = ErrorCode.NOT_FOUND,
    ):
        if message is None:
            if resource_id:
                message = f"{resource_type} with ID '{resource_id}' not found"
            else:
                message = f"{resource_type} not found"
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": str(resource_id) if resource_id else None},
        )


class AccountNotFoundException(NotFoundException):
    """Account not found"""

    def __init__(self, account_id: Union[str, UUID]):
        super().__init__(
            resource_type="Account",
            resource_id=account_id,
            code=ErrorCode.ACCOUNT_NOT_FOUND,
        )


class VoucherNotFoundException(NotFoundException):
    """Voucher not found"""

    def __init__(self, voucher_id: Union[str, UUID]):
        super().__init__(
            resource_type="Voucher",
            resource_id=voucher_id,
            code=ErrorCode.VOUCHER_NOT_FOUND,
        )


class DuplicateEntryException(AppException):
    """A unique key is already taken"""

    def __init__(
        self,
        resource_type: str,
        field: str,
        value: Any,
        message: Optional[str] = None,
    ):
        if message is None:
            message = f"{resource_type} with {field} '{value}' already exists"
        super().__init__(
            code=ErrorCode.DUPLICATE_ENTRY,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"resource_type": resource_type, "field": field, "value": str(value)},
            field=field,
        )


# ============================================================================
# Business Rule Exceptions
# ============================================================================

class BusinessRuleException(AppException):
    """Business rule violation"""

    def __init__(
        self,
        message: str,
        rule: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.BUSINESS_RULE_VIOLATION,
    ):
        details = dict(details or {})
        if rule:
            details["rule"] = rule
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class FinancialYearClosedException(BusinessRuleException):
    """Posting or editing inside a closed financial year"""

    def __init__(self, year_code: str, operation: str = "posting"):
        super().__init__(
            message=f"Financial year {year_code} is closed for {operation}",
            rule="closed_financial_year",
            details={"year_code": year_code, "operation": operation},
            code=ErrorCode.FINANCIAL_YEAR_CLOSED,
        )


# ============================================================================
# Exception Handlers
# ============================================================================

def create_error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
    field: Optional[str] = None,
) -> JSONResponse:
    """Create a standardized error response"""
    error = {
        "code": code.value,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if field:
        error["field"] = field
    if details:
        error["details"] = details

    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "error": error},
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle AppException"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"AppException: {exc.code.value} - {exc.message}",
        extra={
            "code": exc.code.value,
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=exc.original_error,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "error": exc.to_dict()},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTPException"""
    code_map = {
        400: ErrorCode.INVALID_INPUT,
        401: ErrorCode.UNAUTHORIZED,
        403: ErrorCode.FORBIDDEN,
        404: ErrorCode.NOT_FOUND,
        422: ErrorCode.VALIDATION_ERROR,
    }

    error_code = code_map.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    logger.warning(
        f"HTTPException: {exc.status_code} - {message}",
        extra={"path": request.url.path, "method": request.method},
    )

    return create_error_response(
        code=error_code,
        message=message,
        status_code=exc.status_code,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors as 400s"""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(
        f"ValidationError: {len(errors)} validation errors",
        extra={"path": request.url.path, "method": request.method},
    )

    message = "Request validation failed"
    if errors:
        message = f"{errors[0]['field']}: {errors[0]['message']}"

    return create_error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message=message,
        status_code=status.HTTP_400_BAD_REQUEST,
        details={"errors": errors},
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle SQLAlchemy errors"""
    error_message = "A database error occurred"
    error_code = ErrorCode.DATABASE_ERROR
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exc, IntegrityError):
        error_str = str(exc.orig).lower() if exc.orig else ""
        if "unique" in error_str or "duplicate" in error_str:
            error_message = "A record with this value already exists"
            error_code = ErrorCode.DUPLICATE_ENTRY
            status_code = status.HTTP_400_BAD_REQUEST
        elif "foreign key" in error_str:
            error_message = "Referenced record does not exist"
            error_code = ErrorCode.INVALID_INPUT
            status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, OperationalError):
        error_message = "Database operation failed"
        error_code = ErrorCode.CONNECTION_ERROR

    logger.error(
        f"SQLAlchemyError: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    return create_error_response(
        code=error_code,
        message=error_message,
        status_code=status_code,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions"""
    logger.critical(
        f"UnhandledException: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    return create_error_response(
        code=ErrorCode.INTERNAL_ERROR,
        message="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = [
    # Base
    "AppException",
    "ErrorCode",

    # Validation
    "ValidationException",
    "UnbalancedVoucherException",

    # Auth
    "AuthenticationException",
    "AuthorizationException",

    # Resources
    "NotFoundException",
    "AccountNotFoundException",
    "VoucherNotFoundException",
    "DuplicateEntryException",

    # Business rules
    "BusinessRuleException",
    "FinancialYearClosedException",

    # Handlers
    "create_error_response",
    "setup_exception_handlers",
]
