"""
Custom exceptions and error handlers for consistent error responses.

Every rejected mutation is rendered with ``outcome = REJECTED`` plus the
error code and the rule that was violated, so callers can tell a rejection
apart from a fully or partially applied mutation.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import DBAPIError
from typing import Any, Dict, List, Optional

logger = logging.getLogger("freight.errors")

REJECTED = "REJECTED"


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class ValidationError(AppException):
    """
    Raised when a financial document or ledger entry breaks a validation rule.

    ``rule`` names the violated rule (e.g. GST_REGIME_EXCLUSIVE) and is part
    of the error code.
    """

    def __init__(self, rule: str, message: str, details: Dict[str, Any] = None):
        self.rule = rule
        super().__init__(
            message=message,
            error_code=f"ERR_VALIDATION_{rule}",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"rule": rule, **(details or {})}
        )


class EligibilityError(AppException):
    """Raised when shipments referenced by an invoice cannot be billed."""

    def __init__(self, reasons: List[Dict[str, str]]):
        self.reasons = reasons
        super().__init__(
            message="Invoice cannot be created",
            error_code="ERR_BILL_INELIGIBLE",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"rule": "SHIPMENT_INELIGIBLE", "reasons": reasons}
        )


class ConflictError(AppException):
    """
    Raised when a shipment is already billed by another invoice.

    Scoped to a single AWB: the billing flow catches it and reports the line
    as failed instead of aborting the whole invoice.
    """

    def __init__(self, awb_no: str, bill_no: Optional[str] = None):
        self.awb_no = awb_no
        self.bill_no = bill_no
        message = f"Shipment {awb_no} is already billed"
        if bill_no:
            message = f"Shipment {awb_no} is already billed on {bill_no}"
        super().__init__(
            message=message,
            error_code="ERR_CONFLICT_ALREADY_BILLED",
            status_code=status.HTTP_409_CONFLICT,
            details={"awb_no": awb_no, "bill_no": bill_no}
        )


class DuplicateDocumentError(AppException):
    """Raised when a document number is already taken."""

    def __init__(self, document_no: str):
        super().__init__(
            message=f"Document {document_no} already exists",
            error_code="ERR_CONFLICT_DUPLICATE",
            status_code=status.HTTP_409_CONFLICT,
            details={"document_no": document_no}
        )


class ClubLockedError(AppException):
    """Raised when a locked club batch is edited or deleted."""

    def __init__(self, club_no: str):
        super().__init__(
            message=f"Club {club_no} is locked",
            error_code="ERR_CLUB_LOCKED",
            status_code=status.HTTP_409_CONFLICT,
            details={"club_no": club_no}
        )


class StorageError(AppException):
    """Raised when the underlying store is unavailable. Never retried in-core."""

    def __init__(self, message: str = "Storage unavailable"):
        super().__init__(
            message=message,
            error_code="ERR_STORAGE_UNAVAILABLE",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "outcome": REJECTED,
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "outcome": REJECTED,
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "outcome": REJECTED,
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
                    for err in exc.errors()
                ]
            }
        }
    )


async def storage_exception_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    """Handler for database driver failures that escaped a service."""
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc.orig)
    return await app_exception_handler(request, StorageError())


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
