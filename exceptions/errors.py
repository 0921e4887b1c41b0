"""
Custom exception classes for the application.

Every error carries a stable code, an HTTP status and a details dict so
routes can hand it straight back to the client.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "MAPPING_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# CATALOG ERRORS
# ===================

class PersistenceError(AppError):
    """
    A single catalog create/update call failed.

    Carries the identity of the item being written so a failed import row
    can be fixed by hand.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        item_id: Optional[str] = None,
        item_name: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.operation = operation
        self.item_id = item_id
        self.item_name = item_name
        super().__init__(
            code="PERSISTENCE_ERROR",
            message=message,
            status_code=500,
            details={
                "operation": operation,
                "item_id": item_id,
                "item_name": item_name,
                **(details or {})
            }
        )


# ===================
# DOCUMENT IMPORT ERRORS
# ===================

class ExtractionError(ValidationError):
    """Uploaded document text could not be read."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="EXTRACTION_ERROR",
            message=message,
            details=details
        )


class InvalidMappingError(ValidationError):
    """One or more mappings cannot be finalized."""

    def __init__(self, problems: list[dict]):
        self.problems = problems
        super().__init__(
            code="INVALID_MAPPING",
            message=f"{len(problems)} mapping(s) cannot be imported",
            details={"problems": problems}
        )


class ImportSessionNotFoundError(NotFoundError):
    """Import session expired or never existed."""

    def __init__(self, session_id: str):
        super().__init__(
            resource="Import session",
            identifier=session_id,
            code="IMPORT_SESSION_NOT_FOUND"
        )


class ExtractedItemNotFoundError(NotFoundError):
    """Extracted line item not found in the session."""

    def __init__(self, item_id: str):
        super().__init__(
            resource="Extracted item",
            identifier=item_id,
            code="EXTRACTED_ITEM_NOT_FOUND"
        )


class MappingNotFoundError(NotFoundError):
    """No mapping exists for the extracted item."""

    def __init__(self, extracted_id: str):
        super().__init__(
            resource="Mapping",
            identifier=extracted_id,
            code="MAPPING_NOT_FOUND"
        )
