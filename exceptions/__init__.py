"""
Custom exceptions module.

Usage:
    from exceptions import ExtractionError, PersistenceError
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    DatabaseError,

    # Catalog
    PersistenceError,

    # Document import
    ExtractionError,
    InvalidMappingError,
    ImportSessionNotFoundError,
    ExtractedItemNotFoundError,
    MappingNotFoundError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "DatabaseError",

    # Catalog
    "PersistenceError",

    # Document import
    "ExtractionError",
    "InvalidMappingError",
    "ImportSessionNotFoundError",
    "ExtractedItemNotFoundError",
    "MappingNotFoundError",
]
