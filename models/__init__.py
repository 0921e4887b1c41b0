"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.catalog import (
    DEFAULT_CATEGORY,
    CatalogProduct,
    CategoryRecord,
    ProductCreate,
    ProductUpdate,
)
from models.extraction import (
    ExtractionMethod,
    ExtractedLineItem,
    ExtractedItemCreate,
    ExtractedItemUpdate,
    ExtractionReport,
)
from models.mapping import (
    MappingAction,
    MatchReason,
    Mapping,
    MappingUpdate,
    MappingStats,
    MappingWarning,
    ImportFailure,
    ImportSummary,
)
from models.import_session import (
    ImportSessionState,
    StartImportRequest,
    AutoMapRequest,
    ImportSessionResponse,
)

__all__ = [
    # Base
    "BaseSchema",

    # Catalog
    "DEFAULT_CATEGORY",
    "CatalogProduct",
    "CategoryRecord",
    "ProductCreate",
    "ProductUpdate",

    # Extraction
    "ExtractionMethod",
    "ExtractedLineItem",
    "ExtractedItemCreate",
    "ExtractedItemUpdate",
    "ExtractionReport",

    # Mapping
    "MappingAction",
    "MatchReason",
    "Mapping",
    "MappingUpdate",
    "MappingStats",
    "MappingWarning",
    "ImportFailure",
    "ImportSummary",

    # Sessions
    "ImportSessionState",
    "StartImportRequest",
    "AutoMapRequest",
    "ImportSessionResponse",
]
