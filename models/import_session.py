"""
Import session schemas.

A session holds everything between upload and execute: the extracted
items, their mappings and the catalog snapshot they were matched against.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from models.base import BaseSchema
from models.catalog import CatalogProduct, CategoryRecord
from models.extraction import ExtractedLineItem, ExtractionReport
from models.mapping import Mapping, MappingStats, MappingWarning


class ImportSessionState(BaseSchema):
    """In-memory state of one document import."""

    id: str
    source_name: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    auto_mapping: bool = True
    items: list[ExtractedLineItem] = Field(default_factory=list)
    mappings: list[Mapping] = Field(default_factory=list)
    catalog: list[CatalogProduct] = Field(default_factory=list)
    categories: list[CategoryRecord] = Field(default_factory=list)
    extraction: ExtractionReport = Field(default_factory=ExtractionReport)
    manual_counter: int = 0

    @property
    def is_empty(self) -> bool:
        """No candidates left to import."""
        return not self.items


class StartImportRequest(BaseSchema):
    """Start a session from already extracted text."""
    text: str = Field(..., min_length=1)
    auto_mapping: bool = True
    source_name: Optional[str] = None


class AutoMapRequest(BaseSchema):
    """Re-run mapping with auto-mapping on or off."""
    enabled: bool = True


class ImportSessionResponse(BaseModel):
    """Session view returned by the API."""
    id: str
    source_name: Optional[str] = None
    created_at: datetime
    auto_mapping: bool
    is_empty: bool
    items: list[ExtractedLineItem]
    mappings: list[Mapping]
    stats: MappingStats
    warnings: list[MappingWarning] = Field(default_factory=list)
    extraction: ExtractionReport
    catalog_size: int = 0
    categories: list[str] = Field(default_factory=list)
