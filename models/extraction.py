"""
Extracted line item schemas.

A line item is one product guess recovered from document text. It stays
editable during review; any manual edit pins its confidence to 100.
"""

from enum import Enum
from typing import Optional
from pydantic import Field, field_validator

from models.base import BaseSchema


class ExtractionMethod(str, Enum):
    """Which extraction stage produced the item."""
    POSITION = "position"        # Column offsets from a header row
    PATTERN = "pattern"          # One of the ordered line-shape patterns
    FALLBACK = "fallback"        # Relaxed "text number number" pattern
    LAST_RESORT = "last_resort"  # Whole document yielded nothing otherwise
    MANUAL = "manual"            # Added or edited by the user


class ExtractedLineItem(BaseSchema):
    """
    Product candidate recovered from one line of text.

    Example source line:
        Premium Wireless Headphones    25    199.99
    """

    id: str = Field(..., description="Stable within an import session")
    name: str = Field(..., min_length=1, max_length=255)
    quantity: float = Field(..., gt=0, allow_inf_nan=False)
    unit_price: float = Field(..., gt=0, allow_inf_nan=False)
    category: Optional[str] = Field(None, description="Inferred or user-set category")
    confidence: int = Field(..., ge=0, le=100)
    source_text: str = Field("", description="Original line, kept for audit")
    method: ExtractionMethod = ExtractionMethod.PATTERN
    pattern: Optional[str] = Field(None, description="Name of the pattern that matched")


class ExtractedItemCreate(BaseSchema):
    """Manually added line item."""

    name: str = Field(..., min_length=1, max_length=255)
    quantity: float = Field(..., gt=0, allow_inf_nan=False)
    unit_price: float = Field(..., gt=0, allow_inf_nan=False)
    category: Optional[str] = None


class ExtractedItemUpdate(BaseSchema):
    """
    Manual edit of an extracted item.

    All fields optional - only provided fields are changed.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    quantity: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    unit_price: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    category: Optional[str] = None

    @field_validator("category")
    @classmethod
    def blank_category_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Empty category clears the value."""
        return v or None


class ExtractionReport(BaseSchema):
    """Diagnostics for one extraction run. Informational only."""

    total_lines: int = 0
    candidate_lines: int = 0
    header_index: Optional[int] = None
    layout_source: Optional[str] = None
    column_offsets: dict[str, int] = Field(default_factory=dict)
    method_counts: dict[str, int] = Field(default_factory=dict)
    pattern_counts: dict[str, int] = Field(default_factory=dict)
    skipped: dict[str, int] = Field(default_factory=dict)
    used_last_resort: bool = False
    empty: bool = True
