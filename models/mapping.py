"""
Mapping schemas.

One Mapping per extracted item decides what the import does with it:
create a product, update an existing one, or ignore the item.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from models.base import BaseSchema


class MappingAction(str, Enum):
    """Import action for one extracted item."""
    CREATE = "create"
    UPDATE = "update"
    IGNORE = "ignore"


class MatchReason(str, Enum):
    """How the mapping decision was reached."""
    EXACT_NAME = "exact_name"
    FUZZY_NAME = "fuzzy_name"
    NO_MATCH = "no_match"
    DEFAULT = "default"      # Auto-mapping disabled
    MANUAL = "manual"


class Mapping(BaseSchema):
    """
    Decision connecting one extracted item to a catalog action.

    target_product_id is required when action is UPDATE and must point at
    a product from the session's catalog snapshot. That is checked when
    mappings are finalized, not on every edit.
    """

    extracted_id: str
    action: MappingAction
    target_product_id: Optional[str] = None
    target_category: Optional[str] = None
    update_price: bool = False
    update_stock: bool = False
    confidence: int = Field(..., ge=0, le=100)
    match_reason: Optional[MatchReason] = None
    similarity: Optional[float] = Field(None, ge=0, le=1)

    # Dirty flags for user overrides
    is_manual: bool = False
    manual_fields: list[str] = Field(default_factory=list)


class MappingUpdate(BaseSchema):
    """
    User override of a mapping.

    Only fields present in the request are applied.
    """

    action: Optional[MappingAction] = None
    target_product_id: Optional[str] = None
    target_category: Optional[str] = None
    update_price: Optional[bool] = None
    update_stock: Optional[bool] = None


class MappingStats(BaseModel):
    """Counts shown above the mapping table."""
    total: int = 0
    create: int = 0
    update: int = 0
    ignore: int = 0
    high_confidence: int = 0


class MappingWarning(BaseModel):
    """Non-blocking problem worth a second look before import."""
    code: str
    message: str
    extracted_ids: list[str] = Field(default_factory=list)
    product_id: Optional[str] = None


class ImportFailure(BaseModel):
    """One record whose create/update call failed."""
    id: str
    name: Optional[str] = None
    action: MappingAction
    code: str
    error: str


class ImportSummary(BaseModel):
    """Outcome of executing a set of mappings."""
    created_count: int = 0
    updated_count: int = 0
    ignored_count: int = 0
    skipped_count: int = 0
    failures: list[ImportFailure] = Field(default_factory=list)
    created_ids: list[str] = Field(default_factory=list)
    updated_ids: list[str] = Field(default_factory=list)

    @property
    def partial(self) -> bool:
        """True if some records were written and others failed."""
        return bool(self.failures) and (self.created_count + self.updated_count) > 0

    @property
    def success(self) -> bool:
        """True if no record failed."""
        return not self.failures

    @property
    def message(self) -> str:
        """Human summary line."""
        text = f"Import complete: {self.created_count} created, {self.updated_count} updated"
        if self.failures:
            text += f", {len(self.failures)} failed"
        return text

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            **self.model_dump(mode="json"),
            "message": self.message,
            "partial": self.partial,
            "success": self.success,
        }
