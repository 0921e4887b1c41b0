"""
Catalog schemas.

The catalog is owned by the products table; the import pipeline only
reads a snapshot and writes through explicit create/update calls.
"""

from typing import Optional
from pydantic import Field

from models.base import BaseSchema


DEFAULT_CATEGORY = "General"


class CatalogProduct(BaseSchema):
    """Existing product as loaded into an import session snapshot."""

    id: str = Field(..., description="Product id")
    name: str = Field(..., description="Product name")
    category: Optional[str] = Field(DEFAULT_CATEGORY)
    price: float = Field(0, ge=0)
    stock: float = Field(0, ge=0)


class CategoryRecord(BaseSchema):
    """Category reference entry."""

    id: str
    name: str


class ProductCreate(BaseSchema):
    """Fields submitted when an import creates a product."""

    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(DEFAULT_CATEGORY, min_length=1)
    price: float = Field(..., ge=0, allow_inf_nan=False)
    stock: float = Field(..., ge=0, allow_inf_nan=False)
    description: str = ""


class ProductUpdate(BaseSchema):
    """
    Partial update submitted when an import touches a product.

    All fields optional - only provided fields are updated.
    """

    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    stock: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
