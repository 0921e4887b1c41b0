"""
Test data factories.

Uses factory pattern to generate consistent test data.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from models.catalog import CatalogProduct
from models.extraction import ExtractedLineItem, ExtractionMethod
from models.mapping import MappingAction, Mapping


class ExtractedItemFactory:
    """
    Factory for ExtractedLineItem models.

    Usage:
        item = ExtractedItemFactory.create(name="Desk Lamp", quantity=3)
        items = ExtractedItemFactory.create_batch(5)
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        id: Optional[str] = None,
        name: Optional[str] = None,
        quantity: float = 10,
        unit_price: float = 19.99,
        category: Optional[str] = None,
        confidence: int = 95,
        method: ExtractionMethod = ExtractionMethod.PATTERN
    ) -> ExtractedLineItem:
        counter = cls._next_counter()
        name = name or f"Test Item {counter}"
        return ExtractedLineItem(
            id=id or f"extracted_{counter}",
            name=name,
            quantity=quantity,
            unit_price=unit_price,
            category=category,
            confidence=confidence,
            source_text=f"{name}    {quantity}    {unit_price}",
            method=method,
        )

    @classmethod
    def create_batch(cls, count: int, **overrides) -> list[ExtractedLineItem]:
        return [cls.create(**overrides) for _ in range(count)]


class CatalogProductFactory:
    """
    Factory for catalog products, as models or as database rows.

    Usage:
        product = CatalogProductFactory.create(name="Widget A")
        row = CatalogProductFactory.create_row(name="Widget A")
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create_row(
        cls,
        id: Optional[str] = None,
        name: Optional[str] = None,
        category: Optional[str] = "General",
        price: float = 10.0,
        stock: float = 5
    ) -> dict:
        """Product dict matching the products table."""
        counter = cls._next_counter()
        now = datetime.utcnow().isoformat() + "Z"
        return {
            "id": id or str(uuid4()),
            "name": name or f"Catalog Product {counter}",
            "category": category,
            "price": price,
            "stock": stock,
            "description": "",
            "created_at": now,
            "updated_at": now,
        }

    @classmethod
    def create(cls, **overrides) -> CatalogProduct:
        row = cls.create_row(**overrides)
        return CatalogProduct(
            id=row["id"],
            name=row["name"],
            category=row["category"],
            price=row["price"],
            stock=row["stock"],
        )


class MappingFactory:
    """Factory for Mapping models."""

    @classmethod
    def create(
        cls,
        extracted_id: str,
        action: MappingAction = MappingAction.CREATE,
        target_product_id: Optional[str] = None,
        target_category: Optional[str] = None,
        update_price: bool = False,
        update_stock: bool = False,
        confidence: int = 70
    ) -> Mapping:
        return Mapping(
            extracted_id=extracted_id,
            action=action,
            target_product_id=target_product_id,
            target_category=target_category,
            update_price=update_price,
            update_stock=update_stock,
            confidence=confidence,
        )

    @classmethod
    def create_for(cls, item: ExtractedLineItem, **overrides) -> Mapping:
        return cls.create(extracted_id=item.id, **overrides)

    @classmethod
    def update_for(
        cls,
        item: ExtractedLineItem,
        product_id: str,
        update_price: bool = True,
        update_stock: bool = True
    ) -> Mapping:
        return cls.create(
            extracted_id=item.id,
            action=MappingAction.UPDATE,
            target_product_id=product_id,
            update_price=update_price,
            update_stock=update_stock,
            confidence=95,
        )
