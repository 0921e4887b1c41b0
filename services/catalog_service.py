"""
Catalog service: read snapshot and write calls against the products table.

The import pipeline only reads the catalog once per session and then writes
through create_product / update_product. Write failures raise
PersistenceError carrying the item being written.
"""

from datetime import datetime
from typing import Optional
import structlog

from config import get_supabase_client
from models.catalog import (
    DEFAULT_CATEGORY,
    CatalogProduct,
    CategoryRecord,
    ProductCreate,
    ProductUpdate,
)
from exceptions import DatabaseError, PersistenceError

logger = structlog.get_logger(__name__)


class CatalogService:
    """
    Catalog persistence.

    Handles snapshot reads and single-record writes for products.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "products"
        self.categories_table = "categories"

    # ===================
    # READ OPERATIONS
    # ===================

    def list_existing_products(self) -> list[CatalogProduct]:
        """
        Load the full product list as a matching snapshot.

        Returns:
            List of CatalogProduct ordered by name

        Raises:
            DatabaseError: If the query fails
        """
        logger.debug("listing_catalog_products")

        try:
            result = (
                self.db.table(self.table)
                .select("id, name, category, price, stock")
                .order("name")
                .execute()
            )

            products = [
                CatalogProduct(
                    id=str(row["id"]),
                    name=row.get("name") or "",
                    category=row.get("category") or DEFAULT_CATEGORY,
                    price=row.get("price") or 0,
                    stock=row.get("stock") or 0,
                )
                for row in result.data
            ]

            logger.info("catalog_products_loaded", count=len(products))
            return products

        except Exception as e:
            logger.error("list_catalog_products_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def list_categories(self) -> list[CategoryRecord]:
        """
        Load category reference list.

        Raises:
            DatabaseError: If the query fails
        """
        try:
            result = (
                self.db.table(self.categories_table)
                .select("id, name")
                .order("name")
                .execute()
            )
            categories = [
                CategoryRecord(id=str(row["id"]), name=row["name"])
                for row in result.data
                if row.get("name")
            ]
            logger.info("categories_loaded", count=len(categories))
            return categories

        except Exception as e:
            logger.error("list_categories_failed", error=str(e))
            raise DatabaseError("select", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create_product(self, data: ProductCreate, item_id: Optional[str] = None) -> str:
        """
        Create a catalog product.

        Args:
            data: Product fields
            item_id: Extracted item being imported (for error reporting)

        Returns:
            New product id

        Raises:
            PersistenceError: If the insert fails
        """
        now = datetime.utcnow().isoformat()
        insert_data = {
            "name": data.name,
            "category": data.category or DEFAULT_CATEGORY,
            "price": data.price,
            "stock": data.stock,
            "description": data.description,
            "created_at": now,
            "updated_at": now,
        }

        try:
            result = (
                self.db.table(self.table)
                .insert(insert_data)
                .execute()
            )
        except Exception as e:
            logger.error(
                "create_product_failed",
                name=data.name,
                item_id=item_id,
                error=str(e)
            )
            raise PersistenceError(
                "insert",
                f"Failed to create '{data.name}': {e}",
                item_id=item_id,
                item_name=data.name
            )

        if not result.data:
            raise PersistenceError(
                "insert",
                f"Failed to create '{data.name}': no row returned",
                item_id=item_id,
                item_name=data.name
            )

        product_id = str(result.data[0]["id"])
        logger.info("product_created", product_id=product_id, name=data.name)
        return product_id

    def update_product(
        self,
        product_id: str,
        data: ProductUpdate,
        item_id: Optional[str] = None,
        item_name: Optional[str] = None
    ) -> None:
        """
        Partially update a catalog product.

        Only price/stock that are set are written; updated_at is always
        stamped. A product removed since the snapshot was loaded surfaces
        as a PersistenceError, not a silent no-op.

        Args:
            product_id: Product id
            data: Fields to update
            item_id: Extracted item being imported (for error reporting)
            item_name: Extracted item name (for error reporting)

        Raises:
            PersistenceError: If the update fails or matches no product
        """
        update_data = data.model_dump(exclude_none=True)
        update_data["updated_at"] = datetime.utcnow().isoformat()

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", product_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "update_product_failed",
                product_id=product_id,
                item_id=item_id,
                error=str(e)
            )
            raise PersistenceError(
                "update",
                f"Failed to update product {product_id}: {e}",
                item_id=item_id,
                item_name=item_name,
                details={"product_id": product_id}
            )

        if not result.data:
            logger.warning("update_target_missing", product_id=product_id, item_id=item_id)
            raise PersistenceError(
                "update",
                f"Product {product_id} not found",
                item_id=item_id,
                item_name=item_name,
                details={"product_id": product_id}
            )

        logger.info(
            "product_updated",
            product_id=product_id,
            fields=list(update_data.keys())
        )


# Singleton instance for convenience
_catalog_service: Optional[CatalogService] = None


def get_catalog_service() -> CatalogService:
    """Get or create CatalogService instance."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService()
    return _catalog_service
