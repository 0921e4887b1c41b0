"""
Unit tests for CatalogService.

Run: pytest tests/unit/test_catalog_service.py -v
"""

import pytest

from models.catalog import ProductCreate, ProductUpdate
from exceptions import DatabaseError, PersistenceError


@pytest.fixture
def service(mock_db):
    from services.catalog_service import CatalogService
    return CatalogService()


class TestListExistingProducts:
    """Catalog snapshot reads."""

    def test_maps_rows(self, service, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("products", [
            {"id": 1, "name": "Desk Lamp", "category": "Office Supplies", "price": 45.0, "stock": 3},
            {"id": 2, "name": "Widget A", "category": None, "price": None, "stock": None},
        ])

        # Act
        products = service.list_existing_products()

        # Assert
        assert [p.id for p in products] == ["1", "2"]
        assert products[0].name == "Desk Lamp"
        assert products[0].price == 45.0
        assert products[1].category == "General"
        assert products[1].price == 0
        assert products[1].stock == 0

    def test_empty_catalog(self, service):
        assert service.list_existing_products() == []

    def test_query_failure(self, service, mock_supabase):
        mock_supabase.set_table_error("products", Exception("connection refused"))

        with pytest.raises(DatabaseError) as exc_info:
            service.list_existing_products()

        assert exc_info.value.code == "DATABASE_ERROR"


class TestListCategories:

    def test_skips_unnamed_rows(self, service, mock_supabase):
        mock_supabase.set_table_data("categories", [
            {"id": "c1", "name": "Electronics"},
            {"id": "c2", "name": ""},
            {"id": "c3", "name": "Furniture"},
        ])

        categories = service.list_categories()

        assert [c.name for c in categories] == ["Electronics", "Furniture"]

    def test_query_failure(self, service, mock_supabase):
        mock_supabase.set_table_error("categories", Exception("timeout"))

        with pytest.raises(DatabaseError):
            service.list_categories()


class TestCreateProduct:
    """Inserts."""

    def test_returns_new_id(self, service):
        data = ProductCreate(name="Desk Lamp", category="Office Supplies", price=45.0, stock=3)

        product_id = service.create_product(data, item_id="extracted_1")

        assert product_id == "test-uuid-123"

    def test_insert_failure_names_item(self, service, mock_supabase):
        mock_supabase.set_table_error("products", Exception("duplicate key"))
        data = ProductCreate(name="Desk Lamp", price=45.0, stock=3)

        with pytest.raises(PersistenceError) as exc_info:
            service.create_product(data, item_id="extracted_1")

        error = exc_info.value
        assert error.code == "PERSISTENCE_ERROR"
        assert "Desk Lamp" in error.message
        assert error.details["item_id"] == "extracted_1"
        assert error.details["item_name"] == "Desk Lamp"


class TestUpdateProduct:
    """Partial updates."""

    def test_updates_existing_product(self, service, mock_supabase):
        mock_supabase.set_table_data("products", [
            {"id": "p1", "name": "Desk Lamp", "price": 40.0, "stock": 1},
        ])

        service.update_product("p1", ProductUpdate(stock=5), item_id="extracted_1")

    def test_missing_product_raises(self, service, mock_supabase):
        mock_supabase.set_table_data("products", [
            {"id": "p1", "name": "Desk Lamp", "price": 40.0, "stock": 1},
        ])

        with pytest.raises(PersistenceError) as exc_info:
            service.update_product(
                "p9",
                ProductUpdate(stock=5, price=12.0),
                item_id="extracted_2",
                item_name="Stapler"
            )

        assert "not found" in exc_info.value.message
        assert exc_info.value.details["product_id"] == "p9"

    def test_update_failure(self, service, mock_supabase):
        mock_supabase.set_table_error("products", Exception("permission denied"))

        with pytest.raises(PersistenceError) as exc_info:
            service.update_product("p1", ProductUpdate(price=12.0))

        assert "permission denied" in exc_info.value.message
