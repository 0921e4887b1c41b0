"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add project root to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from unittest.mock import patch
from datetime import datetime
from typing import Generator, Optional

from models.catalog import CatalogProduct, CategoryRecord, ProductCreate, ProductUpdate
from exceptions import PersistenceError
from services import session_store
from services.document_text_service import DocumentTextService
from services.import_session_service import ImportSessionService
from services.reconciliation_service import ReconciliationService


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data if data is not None else []
        self.count = count if count is not None else (
            len(self.data) if isinstance(self.data, list) else 1
        )


class MockSupabaseQuery:
    """
    Mock Supabase query builder with chainable methods.

    eq() filters are applied when the query executes, so an update on an
    unknown id returns no rows like the real client does.
    """

    def __init__(self, data: list = None, count: int = None, error: Exception = None):
        self._data = data or []
        self._count = count
        self._error = error
        self._filters = []
        self._update = None
        self._is_single = False

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        # Simulate insert - add id and timestamps
        if isinstance(data, dict):
            data = [data]
        rows = []
        for item in data:
            row = dict(item)
            row["id"] = "test-uuid-123"
            row.setdefault("created_at", datetime.utcnow().isoformat() + "Z")
            row.setdefault("updated_at", datetime.utcnow().isoformat() + "Z")
            rows.append(row)
        self._data = rows
        return self

    def update(self, data):
        self._update = data
        return self

    def delete(self):
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def single(self):
        self._is_single = True
        return self

    def order(self, column, **kwargs):
        return self

    def range(self, start, end):
        return self

    def limit(self, count):
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._error is not None:
            raise self._error

        rows = [
            row for row in self._data
            if all(row.get(column) == value for column, value in self._filters)
        ]
        if self._update is not None:
            rows = [{**row, **self._update} for row in rows]

        if self._is_single:
            data = rows[0] if rows else None
            return MockSupabaseResponse(data=data, count=1 if data else 0)
        return MockSupabaseResponse(
            data=rows,
            count=self._count if self._count is not None else len(rows)
        )


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, data: list = None, count: int = None, error: Exception = None):
        self._data = data or []
        self._count = count
        self._error = error

    def _query(self) -> MockSupabaseQuery:
        return MockSupabaseQuery([dict(row) for row in self._data], self._count, self._error)

    def select(self, *args, **kwargs):
        return self._query()

    def insert(self, data):
        return self._query().insert(data)

    def update(self, data):
        return self._query().update(data)

    def delete(self):
        return self._query()


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = {"data": data, "count": count, "error": None}

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query on a table raise."""
        config = self._tables.setdefault(table_name, {"data": [], "count": None, "error": None})
        config["error"] = error

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        config = self._tables.get(name, {"data": [], "count": None, "error": None})
        return MockSupabaseTable(config["data"], config["count"], config["error"])


# ===================
# FAKE CATALOG
# ===================

class FakeCatalogService:
    """
    In-memory catalog collaborator.

    Records every write. Names in fail_names raise PersistenceError,
    names in crash_names raise RuntimeError.
    """

    def __init__(
        self,
        products: Optional[list[CatalogProduct]] = None,
        categories: Optional[list[CategoryRecord]] = None
    ):
        self.products = list(products or [])
        self.categories = list(categories or [])
        self.created: list[tuple[Optional[str], ProductCreate]] = []
        self.updated: list[tuple[str, ProductUpdate]] = []
        self.fail_names: set[str] = set()
        self.crash_names: set[str] = set()
        self.list_calls = 0

    def list_existing_products(self) -> list[CatalogProduct]:
        self.list_calls += 1
        return list(self.products)

    def list_categories(self) -> list[CategoryRecord]:
        return list(self.categories)

    def _check(self, name: Optional[str], operation: str, item_id: Optional[str]):
        if name in self.crash_names:
            raise RuntimeError(f"connection reset while writing {name}")
        if name in self.fail_names:
            raise PersistenceError(
                operation,
                f"Failed to write '{name}'",
                item_id=item_id,
                item_name=name
            )

    def create_product(self, data: ProductCreate, item_id: Optional[str] = None) -> str:
        self._check(data.name, "insert", item_id)
        self.created.append((item_id, data))
        return f"new-{len(self.created)}"

    def update_product(
        self,
        product_id: str,
        data: ProductUpdate,
        item_id: Optional[str] = None,
        item_name: Optional[str] = None
    ) -> None:
        self._check(item_name, "update", item_id)
        if product_id not in {p.id for p in self.products}:
            raise PersistenceError(
                "update",
                f"Product {product_id} not found",
                item_id=item_id,
                item_name=item_name
            )
        self.updated.append((product_id, data))


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"id": "1", "name": "Desk Lamp", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.catalog_service.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase


@pytest.fixture(autouse=True)
def clear_import_sessions() -> Generator:
    """Every test starts with an empty session store."""
    session_store.clear_sessions()
    yield
    session_store.clear_sessions()


@pytest.fixture
def catalog_products() -> list[CatalogProduct]:
    """Existing catalog used by most import tests."""
    return [
        CatalogProduct(id="p1", name="Ergonomic Office Chair", category="Furniture", price=280.0, stock=4),
        CatalogProduct(id="p2", name="Widget A", category="General", price=5.0, stock=100),
        CatalogProduct(id="p3", name="Mechanical Keyboard", category="Electronics", price=75.0, stock=12),
    ]


@pytest.fixture
def category_records() -> list[CategoryRecord]:
    return [
        CategoryRecord(id="c1", name="ELECTRONICS"),
        CategoryRecord(id="c2", name="Furniture"),
        CategoryRecord(id="c3", name="Office Supplies"),
    ]


@pytest.fixture
def fake_catalog(catalog_products, category_records) -> FakeCatalogService:
    """In-memory catalog collaborator seeded with catalog_products."""
    return FakeCatalogService(catalog_products, category_records)


@pytest.fixture
def session_service(fake_catalog) -> ImportSessionService:
    """ImportSessionService wired to the fake catalog."""
    return ImportSessionService(
        catalog=fake_catalog,
        reconciliation=ReconciliationService(),
        documents=DocumentTextService(),
    )


@pytest.fixture
def scenario_text() -> str:
    """Two product rows, wide spacing, no header."""
    return (
        "Premium Wireless Headphones    25    199.99\n"
        "Ergonomic Office Chair    10    299.50"
    )


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client(session_service):
    """
    Create FastAPI test client backed by the fake catalog.

    Usage:
        def test_endpoint(test_client):
            response = test_client.post("/api/product-import/sessions", json={...})
            assert response.status_code == 201
    """
    from fastapi.testclient import TestClient
    from main import app

    with patch("routes.product_import.get_import_session_service", return_value=session_service):
        yield TestClient(app)
