"""
Shared test fixtures.

The mock Supabase client stores rows per table and applies the simple
filters (eq, neq, ilike, in_) at execute() time. Writes are recorded on
the client instead of being persisted, so tests assert on
mock_supabase.operations.
"""

import os
import re
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings require these at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import MagicMock, patch
from contextlib import ExitStack
from datetime import datetime, timezone
from typing import Generator, Optional

SERVICE_MODULES = [
    "services.category_service",
    "services.image_service",
    "services.product_service",
    "services.catalog_service",
    "services.location_service",
    "services.order_service",
    "services.auth_service",
    "services.admin_service",
    "services.log_service",
]

SINGLETONS = {
    "services.category_service": "_category_service",
    "services.image_service": "_image_service",
    "services.product_service": "_product_service",
    "services.product_creation_service": "_product_creation_service",
    "services.catalog_service": "_catalog_service",
    "services.location_service": "_location_service",
    "services.order_service": "_order_service",
    "services.auth_service": "_auth_service",
    "services.admin_service": "_admin_service",
    "services.log_service": "_log_service",
}

SIGNED_URL = "https://test-project.supabase.co/storage/v1/object/sign/bucket/path?token=abc"


# ===================
# MOCK SUPABASE CLIENT
# ===================

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _like_to_regex(pattern: str) -> re.Pattern:
    parts = [re.escape(p) for p in pattern.split("%")]
    return re.compile("^" + ".*".join(parts) + "$", re.IGNORECASE | re.DOTALL)


class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, client: "MockSupabaseClient", table: str, op: str, payload=None):
        self._client = client
        self._table = table
        self._op = op
        self._payload = payload
        self._filters: list[tuple] = []
        self._range: Optional[tuple[int, int]] = None
        self._limit: Optional[int] = None

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._filters.append(("eq", column, value))
        return self

    def neq(self, column, value):
        self._filters.append(("neq", column, value))
        return self

    def ilike(self, column, pattern):
        self._filters.append(("ilike", column, pattern))
        return self

    def in_(self, column, values):
        self._filters.append(("in", column, list(values)))
        return self

    def or_(self, filters):
        self._filters.append(("or", filters, None))
        return self

    def order(self, column, **kwargs):
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row: dict) -> bool:
        for kind, column, value in self._filters:
            # Embedded-resource filters and or() are not evaluated
            if kind == "or" or "." in column:
                continue
            actual = row.get(column)
            if kind == "eq" and actual != value:
                return False
            if kind == "neq" and actual == value:
                return False
            if kind == "ilike" and not _like_to_regex(value).match(str(actual or "")):
                return False
            if kind == "in" and actual not in value:
                return False
        return True

    def execute(self) -> MockSupabaseResponse:
        self._client.operations.append({
            "table": self._table,
            "op": self._op,
            "payload": self._payload,
            "filters": list(self._filters),
        })

        error = self._client.errors.get((self._table, self._op))
        if error is not None:
            raise error

        config = self._client.tables.get(self._table, {"data": [], "count": None})

        if self._op == "insert":
            rows = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for index, item in enumerate(rows):
                row = {"created_at": _now(), **item}
                row.setdefault("id", f"{self._table}-new-{len(self._client.operations)}-{index}")
                inserted.append(row)
            return MockSupabaseResponse(data=inserted)

        matched = [dict(row) for row in config["data"] if self._matches(row)]

        if self._op == "update":
            return MockSupabaseResponse(data=[{**row, **self._payload} for row in matched])

        if self._op == "delete":
            return MockSupabaseResponse(data=matched)

        count = config["count"] if config["count"] is not None else len(matched)
        if self._range is not None:
            start, end = self._range
            matched = matched[start:end + 1]
        if self._limit is not None:
            matched = matched[:self._limit]
        return MockSupabaseResponse(data=matched, count=count)


class MockSupabaseTable:
    """Mock Supabase table; each operation starts a new query."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self._client = client
        self._name = name

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self._client, self._name, "select")

    def insert(self, data):
        return MockSupabaseQuery(self._client, self._name, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self._client, self._name, "update", data)

    def delete(self):
        return MockSupabaseQuery(self._client, self._name, "delete")


class MockSupabaseClient:
    """Mock Supabase client with MagicMock storage and auth."""

    def __init__(self):
        self.tables: dict[str, dict] = {}
        self.errors: dict[tuple[str, str], Exception] = {}
        self.operations: list[dict] = []
        self.storage = MagicMock()
        self.storage.from_.return_value.create_signed_url.return_value = {
            "signedURL": SIGNED_URL
        }
        self.auth = MagicMock()

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self.tables[table_name] = {"data": data, "count": count}

    def fail(self, table_name: str, op: str, error: Optional[Exception] = None):
        """Make every <op> on a table raise."""
        self.errors[(table_name, op)] = error or Exception(f"{op} on {table_name} failed")

    def table(self, name: str) -> MockSupabaseTable:
        return MockSupabaseTable(self, name)

    def writes(self, table_name: str, op: Optional[str] = None) -> list[dict]:
        """Recorded insert/update/delete operations on a table."""
        ops = (op,) if op else ("insert", "update", "delete")
        return [
            o for o in self.operations
            if o["table"] == table_name and o["op"] in ops
        ]


# ===================
# FIXTURES
# ===================

@pytest.fixture(autouse=True)
def reset_service_singletons():
    """Drop cached service instances so each test sees its own mock client."""
    import importlib

    def reset():
        for module_name, attr in SINGLETONS.items():
            module = importlib.import_module(module_name)
            setattr(module, attr, None)

    reset()
    yield
    reset()


@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"id": "1", "name": "Tas Kanvas", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_admin_client() -> MagicMock:
    """Service-role client used for auth user administration."""
    return MagicMock()


@pytest.fixture
def mock_db(mock_supabase, mock_admin_client) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with ExitStack() as stack:
        stack.enter_context(patch("config.database.get_supabase_client", return_value=mock_supabase))
        for module in SERVICE_MODULES:
            stack.enter_context(patch(f"{module}.get_supabase_client", return_value=mock_supabase))
        stack.enter_context(
            patch("services.admin_service.get_admin_client", return_value=mock_admin_client)
        )
        yield mock_supabase


@pytest.fixture
def super_admin():
    from models.admin import AdminProfile
    from tests.factories import AdminFactory
    return AdminProfile(**AdminFactory.create(id="super-1", role="super_admin"))


@pytest.fixture
def regular_admin():
    from models.admin import AdminProfile
    from tests.factories import AdminFactory
    return AdminProfile(**AdminFactory.create(id="admin-1", role="admin"))


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_db, super_admin):
    """
    FastAPI test client with mocked database, authenticated as a super admin.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("variants", [...])
            response = test_client_with_mock_db.get("/api/catalog/grouped")
    """
    from fastapi.testclient import TestClient
    from main import app
    from routes.dependencies import get_current_admin

    app.dependency_overrides[get_current_admin] = lambda: super_admin
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(mock_db):
    """FastAPI test client without credentials."""
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
