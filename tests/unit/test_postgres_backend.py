from datetime import date
from decimal import Decimal

from backend import postgres_backend
from backend.postgres_backend import build_conninfo


class FakeCursor:
    def __init__(self, description=None, rows=None, rowcount=-1):
        self.executed = []
        self.description = description
        self.rows = rows or []
        self.rowcount = rowcount

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def execute(self, sql, params=None):
        self.executed.append((sql, params))

    def fetchall(self):
        return self.rows


class FakeConn:
    def __init__(self, cursor):
        self.cursor_obj = cursor

    def cursor(self):
        return self.cursor_obj


def test_build_conninfo_fills_defaults():
    assert build_conninfo({"host": "db.local"}) == "host=db.local port=5432 user=postgres dbname=postgres"


def test_build_conninfo_quotes_password_and_appends_options():
    conninfo = build_conninfo(
        {
            "host": "db.local",
            "port": 6543,
            "username": "app",
            "password": "it's secret",
            "database": "shop",
            "options": {"sslmode": "require"},
        }
    )
    assert conninfo == "host=db.local port=6543 user=app dbname=shop password='it\\'s secret' sslmode=require"


def test_connection_string_wins_over_fields():
    config = {"host": "ignored", "connection_string": "postgresql://u@h/db"}
    assert build_conninfo(config) == "postgresql://u@h/db"


def test_execute_query_returns_rows_with_jsonable_cells():
    cursor = FakeCursor(
        description=[("id",), ("total",), ("placed",)],
        rows=[(1, Decimal("9.50"), date(2024, 1, 2))],
    )
    result = postgres_backend.execute_query(FakeConn(cursor), "SELECT id, total, placed FROM orders")
    assert result["columns"] == ["id", "total", "placed"]
    assert result["rows"] == [{"id": 1, "total": "9.50", "placed": "2024-01-02"}]
    assert result["affected_rows"] is None


def test_execute_query_reports_affected_rows_for_mutations():
    cursor = FakeCursor(description=None, rowcount=3)
    result = postgres_backend.execute_query(FakeConn(cursor), "DELETE FROM orders")
    assert result == {"columns": [], "rows": [], "affected_rows": 3, "success": True, "error": None}


def test_list_tables_is_scoped_to_schema():
    cursor = FakeCursor(rows=[("customers",), ("orders",)])
    assert postgres_backend.list_tables(FakeConn(cursor), "sales") == ["customers", "orders"]
    assert cursor.executed[0][1] == ("sales",)


def test_list_databases_skips_templates():
    cursor = FakeCursor(rows=[("app",), ("postgres",)])
    assert postgres_backend.list_databases(FakeConn(cursor)) == ["app", "postgres"]
    assert "datistemplate = false" in cursor.executed[0][0]
