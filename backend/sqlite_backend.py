from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Dict, List

from backend.errors import BackendFailure
from query.results import to_jsonable

MEMORY_PATH = ":memory:"


def connect(path: str) -> sqlite3.Connection:
    if path != MEMORY_PATH and not Path(path).exists():
        raise BackendFailure(f"Database file does not exist: {path}")
    try:
        # Calls arrive on worker threads; the pool serializes access per connection.
        return sqlite3.connect(path, check_same_thread=False)
    except sqlite3.Error as exc:
        raise BackendFailure(f"Failed to connect to SQLite database: {exc}") from exc


def close(conn: sqlite3.Connection) -> None:
    conn.close()


def execute_query(conn: sqlite3.Connection, query: str) -> Dict[str, Any]:
    cur = conn.cursor()
    try:
        try:
            cur.execute(query)
        except sqlite3.Error as exc:
            conn.rollback()
            raise BackendFailure(f"Failed to execute query: {exc}") from exc
        if cur.description is not None:
            columns = [desc[0] for desc in cur.description]
            rows = [{columns[i]: to_jsonable(row[i]) for i in range(len(columns))} for row in cur.fetchall()]
            # RETURNING statements write too; each query is its own transaction.
            conn.commit()
            return {"columns": columns, "rows": rows, "affected_rows": None, "success": True, "error": None}
        conn.commit()
        return {
            "columns": [],
            "rows": [],
            "affected_rows": max(cur.rowcount, 0),
            "success": True,
            "error": None,
        }
    finally:
        cur.close()


def get_tables(conn: sqlite3.Connection) -> List[str]:
    try:
        cur = conn.execute(
            """
            SELECT name
            FROM sqlite_master
            WHERE type = 'table'
              AND name NOT LIKE 'sqlite_%'
            ORDER BY name
            """
        )
        return [row[0] for row in cur.fetchall()]
    except sqlite3.Error as exc:
        raise BackendFailure(f"Failed to query tables: {exc}") from exc
