from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from query.results import to_jsonable

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 5432
DEFAULT_USER = "postgres"
DEFAULT_DATABASE = "postgres"


def _quote(value: Any) -> str:
    text = str(value)
    if text and not any(ch in text for ch in " '\\"):
        return text
    escaped = text.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def build_conninfo(config: Mapping[str, Any]) -> str:
    connection_string = config.get("connection_string")
    if connection_string:
        return str(connection_string)

    parts = [
        ("host", config.get("host") or DEFAULT_HOST),
        ("port", config.get("port") or DEFAULT_PORT),
        ("user", config.get("username") or DEFAULT_USER),
        ("dbname", config.get("database") or DEFAULT_DATABASE),
    ]
    if config.get("password"):
        parts.append(("password", config["password"]))
    for key, value in (config.get("options") or {}).items():
        parts.append((str(key), value))
    return " ".join(f"{key}={_quote(value)}" for key, value in parts)


def connect(config: Mapping[str, Any]):
    conninfo = build_conninfo(config)
    try:
        import psycopg  # type: ignore

        return psycopg.connect(conninfo, autocommit=True)
    except ImportError:
        try:
            import psycopg2  # type: ignore
        except ImportError as exc:
            raise ImportError(
                "No PostgreSQL driver found. Install one of: "
                '`python -m pip install "psycopg[binary]"` or `python -m pip install psycopg2-binary`.'
            ) from exc
        conn = psycopg2.connect(conninfo)
        conn.autocommit = True
        return conn


def close(conn) -> None:
    conn.close()


def execute_query(conn, query: str) -> Dict[str, Any]:
    with conn.cursor() as cur:
        cur.execute(query)
        if cur.description is not None:
            columns = [desc[0] for desc in cur.description]
            rows = [{columns[i]: to_jsonable(row[i]) for i in range(len(columns))} for row in cur.fetchall()]
            return {"columns": columns, "rows": rows, "affected_rows": None, "success": True, "error": None}
        return {
            "columns": [],
            "rows": [],
            "affected_rows": max(cur.rowcount, 0),
            "success": True,
            "error": None,
        }


def list_databases(conn) -> List[str]:
    with conn.cursor() as cur:
        cur.execute("SELECT datname FROM pg_database WHERE datistemplate = false ORDER BY datname")
        return [row[0] for row in cur.fetchall()]


def list_tables(conn, schema: Optional[str] = None) -> List[str]:
    with conn.cursor() as cur:
        cur.execute(
            "SELECT tablename FROM pg_tables WHERE schemaname = %s ORDER BY tablename",
            (schema or "public",),
        )
        return [row[0] for row in cur.fetchall()]
