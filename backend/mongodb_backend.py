from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping
from urllib.parse import quote_plus

from backend.errors import BackendFailure

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 27017


def build_uri(config: Mapping[str, Any]) -> str:
    connection_string = config.get("connection_string")
    if connection_string:
        return str(connection_string)

    host = config.get("host") or DEFAULT_HOST
    port = config.get("port") or DEFAULT_PORT
    username = config.get("username")
    password = config.get("password")
    auth = ""
    if username or password:
        auth = quote_plus(str(username or ""))
        if password:
            auth += ":" + quote_plus(str(password))
        auth += "@"
    database = f"/{config['database']}" if config.get("database") else ""
    return f"mongodb://{auth}{host}:{port}{database}"


def connect(config: Mapping[str, Any], timeout_ms: int = 5000):
    try:
        from pymongo import MongoClient  # type: ignore
    except ImportError as exc:
        raise ImportError("pymongo is required for MongoDB support: `python -m pip install pymongo`") from exc

    client = MongoClient(build_uri(config), serverSelectionTimeoutMS=int(timeout_ms))
    try:
        client.admin.command("ping")
    except Exception:
        client.close()
        raise
    return client


def close(client) -> None:
    client.close()


def _to_plain(value: Any) -> Any:
    from bson import json_util  # type: ignore

    return json.loads(json_util.dumps(value, json_options=json_util.RELAXED_JSON_OPTIONS))


def _to_bson(value: Any, label: str) -> Dict[str, Any]:
    from bson import json_util  # type: ignore

    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise BackendFailure(f"Failed to parse {label}: expected an object")
    return json_util.loads(json.dumps(value))


def _parse_query(query: Any) -> Dict[str, Any]:
    if isinstance(query, Mapping):
        return dict(query)
    try:
        parsed = json.loads(query)
    except (TypeError, json.JSONDecodeError) as exc:
        raise BackendFailure(f"Failed to parse MongoDB query as JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise BackendFailure("MongoDB query must be a JSON object")
    return parsed


def execute_query(client, query: Any) -> Dict[str, Any]:
    spec = _parse_query(query)
    db_name = spec.get("db")
    if not isinstance(db_name, str):
        raise BackendFailure("MongoDB query must include a 'db' field")
    collection_name = spec.get("collection")
    if not isinstance(collection_name, str):
        raise BackendFailure("MongoDB query must include a 'collection' field")
    operation = spec.get("operation")
    if not isinstance(operation, str):
        raise BackendFailure("MongoDB query must include an 'operation' field")

    collection = client[db_name][collection_name]

    if operation == "find":
        columns: List[str] = []
        seen = set()
        rows: List[Dict[str, Any]] = []
        for doc in collection.find(_to_bson(spec.get("filter"), "filter")):
            for key in doc.keys():
                if key not in seen:
                    seen.add(key)
                    columns.append(key)
            rows.append(_to_plain(doc))
        return {"columns": columns, "rows": rows, "affected_rows": None, "success": True, "error": None}

    if operation == "insertOne":
        if "document" not in spec:
            raise BackendFailure("MongoDB insertOne operation requires a 'document' field")
        result = collection.insert_one(_to_bson(spec["document"], "document"))
        return {
            "columns": ["insertedId"],
            "rows": [{"insertedId": _to_plain(result.inserted_id)}],
            "affected_rows": 1,
            "success": True,
            "error": None,
        }

    raise BackendFailure(f"Unsupported MongoDB operation: {operation}")


def list_databases(client) -> List[str]:
    return list(client.list_database_names())


def list_collections(client, db_name: str) -> List[str]:
    return list(client[db_name].list_collection_names())
