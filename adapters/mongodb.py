from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping

from adapters.base import BackendRequest, EngineAdapter, MalformedQuery, require_connection_id, server_config
from connections.models import ConnectionDescriptor, Engine

REQUIRED_QUERY_KEYS = ("db", "collection", "operation", "filter")


def parse_document_query(raw_query: Any) -> Dict[str, Any]:
    if isinstance(raw_query, Mapping):
        parsed: Any = dict(raw_query)
    elif isinstance(raw_query, (str, bytes)):
        try:
            parsed = json.loads(raw_query)
        except json.JSONDecodeError as exc:
            raise MalformedQuery(f"Failed to parse MongoDB query as JSON: {exc}") from exc
    else:
        raise MalformedQuery(f"MongoDB query must be JSON text or an object, got {type(raw_query).__name__}")

    if not isinstance(parsed, dict):
        raise MalformedQuery("MongoDB query must be a JSON object")
    missing = [key for key in REQUIRED_QUERY_KEYS if key not in parsed]
    if missing:
        raise MalformedQuery(f"MongoDB query is missing required field(s): {', '.join(missing)}")
    return parsed


class MongoDBAdapter(EngineAdapter):
    engine = Engine.MONGODB

    def build_connect_request(self, descriptor: ConnectionDescriptor) -> BackendRequest:
        self._check_engine(descriptor)
        return BackendRequest(operation="connect_mongodb", params={"config": server_config(descriptor)})

    def build_query_request(self, connection_id: str, raw_query: Any) -> BackendRequest:
        return self._execute_request(connection_id, parse_document_query(raw_query))

    def build_list_structure_request(
        self, connection_id: str, descriptor: ConnectionDescriptor
    ) -> List[BackendRequest]:
        return [BackendRequest(operation="list_databases", params={"connection_id": require_connection_id(connection_id)})]

    def build_list_collections_request(self, connection_id: str, db_name: str) -> BackendRequest:
        return BackendRequest(
            operation="list_collections",
            params={"connection_id": require_connection_id(connection_id), "db_name": db_name},
        )
