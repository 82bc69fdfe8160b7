from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List

from connections.errors import AdapterError, InvalidConfiguration, MalformedQuery
from connections.models import ConnectionDescriptor, Engine

__all__ = [
    "AdapterError",
    "BackendRequest",
    "EngineAdapter",
    "InvalidConfiguration",
    "MalformedQuery",
    "RelationalAdapter",
    "server_config",
]


@dataclass(frozen=True)
class BackendRequest:
    operation: str
    params: Dict[str, Any] = field(default_factory=dict)


def require_connection_id(connection_id: str) -> str:
    if not connection_id or not str(connection_id).strip():
        raise InvalidConfiguration("Connection has no backend connection id; connect first")
    return str(connection_id)


class EngineAdapter(ABC):
    engine: Engine

    def _check_engine(self, descriptor: ConnectionDescriptor) -> None:
        if descriptor.engine is not self.engine:
            raise InvalidConfiguration(
                f"{type(self).__name__} cannot handle {descriptor.engine.value} connections"
            )

    @abstractmethod
    def build_connect_request(self, descriptor: ConnectionDescriptor) -> BackendRequest:
        raise NotImplementedError

    @abstractmethod
    def build_query_request(self, connection_id: str, raw_query: Any) -> BackendRequest:
        raise NotImplementedError

    @abstractmethod
    def build_list_structure_request(
        self, connection_id: str, descriptor: ConnectionDescriptor
    ) -> List[BackendRequest]:
        raise NotImplementedError

    def _execute_request(self, connection_id: str, query: Any) -> BackendRequest:
        return BackendRequest(
            operation="execute_query",
            params={
                "connection_id": require_connection_id(connection_id),
                "query": query,
                "db_type": self.engine.value,
            },
        )


class RelationalAdapter(EngineAdapter):
    def build_query_request(self, connection_id: str, raw_query: Any) -> BackendRequest:
        if not isinstance(raw_query, str):
            raise MalformedQuery(f"{self.engine.value} queries must be SQL text")
        return self._execute_request(connection_id, raw_query)


def server_config(descriptor: ConnectionDescriptor) -> Dict[str, Any]:
    params = descriptor.params
    connection_string = params.connection_string
    host = params.host
    has_connection_string = params.uses_connection_string
    if not has_connection_string and not (host and host.strip()):
        raise InvalidConfiguration(
            f"{descriptor.engine.value} connections require a connection string or a host"
        )
    return {
        "host": host,
        "port": params.port,
        "username": params.username,
        "password": params.password,
        "database": params.database,
        "connection_string": connection_string if has_connection_string else None,
        "options": dict(params.options or {}),
    }
