from __future__ import annotations

from typing import List

from adapters.base import BackendRequest, InvalidConfiguration, RelationalAdapter, require_connection_id
from connections.models import ConnectionDescriptor, Engine


class SQLiteAdapter(RelationalAdapter):
    engine = Engine.SQLITE

    def build_connect_request(self, descriptor: ConnectionDescriptor) -> BackendRequest:
        self._check_engine(descriptor)
        path = descriptor.params.path
        if not path or not str(path).strip():
            raise InvalidConfiguration("SQLite connections require a database file path")
        return BackendRequest(operation="connect_sqlite", params={"path": str(path)})

    def build_list_structure_request(
        self, connection_id: str, descriptor: ConnectionDescriptor
    ) -> List[BackendRequest]:
        return [BackendRequest(operation="get_tables", params={"connection_id": require_connection_id(connection_id)})]
