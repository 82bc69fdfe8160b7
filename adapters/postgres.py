from __future__ import annotations

from typing import List

from adapters.base import BackendRequest, RelationalAdapter, require_connection_id, server_config
from connections.models import ConnectionDescriptor, Engine

DEFAULT_SCHEMA = "public"


class PostgresAdapter(RelationalAdapter):
    engine = Engine.POSTGRES

    def build_connect_request(self, descriptor: ConnectionDescriptor) -> BackendRequest:
        self._check_engine(descriptor)
        return BackendRequest(operation="connect_postgres", params={"config": server_config(descriptor)})

    def build_list_structure_request(
        self, connection_id: str, descriptor: ConnectionDescriptor
    ) -> List[BackendRequest]:
        # Database names are informational; the tree is built from the scoped table listing.
        connection_id = require_connection_id(connection_id)
        requests = [BackendRequest(operation="list_databases", params={"connection_id": connection_id})]
        if descriptor.configured_database:
            requests.append(
                BackendRequest(
                    operation="list_tables",
                    params={"connection_id": connection_id, "schema": DEFAULT_SCHEMA},
                )
            )
        return requests
