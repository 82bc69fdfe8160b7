from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple, Union

from adapters.base import AdapterError, BackendRequest
from adapters.factory import get_adapter
from adapters.postgres import DEFAULT_SCHEMA
from backend.errors import BackendFailure
from backend.service import BackendService
from connections.models import ConnectionDescriptor, Engine
from schema.nodes import NodeKind, SchemaNode, find_node, selection_query

logger = logging.getLogger(__name__)


class ExplorerState(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    POPULATED = "populated"
    FAILED = "failed"


def _names(value: Any, operation: str) -> List[str]:
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise BackendFailure(f"{operation} returned an unexpected response")
    return list(value)


class SchemaExplorer:
    def __init__(self, backend: BackendService):
        self.backend = backend
        self.state = ExplorerState.EMPTY
        self.tree: Tuple[SchemaNode, ...] = ()
        self.error: Optional[str] = None
        self._generation = 0

    def reset(self) -> None:
        self._generation += 1
        self.state = ExplorerState.EMPTY
        self.tree = ()
        self.error = None

    async def refresh(self, descriptor: ConnectionDescriptor) -> bool:
        """Rebuild the tree; returns False when a reset or newer refresh superseded this one."""
        self._generation += 1
        generation = self._generation
        self.state = ExplorerState.LOADING
        self.tree = ()
        self.error = None

        try:
            tree = await self._build_tree(descriptor)
        except (AdapterError, BackendFailure) as exc:
            if generation != self._generation:
                return False
            logger.warning("Schema listing failed for %s: %s", descriptor.label, exc)
            self.state = ExplorerState.FAILED
            self.error = str(exc)
            return True

        if generation != self._generation:
            logger.debug("Discarding stale schema listing for %s", descriptor.label)
            return False
        self.tree = tuple(tree)
        self.state = ExplorerState.POPULATED
        return True

    def select(self, path: Sequence[str]) -> Optional[Union[str, dict]]:
        found = find_node(self.tree, path)
        if found is None:
            raise KeyError("/".join(path))
        node, ancestors = found
        return selection_query(node, ancestors)

    async def _call(self, request: BackendRequest) -> List[str]:
        return _names(await self.backend.invoke(request.operation, **request.params), request.operation)

    async def _build_tree(self, descriptor: ConnectionDescriptor) -> List[SchemaNode]:
        adapter = get_adapter(descriptor.engine)
        connection_id = descriptor.connection_id or ""
        requests = adapter.build_list_structure_request(connection_id, descriptor)

        if descriptor.engine is Engine.SQLITE:
            tables = await self._call(requests[0])
            return [SchemaNode(name=name, kind=NodeKind.TABLE) for name in tables]

        if descriptor.engine is Engine.MONGODB:
            databases = await self._call(requests[0])
            nodes = []
            for db_name in databases:
                collections = await self._call(adapter.build_list_collections_request(connection_id, db_name))
                children = [SchemaNode(name=name, kind=NodeKind.COLLECTION) for name in collections]
                nodes.append(SchemaNode(name=db_name, kind=NodeKind.DATABASE, children=children))
            return nodes

        results = [await self._call(request) for request in requests]
        database = descriptor.configured_database
        if not database or len(results) < 2:
            return []
        tables = [SchemaNode(name=name, kind=NodeKind.TABLE) for name in results[1]]
        schema = SchemaNode(name=DEFAULT_SCHEMA, kind=NodeKind.SCHEMA, children=tables)
        return [SchemaNode(name=database, kind=NodeKind.DATABASE, children=[schema])]
