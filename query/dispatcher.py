from __future__ import annotations

import logging
from typing import Any, Mapping, Union

from adapters.base import AdapterError
from adapters.factory import get_adapter
from backend.errors import BackendFailure
from backend.service import BackendService
from connections.models import Engine
from query.results import QueryResult

logger = logging.getLogger(__name__)


class QueryDispatcher:
    """Stateless: safe to share across connections and concurrent calls."""

    def __init__(self, backend: BackendService):
        self.backend = backend

    async def execute(self, connection_id: str, engine: Union[str, Engine], raw_query: Any) -> QueryResult:
        try:
            adapter = get_adapter(engine)
            request = adapter.build_query_request(connection_id, raw_query)
        except AdapterError as exc:
            logger.warning("Query rejected before dispatch: %s", exc)
            return QueryResult.failure(str(exc))

        try:
            payload = await self.backend.invoke(request.operation, **request.params)
        except BackendFailure as exc:
            logger.warning("Query failed on connection %s: %s", connection_id, exc)
            return QueryResult.failure(str(exc))

        if not isinstance(payload, Mapping):
            logger.warning("Unexpected query response of type %s", type(payload).__name__)
            return QueryResult.failure("Backend returned an unexpected response")
        return QueryResult.from_backend(payload)
