from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Union

from adapters.base import AdapterError
from adapters.factory import get_adapter
from backend.errors import BackendFailure
from backend.service import BackendService
from connections.models import ConnectionDescriptor
from connections.registry import ConnectionRegistry
from query.dispatcher import QueryDispatcher
from query.results import QueryResult
from schema.explorer import SchemaExplorer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivationToken:
    generation: int
    connection_id: Optional[str]


@dataclass
class ConnectOutcome:
    success: bool
    message: str
    descriptor: Optional[ConnectionDescriptor] = None


class Workbench:
    """One UI session: the active connection, its schema tree and its last result.

    Responses that arrive after the active connection changed are dropped by
    comparing the activation token captured when the request was issued.
    """

    def __init__(
        self,
        backend: BackendService,
        registry: ConnectionRegistry,
        dispatcher: Optional[QueryDispatcher] = None,
        explorer: Optional[SchemaExplorer] = None,
    ):
        self.backend = backend
        self.registry = registry
        self.dispatcher = dispatcher or QueryDispatcher(backend)
        self.explorer = explorer or SchemaExplorer(backend)
        self.active: Optional[ConnectionDescriptor] = None
        self.last_result: Optional[QueryResult] = None
        self._generation = 0

    @property
    def token(self) -> ActivationToken:
        return ActivationToken(
            generation=self._generation,
            connection_id=self.active.connection_id if self.active else None,
        )

    def is_current(self, token: ActivationToken) -> bool:
        return token == self.token

    def _activate(self, descriptor: Optional[ConnectionDescriptor]) -> None:
        self._generation += 1
        self.active = descriptor
        self.last_result = None
        self.explorer.reset()

    async def connect(self, descriptor: ConnectionDescriptor) -> ConnectOutcome:
        try:
            request = get_adapter(descriptor.engine).build_connect_request(descriptor)
        except AdapterError as exc:
            return ConnectOutcome(success=False, message=str(exc))

        started = self._generation
        try:
            response = await self.backend.invoke(request.operation, **request.params)
        except BackendFailure as exc:
            logger.warning("Connect to %s failed: %s", descriptor.label, exc)
            return ConnectOutcome(success=False, message=str(exc))

        if not isinstance(response, Mapping):
            return ConnectOutcome(success=False, message="Backend returned an unexpected response")
        message = str(response.get("message") or "")
        connection_id = response.get("connection_id")
        if not response.get("success") or not connection_id:
            return ConnectOutcome(success=False, message=message or "Connection failed")

        connected = self.registry.upsert(
            descriptor.with_connection_id(str(connection_id)),
            replaces=descriptor.connection_id,
        )
        if self._generation != started:
            logger.info("Connection to %s completed after the session moved on; not activating", connected.label)
            await self._close(connected.connection_id)
            return ConnectOutcome(success=True, message=message, descriptor=connected)

        previous = self.active
        self._activate(connected)
        logger.info("Active connection: %s (%s)", connected.label, connected.connection_id)
        if previous is not None and previous.connection_id != connected.connection_id:
            await self._close(previous.connection_id)
        await self.refresh_schema()
        return ConnectOutcome(success=True, message=message, descriptor=connected)

    async def disconnect(self) -> None:
        previous = self.active
        self._activate(None)
        if previous is not None:
            await self._close(previous.connection_id)

    async def _close(self, connection_id: Optional[str]) -> None:
        if not connection_id:
            return
        try:
            await self.backend.invoke("close_connection", connection_id=connection_id)
        except BackendFailure as exc:
            logger.warning("Failed to close connection %s: %s", connection_id, exc)

    async def remove(self, connection_id: str) -> None:
        self.registry.remove(connection_id)
        if self.active is not None and self.active.connection_id == connection_id:
            await self.disconnect()

    async def refresh_schema(self) -> None:
        if self.active is None:
            self.explorer.reset()
            return
        await self.explorer.refresh(self.active)

    async def run_query(self, raw_query: Any) -> QueryResult:
        if self.active is None or not self.active.connection_id:
            return QueryResult.failure("No active connection")
        token = self.token
        result = await self.dispatcher.execute(self.active.connection_id, self.active.engine, raw_query)
        if self.is_current(token):
            self.last_result = result
        else:
            logger.debug("Discarding query result for inactive connection %s", token.connection_id)
        return result

    def select(self, path: Sequence[str]) -> Optional[Union[str, dict]]:
        return self.explorer.select(path)
