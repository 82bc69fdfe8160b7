from typing import Optional

from fastapi import APIRouter, HTTPException

from api.schemas import (
    ConnectionListResponse,
    ConnectRequest,
    ConnectResponse,
    QueryRequest,
    QueryResponse,
    SchemaResponse,
    SchemaSelectRequest,
    SchemaSelectResponse,
)
from backend.service import LocalBackendService
from connections.errors import InvalidConfiguration
from connections.models import ConnectionDescriptor
from connections.registry import ConnectionRegistry
from preferences.store import JsonFilePreferencesStore
from query.results import view_of
from schema.nodes import format_query
from utils.env_loader import get_settings
from workbench.session import Workbench

router = APIRouter()

_workbench: Optional[Workbench] = None


def get_workbench() -> Workbench:
    global _workbench
    if _workbench is None:
        settings = get_settings()
        backend = LocalBackendService(
            timeout_s=settings.backend_timeout_s,
            mongo_timeout_ms=settings.mongo_timeout_ms,
        )
        registry = ConnectionRegistry(JsonFilePreferencesStore(settings.preferences_path))
        registry.restore()
        _workbench = Workbench(backend=backend, registry=registry)
    return _workbench


def shutdown_workbench() -> None:
    global _workbench
    if _workbench is not None and isinstance(_workbench.backend, LocalBackendService):
        _workbench.backend.shutdown()
    _workbench = None


def _schema_response(workbench: Workbench) -> SchemaResponse:
    explorer = workbench.explorer
    return SchemaResponse(
        state=explorer.state.value,
        error=explorer.error,
        connection_id=workbench.active.connection_id if workbench.active else None,
        tree=[node.to_dict() for node in explorer.tree],
    )


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/connections", response_model=ConnectionListResponse)
def list_connections() -> ConnectionListResponse:
    workbench = get_workbench()
    connections = [descriptor.to_dict() for descriptor in workbench.registry.list()]
    return ConnectionListResponse(
        connections=connections,
        count=len(connections),
        active_connection_id=workbench.active.connection_id if workbench.active else None,
    )


@router.post("/connections/connect", response_model=ConnectResponse)
async def connect(request: ConnectRequest) -> ConnectResponse:
    fields = request.model_dump(exclude={"type"})
    try:
        descriptor = ConnectionDescriptor.from_fields(request.type, **fields)
    except InvalidConfiguration as exc:
        return ConnectResponse(success=False, message=str(exc))

    outcome = await get_workbench().connect(descriptor)
    return ConnectResponse(
        success=outcome.success,
        message=outcome.message,
        connection=outcome.descriptor.to_dict() if outcome.descriptor else None,
    )


@router.post("/connections/disconnect")
async def disconnect() -> dict:
    await get_workbench().disconnect()
    return {"status": "disconnected"}


@router.delete("/connections/{connection_id}")
async def delete_connection(connection_id: str) -> dict:
    await get_workbench().remove(connection_id)
    return {"status": "removed", "connection_id": connection_id}


@router.post("/query", response_model=QueryResponse)
async def run_query(request: QueryRequest) -> QueryResponse:
    result = await get_workbench().run_query(request.query)
    view = view_of(result)
    return QueryResponse(**result.to_dict(), view=view.kind, message=view.message)


@router.get("/schema", response_model=SchemaResponse)
def get_schema() -> SchemaResponse:
    return _schema_response(get_workbench())


@router.post("/schema/refresh", response_model=SchemaResponse)
async def refresh_schema() -> SchemaResponse:
    workbench = get_workbench()
    await workbench.refresh_schema()
    return _schema_response(workbench)


@router.post("/schema/select", response_model=SchemaSelectResponse)
def select_node(request: SchemaSelectRequest) -> SchemaSelectResponse:
    workbench = get_workbench()
    if workbench.active is None:
        raise HTTPException(status_code=409, detail="No active connection")
    try:
        query = workbench.select(request.path)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Schema node not found: {'/'.join(request.path)}") from exc
    return SchemaSelectResponse(query=query, query_text=format_query(query))
