from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class ConnectRequest(BaseModel):
    type: str = Field(..., min_length=3, max_length=30, description="sqlite, mongodb or postgres")
    name: Optional[str] = Field(default=None, max_length=120)
    connection_id: Optional[str] = Field(default=None, description="Existing backend id when editing a saved connection")
    path: Optional[str] = Field(default=None, max_length=1000)
    host: Optional[str] = Field(default=None, max_length=255)
    port: Optional[int] = Field(default=None, ge=1, le=65535)
    username: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=1000)
    database: Optional[str] = Field(default=None, max_length=255)
    connection_string: Optional[str] = Field(default=None, max_length=2000)
    options: Optional[Dict[str, str]] = None


class ConnectResponse(BaseModel):
    success: bool
    message: str
    connection: Optional[Dict[str, Any]] = None


class ConnectionListResponse(BaseModel):
    connections: List[Dict[str, Any]]
    count: int
    active_connection_id: Optional[str] = None


class QueryRequest(BaseModel):
    query: Union[str, Dict[str, Any]] = Field(..., description="SQL text, or a document query object/JSON text")


class QueryResponse(BaseModel):
    columns: List[str]
    rows: List[Dict[str, Any]]
    affected_rows: Optional[int] = None
    success: bool
    error: Optional[str] = None
    view: str
    message: Optional[str] = None


class SchemaResponse(BaseModel):
    state: str
    error: Optional[str] = None
    connection_id: Optional[str] = None
    tree: List[Dict[str, Any]]


class SchemaSelectRequest(BaseModel):
    path: List[str] = Field(..., min_length=1, max_length=3)


class SchemaSelectResponse(BaseModel):
    query: Optional[Union[str, Dict[str, Any]]] = None
    query_text: str
