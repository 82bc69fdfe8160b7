from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import unquote, urlsplit

from connections.errors import InvalidConfiguration


class Engine(str, Enum):
    SQLITE = "sqlite"
    MONGODB = "mongodb"
    POSTGRES = "postgres"

    @property
    def is_relational(self) -> bool:
        return self is not Engine.MONGODB

    @classmethod
    def parse(cls, value: Union[str, "Engine"]) -> "Engine":
        if isinstance(value, Engine):
            return value
        tag = str(value or "").strip().lower()
        tag = _ENGINE_ALIASES.get(tag, tag)
        try:
            return cls(tag)
        except ValueError as exc:
            raise InvalidConfiguration(f"Unsupported engine: {value}") from exc


_ENGINE_ALIASES = {
    "postgresql": "postgres",
    "mongo": "mongodb",
}

_DBNAME_KEYWORD = re.compile(r"(?:^|\s)dbname\s*=\s*(?:'([^']*)'|(\S+))")


@dataclass(frozen=True)
class FileParams:
    path: Optional[str] = None


@dataclass(frozen=True)
class ServerParams:
    host: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    connection_string: Optional[str] = None
    options: Dict[str, str] = field(default_factory=dict)

    @property
    def uses_connection_string(self) -> bool:
        return bool(self.connection_string and self.connection_string.strip())

    @property
    def configured_database(self) -> Optional[str]:
        if self.uses_connection_string:
            return _database_from_connection_string(self.connection_string or "")
        return self.database or None


def _database_from_connection_string(connection_string: str) -> Optional[str]:
    text = connection_string.strip()
    if "://" in text:
        path = urlsplit(text).path.lstrip("/")
        return unquote(path) or None
    match = _DBNAME_KEYWORD.search(text)
    if match:
        return match.group(1) or match.group(2) or None
    return None


ConnectionParams = Union[FileParams, ServerParams]

_SERVER_FIELDS = ("host", "port", "username", "password", "database", "connection_string", "options")

_CAMEL_KEYS = {
    "connection_id": "connectionId",
    "connection_string": "connectionString",
}


def _coerce_port(raw: Any) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        port = int(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidConfiguration(f"Port must be a number, got: {raw!r}") from exc
    if not 0 < port < 65536:
        raise InvalidConfiguration(f"Port out of range: {port}")
    return port


@dataclass(frozen=True)
class ConnectionDescriptor:
    engine: Engine
    params: ConnectionParams
    name: Optional[str] = None
    connection_id: Optional[str] = None

    def __post_init__(self) -> None:
        engine = Engine.parse(self.engine)
        object.__setattr__(self, "engine", engine)
        expected = FileParams if engine is Engine.SQLITE else ServerParams
        if not isinstance(self.params, expected):
            raise InvalidConfiguration(
                f"{engine.value} connections take {expected.__name__}, got {type(self.params).__name__}"
            )

    @classmethod
    def file(cls, path: Optional[str], name: Optional[str] = None, connection_id: Optional[str] = None):
        return cls(engine=Engine.SQLITE, params=FileParams(path=path), name=name, connection_id=connection_id)

    @classmethod
    def server(
        cls,
        engine: Union[str, Engine],
        name: Optional[str] = None,
        connection_id: Optional[str] = None,
        **fields: Any,
    ) -> "ConnectionDescriptor":
        return cls.from_fields(engine, name=name, connection_id=connection_id, **fields)

    @classmethod
    def from_fields(cls, engine: Union[str, Engine], **fields: Any) -> "ConnectionDescriptor":
        parsed = Engine.parse(engine)
        name = fields.get("name") or None
        connection_id = fields.get("connection_id") or None
        if parsed is Engine.SQLITE:
            params: ConnectionParams = FileParams(path=fields.get("path"))
        else:
            params = ServerParams(
                host=fields.get("host"),
                port=_coerce_port(fields.get("port")),
                username=fields.get("username"),
                password=fields.get("password"),
                database=fields.get("database"),
                connection_string=fields.get("connection_string"),
                options=dict(fields.get("options") or {}),
            )
        return cls(engine=parsed, params=params, name=name, connection_id=connection_id)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ConnectionDescriptor":
        engine = raw.get("type") or raw.get("engine")
        fields = {
            "name": raw.get("name"),
            "connection_id": raw.get("connectionId", raw.get("connection_id")),
            "path": raw.get("path"),
            "connection_string": raw.get("connectionString", raw.get("connection_string")),
        }
        for key in ("host", "port", "username", "password", "database", "options"):
            fields[key] = raw.get(key)
        return cls.from_fields(engine, **fields)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": self.engine.value}
        if self.name:
            out["name"] = self.name
        if self.connection_id:
            out["connectionId"] = self.connection_id
        if isinstance(self.params, FileParams):
            if self.params.path is not None:
                out["path"] = self.params.path
            return out
        for key in _SERVER_FIELDS:
            value = getattr(self.params, key)
            if value is None or value == {}:
                continue
            out[_CAMEL_KEYS.get(key, key)] = value
        return out

    def with_connection_id(self, connection_id: Optional[str]) -> "ConnectionDescriptor":
        return replace(self, connection_id=connection_id)

    @property
    def configured_database(self) -> Optional[str]:
        if isinstance(self.params, ServerParams):
            return self.params.configured_database
        return None

    def identity_key(self) -> Tuple[Any, ...]:
        if isinstance(self.params, FileParams):
            return (self.engine.value, "path", self.params.path)
        if self.params.uses_connection_string:
            return (self.engine.value, "connection_string", self.params.connection_string)
        return (self.engine.value, "fields", self.params.host, self.params.port, self.params.database)

    def matches(self, other: "ConnectionDescriptor") -> bool:
        if self.connection_id and self.connection_id == other.connection_id:
            return True
        return self.identity_key() == other.identity_key()

    @property
    def label(self) -> str:
        if self.name:
            return self.name
        if isinstance(self.params, FileParams):
            return self.params.path or self.engine.value
        if self.params.uses_connection_string:
            return f"{self.engine.value} (connection string)"
        host = self.params.host or "localhost"
        port = f":{self.params.port}" if self.params.port else ""
        database = f"/{self.params.database}" if self.params.database else ""
        return f"{self.engine.value}://{host}{port}{database}"
