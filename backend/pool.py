from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)


class UnknownConnection(LookupError):
    pass


def generate_connection_id() -> str:
    return str(uuid4())


@dataclass
class OpenConnection:
    engine: str
    handle: Any
    close: Callable[[Any], None]
    lock: threading.Lock = field(default_factory=threading.Lock)


class ConnectionPool:
    def __init__(self) -> None:
        self._connections: Dict[str, OpenConnection] = {}
        self._lock = threading.Lock()

    def add(self, engine: str, handle: Any, close: Callable[[Any], None]) -> str:
        connection_id = generate_connection_id()
        with self._lock:
            self._connections[connection_id] = OpenConnection(engine=engine, handle=handle, close=close)
        return connection_id

    def get(self, connection_id: str, engine: Optional[str] = None) -> OpenConnection:
        with self._lock:
            entry = self._connections.get(connection_id)
        if entry is None or (engine is not None and entry.engine != engine):
            raise UnknownConnection(f"Connection with ID {connection_id} not found")
        return entry

    def remove(self, connection_id: str) -> bool:
        with self._lock:
            entry = self._connections.pop(connection_id, None)
        if entry is None:
            return False
        with entry.lock:
            entry.close(entry.handle)
        return True

    def close_all(self) -> None:
        with self._lock:
            ids = list(self._connections)
        for connection_id in ids:
            try:
                self.remove(connection_id)
            except Exception:
                logger.exception("Failed to close connection %s", connection_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)
