"""In-process Backend Execution Service.

Operations are addressed by name (``connect_sqlite``, ``execute_query``, ...) and
run the blocking drivers on worker threads. Every failure reaches the caller as
``BackendFailure``; there is no cancellation, a timed-out call keeps running on
its thread and its outcome is dropped, except that a late ``connect_*`` has the
handle it opened closed again.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol

from backend import mongodb_backend, postgres_backend, sqlite_backend
from backend.errors import BackendFailure
from backend.pool import ConnectionPool, UnknownConnection

logger = logging.getLogger(__name__)


class BackendService(Protocol):
    async def invoke(self, operation: str, **params: Any) -> Any:
        ...


_ENGINE_LABELS = {
    "sqlite": "SQLite",
    "mongodb": "MongoDB",
    "postgres": "PostgreSQL",
}


class LocalBackendService:
    def __init__(
        self,
        timeout_s: float = 30.0,
        mongo_timeout_ms: int = 5000,
        pool: Optional[ConnectionPool] = None,
    ):
        self.timeout_s = timeout_s
        self.mongo_timeout_ms = mongo_timeout_ms
        self.pool = pool or ConnectionPool()
        self._handlers: Dict[str, Callable[..., Any]] = {
            "connect_sqlite": self._connect_sqlite,
            "connect_mongodb": self._connect_mongodb,
            "connect_postgres": self._connect_postgres,
            "execute_query": self._execute_query,
            "get_tables": self._get_tables,
            "list_databases": self._list_databases,
            "list_collections": self._list_collections,
            "list_tables": self._list_tables,
            "close_connection": self._close_connection,
        }

    @property
    def operations(self) -> List[str]:
        return sorted(self._handlers)

    async def invoke(self, operation: str, **params: Any) -> Any:
        handler = self._handlers.get(operation)
        if handler is None:
            raise BackendFailure(f"Unknown backend operation: {operation}")
        task = asyncio.ensure_future(asyncio.to_thread(handler, **params))
        try:
            # Shielded so a timed-out call still finishes and its outcome can be released.
            return await asyncio.wait_for(asyncio.shield(task), timeout=self.timeout_s)
        except BackendFailure:
            raise
        except asyncio.TimeoutError as exc:
            task.add_done_callback(lambda done: self._release_late_result(operation, done))
            raise BackendFailure(f"{operation} timed out after {self.timeout_s:g}s") from exc
        except asyncio.CancelledError:
            task.add_done_callback(lambda done: self._release_late_result(operation, done))
            raise
        except UnknownConnection as exc:
            raise BackendFailure(str(exc)) from exc
        except Exception as exc:
            logger.warning("Backend operation %s failed: %s", operation, exc)
            raise BackendFailure(f"{operation} failed: {exc}") from exc

    def _release_late_result(self, operation: str, task: "asyncio.Future[Any]") -> None:
        if task.cancelled() or task.exception() is not None:
            return
        response = task.result()
        if not operation.startswith("connect_") or not isinstance(response, Mapping):
            return
        connection_id = response.get("connection_id")
        if connection_id and self.pool.remove(connection_id):
            logger.info("Closed connection %s opened after %s timed out", connection_id, operation)

    def shutdown(self) -> None:
        self.pool.close_all()

    def _connect(self, engine: str, open_handle: Callable[[], Any], close: Callable[[Any], None]) -> Dict[str, Any]:
        label = _ENGINE_LABELS[engine]
        try:
            handle = open_handle()
        except BackendFailure as exc:
            return self._connect_failed(label, str(exc))
        except Exception as exc:
            return self._connect_failed(label, f"Failed to connect to {label}: {exc}")
        connection_id = self.pool.add(engine, handle, close)
        logger.info("%s connection established: %s", label, connection_id)
        return {"success": True, "connection_id": connection_id, "message": f"{label} connection established"}

    @staticmethod
    def _connect_failed(label: str, message: str) -> Dict[str, Any]:
        logger.info("%s connection failed: %s", label, message)
        return {"success": False, "connection_id": None, "message": message}

    def _connect_sqlite(self, path: str) -> Dict[str, Any]:
        return self._connect("sqlite", lambda: sqlite_backend.connect(path), sqlite_backend.close)

    def _connect_mongodb(self, config: Mapping[str, Any]) -> Dict[str, Any]:
        return self._connect(
            "mongodb",
            lambda: mongodb_backend.connect(config, timeout_ms=self.mongo_timeout_ms),
            mongodb_backend.close,
        )

    def _connect_postgres(self, config: Mapping[str, Any]) -> Dict[str, Any]:
        return self._connect("postgres", lambda: postgres_backend.connect(config), postgres_backend.close)

    def _execute_query(self, connection_id: str, query: Any, db_type: str) -> Dict[str, Any]:
        engine = (db_type or "").strip().lower()
        runners = {
            "sqlite": sqlite_backend.execute_query,
            "mongodb": mongodb_backend.execute_query,
            "postgres": postgres_backend.execute_query,
        }
        runner = runners.get(engine)
        if runner is None:
            raise BackendFailure(f"Unsupported database type: {db_type}")
        entry = self.pool.get(connection_id, engine=engine)
        with entry.lock:
            try:
                return runner(entry.handle, query)
            except BackendFailure:
                raise
            except Exception as exc:
                raise BackendFailure(f"Failed to execute {_ENGINE_LABELS[engine]} query: {exc}") from exc

    def _get_tables(self, connection_id: str) -> List[str]:
        entry = self.pool.get(connection_id, engine="sqlite")
        with entry.lock:
            return sqlite_backend.get_tables(entry.handle)

    def _list_databases(self, connection_id: str) -> List[str]:
        entry = self.pool.get(connection_id)
        with entry.lock:
            if entry.engine == "mongodb":
                return mongodb_backend.list_databases(entry.handle)
            if entry.engine == "postgres":
                return postgres_backend.list_databases(entry.handle)
        raise BackendFailure(f"{_ENGINE_LABELS[entry.engine]} connections do not support listing databases")

    def _list_collections(self, connection_id: str, db_name: str) -> List[str]:
        entry = self.pool.get(connection_id, engine="mongodb")
        with entry.lock:
            return mongodb_backend.list_collections(entry.handle, db_name)

    def _list_tables(self, connection_id: str, schema: Optional[str] = None) -> List[str]:
        entry = self.pool.get(connection_id, engine="postgres")
        with entry.lock:
            return postgres_backend.list_tables(entry.handle, schema)

    def _close_connection(self, connection_id: str) -> bool:
        closed = self.pool.remove(connection_id)
        if closed:
            logger.info("Connection closed: %s", connection_id)
        return closed
