from __future__ import annotations

import logging
from typing import List, Optional

from connections.models import ConnectionDescriptor
from preferences.store import PreferencesStore

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Known connections, most recent first.

    Mutated only from the session's sequential flow; every change is written
    through to the preferences store, and a failed write leaves the in-memory
    list authoritative.
    """

    def __init__(self, store: Optional[PreferencesStore] = None):
        self._store = store
        self._connections: List[ConnectionDescriptor] = []

    def restore(self) -> List[ConnectionDescriptor]:
        if self._store is None:
            return self.list()
        try:
            loaded = list(self._store.load())
        except Exception:
            logger.exception("Failed to load saved connections; starting with an empty list")
            loaded = []
        self._connections = []
        for descriptor in loaded:
            if self._index_of(descriptor) is None:
                self._connections.append(descriptor)
        return self.list()

    def list(self) -> List[ConnectionDescriptor]:
        return list(self._connections)

    def get(self, connection_id: str) -> Optional[ConnectionDescriptor]:
        for descriptor in self._connections:
            if connection_id and descriptor.connection_id == connection_id:
                return descriptor
        return None

    def upsert(self, descriptor: ConnectionDescriptor, replaces: Optional[str] = None) -> ConnectionDescriptor:
        """Insert or replace; `replaces` is the id the entry had before a reconnect or edit."""
        index = self._index_of(descriptor, replaces)
        if index is None:
            self._connections.insert(0, descriptor)
            index = 0
        else:
            self._connections[index] = descriptor
        # At most one entry per identity; the replaced slot wins.
        self._connections = [
            existing
            for position, existing in enumerate(self._connections)
            if position == index or not self._is_match(existing, descriptor, replaces)
        ]
        self._persist()
        return descriptor

    def remove(self, connection_id: str) -> None:
        if connection_id:
            self._connections = [d for d in self._connections if d.connection_id != connection_id]
        self._persist()

    @staticmethod
    def _is_match(existing: ConnectionDescriptor, descriptor: ConnectionDescriptor, replaces: Optional[str] = None) -> bool:
        if replaces and existing.connection_id == replaces:
            return True
        return existing.matches(descriptor)

    def _index_of(self, descriptor: ConnectionDescriptor, replaces: Optional[str] = None) -> Optional[int]:
        for index, existing in enumerate(self._connections):
            if self._is_match(existing, descriptor, replaces):
                return index
        return None

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(self.list())
        except Exception:
            logger.exception("Failed to save connections; keeping in-memory registry")
