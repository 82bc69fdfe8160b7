from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Protocol, Sequence, Union

from connections.errors import InvalidConfiguration
from connections.models import ConnectionDescriptor

logger = logging.getLogger(__name__)

CONNECTIONS_KEY = "zentable-connections"


class PreferencesStore(Protocol):
    def load(self) -> List[ConnectionDescriptor]:
        ...

    def save(self, connections: Sequence[ConnectionDescriptor]) -> None:
        ...


class JsonFilePreferencesStore:
    """Key-value JSON file; the connection history lives under one key."""

    def __init__(self, path: Union[str, Path], key: str = CONNECTIONS_KEY):
        self.path = Path(path)
        self.key = key

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        if not isinstance(raw, dict):
            raise ValueError(f"Preferences file must hold a JSON object: {self.path}")
        return raw

    def load(self) -> List[ConnectionDescriptor]:
        entries = self._read_all().get(self.key) or []
        if not isinstance(entries, list):
            logger.warning("Ignoring malformed %s entry in %s", self.key, self.path)
            return []
        out: List[ConnectionDescriptor] = []
        for entry in entries:
            if not isinstance(entry, dict):
                logger.warning("Skipping saved connection that is not an object: %r", entry)
                continue
            try:
                out.append(ConnectionDescriptor.from_dict(entry))
            except InvalidConfiguration as exc:
                logger.warning("Skipping unreadable saved connection: %s", exc)
        return out

    def save(self, connections: Sequence[ConnectionDescriptor]) -> None:
        data = self._read_all()
        data[self.key] = [descriptor.to_dict() for descriptor in connections]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
