from __future__ import annotations

from typing import Union

from adapters.base import EngineAdapter
from adapters.mongodb import MongoDBAdapter
from adapters.postgres import PostgresAdapter
from adapters.sqlite import SQLiteAdapter
from connections.models import Engine


def get_adapter(engine: Union[str, Engine]) -> EngineAdapter:
    parsed = Engine.parse(engine)
    if parsed is Engine.SQLITE:
        return SQLiteAdapter()
    if parsed is Engine.MONGODB:
        return MongoDBAdapter()
    return PostgresAdapter()
