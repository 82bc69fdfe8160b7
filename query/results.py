from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID


def to_jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"BLOB({len(value)} bytes)"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID, timedelta)):
        return str(value)
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return str(value)


@dataclass
class QueryResult:
    columns: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    affected_rows: Optional[int] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def is_empty(self) -> bool:
        return self.success and not self.rows

    @classmethod
    def failure(cls, message: str) -> "QueryResult":
        return cls(columns=[], rows=[], affected_rows=None, error=str(message) or "Unknown error")

    @classmethod
    def from_backend(cls, payload: Mapping[str, Any]) -> "QueryResult":
        raw_columns = payload.get("columns")
        columns = [str(c) for c in raw_columns] if isinstance(raw_columns, (list, tuple)) else []

        raw_rows = payload.get("rows")
        rows: List[Dict[str, Any]] = []
        if isinstance(raw_rows, (list, tuple)):
            rows = [dict(row) for row in raw_rows if isinstance(row, Mapping)]

        affected = payload.get("affected_rows")
        if isinstance(affected, bool) or not isinstance(affected, int):
            affected = None

        error = payload.get("error")
        if error is not None:
            error = str(error)
        elif payload.get("success") is False:
            error = "Backend reported failure without a message"
        return cls(columns=columns, rows=rows, affected_rows=affected, error=error)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": list(self.columns),
            "rows": [dict(row) for row in self.rows],
            "affected_rows": self.affected_rows,
            "success": self.success,
            "error": self.error,
        }


def render_cell(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


@dataclass(frozen=True)
class ResultView:
    kind: str
    message: Optional[str] = None
    headers: List[str] = field(default_factory=list)
    cells: List[List[str]] = field(default_factory=list)


def view_of(result: QueryResult) -> ResultView:
    if not result.success:
        return ResultView(kind="error", message=result.error)
    if not result.rows:
        message = "Query executed successfully."
        if result.affected_rows is not None:
            message = f"Query executed successfully. {result.affected_rows} rows affected."
        return ResultView(kind="empty", message=message, headers=list(result.columns))
    cells = [[render_cell(row.get(column)) for column in result.columns] for row in result.rows]
    return ResultView(kind="table", headers=list(result.columns), cells=cells)
