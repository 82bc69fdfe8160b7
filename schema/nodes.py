from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple, Union

SELECT_ROW_CAP = 100


class NodeKind(str, Enum):
    DATABASE = "database"
    SCHEMA = "schema"
    COLLECTION = "collection"
    TABLE = "table"


_LEGAL_CHILDREN = {
    NodeKind.DATABASE: {NodeKind.SCHEMA, NodeKind.COLLECTION},
    NodeKind.SCHEMA: {NodeKind.TABLE},
    NodeKind.COLLECTION: set(),
    NodeKind.TABLE: set(),
}


@dataclass(frozen=True)
class SchemaNode:
    name: str
    kind: NodeKind
    children: Tuple["SchemaNode", ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", NodeKind(self.kind))
        object.__setattr__(self, "children", tuple(self.children))
        allowed = _LEGAL_CHILDREN[self.kind]
        for child in self.children:
            if child.kind not in allowed:
                raise ValueError(f"{child.kind.value} node cannot be a child of a {self.kind.value} node")

    @property
    def is_leaf(self) -> bool:
        return not _LEGAL_CHILDREN[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "kind": self.kind.value}
        if not self.is_leaf:
            out["children"] = [child.to_dict() for child in self.children]
        return out


def find_node(
    tree: Sequence[SchemaNode], path: Sequence[str]
) -> Optional[Tuple[SchemaNode, Tuple[SchemaNode, ...]]]:
    if not path:
        return None
    level: Sequence[SchemaNode] = tree
    ancestors: Tuple[SchemaNode, ...] = ()
    node: Optional[SchemaNode] = None
    for depth, name in enumerate(path):
        node = next((candidate for candidate in level if candidate.name == name), None)
        if node is None:
            return None
        if depth < len(path) - 1:
            ancestors = ancestors + (node,)
            level = node.children
    return node, ancestors


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def table_query(name: str) -> str:
    return f"SELECT * FROM {quote_identifier(name)} LIMIT {SELECT_ROW_CAP};"


def collection_query(db_name: str, collection: str) -> Dict[str, Any]:
    return {"db": db_name, "collection": collection, "operation": "find", "filter": {}}


def selection_query(
    node: SchemaNode, ancestors: Sequence[SchemaNode] = ()
) -> Optional[Union[str, Dict[str, Any]]]:
    """Query template for a clicked node; database and schema nodes only expand."""
    if node.kind is NodeKind.TABLE:
        return table_query(node.name)
    if node.kind is NodeKind.COLLECTION:
        parent_db = next((a for a in reversed(ancestors) if a.kind is NodeKind.DATABASE), None)
        if parent_db is None:
            return None
        return collection_query(parent_db.name, node.name)
    return None


def format_query(query: Union[str, Dict[str, Any], None]) -> str:
    if query is None:
        return ""
    if isinstance(query, str):
        return query
    return json.dumps(query, indent=2)
