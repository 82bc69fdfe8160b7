import json

import pytest

from schema.nodes import NodeKind, SchemaNode, find_node, format_query, selection_query, table_query


def _mongo_tree():
    users = SchemaNode(name="users", kind=NodeKind.COLLECTION)
    return (SchemaNode(name="shop", kind=NodeKind.DATABASE, children=[users]),)


def test_table_selection_yields_capped_select():
    node = SchemaNode(name="orders", kind=NodeKind.TABLE)
    assert selection_query(node) == 'SELECT * FROM "orders" LIMIT 100;'


def test_table_name_quotes_are_doubled():
    assert table_query('odd"name') == 'SELECT * FROM "odd""name" LIMIT 100;'


def test_collection_selection_uses_parent_database():
    tree = _mongo_tree()
    node, ancestors = find_node(tree, ["shop", "users"])
    assert selection_query(node, ancestors) == {"db": "shop", "collection": "users", "operation": "find", "filter": {}}


def test_collection_without_database_yields_nothing():
    assert selection_query(SchemaNode(name="users", kind=NodeKind.COLLECTION)) is None


def test_database_and_schema_nodes_only_expand():
    schema = SchemaNode(name="public", kind=NodeKind.SCHEMA)
    database = SchemaNode(name="app", kind=NodeKind.DATABASE, children=[schema])
    assert selection_query(database) is None
    assert selection_query(schema, (database,)) is None


def test_illegal_nesting_is_rejected():
    with pytest.raises(ValueError, match="cannot be a child"):
        SchemaNode(name="public", kind=NodeKind.SCHEMA, children=[SchemaNode(name="shop", kind=NodeKind.DATABASE)])
    with pytest.raises(ValueError):
        SchemaNode(name="t", kind=NodeKind.TABLE, children=[SchemaNode(name="u", kind=NodeKind.TABLE)])


def test_find_node_unknown_path():
    assert find_node(_mongo_tree(), ["shop", "orders"]) is None
    assert find_node(_mongo_tree(), []) is None


def test_to_dict_omits_children_on_leaves():
    assert _mongo_tree()[0].to_dict() == {
        "name": "shop",
        "kind": "database",
        "children": [{"name": "users", "kind": "collection"}],
    }


def test_format_query_renders_editor_text():
    assert format_query('SELECT * FROM "t" LIMIT 100;') == 'SELECT * FROM "t" LIMIT 100;'
    document = {"db": "shop", "collection": "users", "operation": "find", "filter": {}}
    assert json.loads(format_query(document)) == document
    assert format_query(None) == ""
