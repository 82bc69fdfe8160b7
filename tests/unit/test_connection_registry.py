import logging

from connections.models import ConnectionDescriptor
from connections.registry import ConnectionRegistry


def _pg(connection_id=None, host="localhost", port=5432, database="app", **extra):
    return ConnectionDescriptor.server(
        "postgres", host=host, port=port, database=database, connection_id=connection_id, **extra
    )


def test_upsert_prepends_new_connections(fake_store):
    registry = ConnectionRegistry(fake_store)
    first = ConnectionDescriptor.file("/tmp/a.db", connection_id="a")
    second = ConnectionDescriptor.file("/tmp/b.db", connection_id="b")
    registry.upsert(first)
    registry.upsert(second)
    assert [d.connection_id for d in registry.list()] == ["b", "a"]


def test_upsert_is_idempotent(fake_store):
    registry = ConnectionRegistry(fake_store)
    descriptor = _pg("id-1")
    registry.upsert(descriptor)
    registry.upsert(descriptor)
    assert registry.list() == [descriptor]


def test_reconnect_with_new_id_replaces_in_place(fake_store):
    registry = ConnectionRegistry(fake_store)
    registry.upsert(_pg("old-id"))
    registry.upsert(ConnectionDescriptor.file("/tmp/a.db", connection_id="file"))
    registry.upsert(_pg("new-id", name="Renamed"))
    listed = registry.list()
    assert [d.connection_id for d in listed] == ["file", "new-id"]
    assert listed[1].name == "Renamed"


def test_edit_matches_by_connection_id(fake_store):
    registry = ConnectionRegistry(fake_store)
    registry.upsert(_pg("id-1", database="app"))
    registry.upsert(_pg("id-1", database="reporting"))
    assert len(registry.list()) == 1
    assert registry.get("id-1").params.database == "reporting"


def test_connection_string_entries_match_on_exact_string(fake_store):
    registry = ConnectionRegistry(fake_store)
    registry.upsert(ConnectionDescriptor.server("mongodb", connection_string="mongodb://a/shop", connection_id="1"))
    registry.upsert(ConnectionDescriptor.server("mongodb", connection_string="mongodb://a/shop", connection_id="2"))
    registry.upsert(ConnectionDescriptor.server("mongodb", connection_string="mongodb://b/shop", connection_id="3"))
    assert [d.connection_id for d in registry.list()] == ["3", "2"]


def test_same_fields_different_engine_do_not_merge(fake_store):
    registry = ConnectionRegistry(fake_store)
    registry.upsert(ConnectionDescriptor.server("postgres", host="h", port=1, database="d"))
    registry.upsert(ConnectionDescriptor.server("mongodb", host="h", port=1, database="d"))
    assert len(registry.list()) == 2


def test_remove_is_idempotent_and_persists(fake_store):
    registry = ConnectionRegistry(fake_store)
    registry.upsert(_pg("id-1"))
    registry.remove("id-1")
    registry.remove("id-1")
    assert registry.list() == []
    assert len(fake_store.saved) == 3
    assert fake_store.saved[-1] == []


def test_every_mutation_writes_full_list(fake_store):
    registry = ConnectionRegistry(fake_store)
    registry.upsert(_pg("id-1"))
    registry.upsert(ConnectionDescriptor.file("/tmp/a.db", connection_id="id-2"))
    assert [d.connection_id for d in fake_store.saved[-1]] == ["id-2", "id-1"]


def test_save_failure_is_logged_not_raised(caplog, make_store):
    registry = ConnectionRegistry(make_store(fail_on_save=True))
    with caplog.at_level(logging.ERROR, logger="connections.registry"):
        registry.upsert(_pg("id-1"))
    assert registry.list()[0].connection_id == "id-1"
    assert "Failed to save connections" in caplog.text


def test_restore_loads_and_dedupes(make_store):
    saved = [_pg("a"), _pg("b"), ConnectionDescriptor.file("/tmp/x.db", connection_id="c")]
    registry = ConnectionRegistry(make_store(initial=saved))
    restored = registry.restore()
    assert [d.connection_id for d in restored] == ["a", "c"]


def test_restore_failure_starts_empty(caplog):
    class BrokenStore:
        def load(self):
            raise ValueError("corrupt")

        def save(self, connections):
            return None

    registry = ConnectionRegistry(BrokenStore())
    with caplog.at_level(logging.ERROR, logger="connections.registry"):
        assert registry.restore() == []
    assert "Failed to load saved connections" in caplog.text


def test_upsert_leaves_one_entry_per_identity(fake_store):
    registry = ConnectionRegistry(fake_store)
    registry.upsert(ConnectionDescriptor.file("/tmp/a.db", connection_id="1"))
    registry.upsert(ConnectionDescriptor.file("/tmp/b.db", connection_id="2"))
    registry.upsert(ConnectionDescriptor.file("/tmp/a.db", connection_id="2"))

    listed = registry.list()
    assert len(listed) == 1
    assert (listed[0].params.path, listed[0].connection_id) == ("/tmp/a.db", "2")
    assert [d.connection_id for d in fake_store.saved[-1]] == ["2"]


def test_upsert_replaces_edited_entry_by_previous_id(fake_store):
    registry = ConnectionRegistry(fake_store)
    registry.upsert(_pg("old-id", host="db1"))
    registry.upsert(ConnectionDescriptor.file("/tmp/a.db", connection_id="file"))
    registry.upsert(_pg("new-id", host="db2", name="Moved"), replaces="old-id")

    listed = registry.list()
    assert [d.connection_id for d in listed] == ["file", "new-id"]
    assert listed[1].params.host == "db2"
