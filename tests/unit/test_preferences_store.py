import json

from connections.models import ConnectionDescriptor
from preferences.store import CONNECTIONS_KEY, JsonFilePreferencesStore


def test_missing_file_loads_empty(tmp_path):
    store = JsonFilePreferencesStore(tmp_path / "nested" / "prefs.json")
    assert store.load() == []


def test_save_then_load_keeps_order_and_fields(tmp_path):
    store = JsonFilePreferencesStore(tmp_path / "nested" / "prefs.json")
    connections = [
        ConnectionDescriptor.server("postgres", name="App", host="localhost", port=5432, database="app", connection_id="1"),
        ConnectionDescriptor.file("/tmp/a.db", connection_id="2"),
    ]
    store.save(connections)
    assert store.load() == connections


def test_save_preserves_other_keys(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")
    store = JsonFilePreferencesStore(path)
    store.save([ConnectionDescriptor.file("/tmp/a.db")])
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["theme"] == "dark"
    assert data[CONNECTIONS_KEY] == [{"type": "sqlite", "path": "/tmp/a.db"}]


def test_unreadable_entries_are_skipped(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text(
        json.dumps({CONNECTIONS_KEY: [{"type": "oracle"}, "junk", {"type": "sqlite", "path": "/tmp/a.db"}]}),
        encoding="utf-8",
    )
    loaded = JsonFilePreferencesStore(path).load()
    assert loaded == [ConnectionDescriptor.file("/tmp/a.db")]
