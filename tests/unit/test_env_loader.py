import os
from pathlib import Path

import pytest

from utils.env_loader import get_settings, load_environments

_KEYS = (
    "ZENTABLE_PREFERENCES_PATH",
    "ZENTABLE_BACKEND_TIMEOUT_S",
    "ZENTABLE_MONGO_TIMEOUT_MS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    # load_environments writes os.environ directly
    for key in _KEYS:
        os.environ.pop(key, None)


def test_defaults():
    settings = get_settings()
    assert settings.preferences_path == Path("data/preferences.json")
    assert settings.backend_timeout_s == 30.0
    assert settings.mongo_timeout_ms == 5000
    assert settings.log_level == "INFO"


def test_env_file_does_not_override_existing_environment(monkeypatch, tmp_path):
    (tmp_path / ".env").write_text(
        "# local overrides\nZENTABLE_BACKEND_TIMEOUT_S=12.5\nLOG_LEVEL='debug'\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("LOG_LEVEL", "warning")
    settings = get_settings()
    assert settings.backend_timeout_s == 12.5
    assert settings.log_level == "WARNING"


def test_load_environments_ignores_missing_file(tmp_path):
    load_environments(str(tmp_path / "nope.env"))


@pytest.mark.parametrize(
    ("key", "value", "message"),
    [
        ("ZENTABLE_BACKEND_TIMEOUT_S", "soon", "must be a number"),
        ("ZENTABLE_MONGO_TIMEOUT_MS", "0", "must be positive"),
    ],
)
def test_invalid_numbers_are_rejected(monkeypatch, key, value, message):
    monkeypatch.setenv(key, value)
    with pytest.raises(ValueError, match=message):
        get_settings()
