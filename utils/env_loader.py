import os
from dataclasses import dataclass
from pathlib import Path


def load_environments(env_path: str = ".env") -> None:
    env_file = Path(env_path)
    if not env_file.exists():
        return

    for raw_line in env_file.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip("'").strip('"')
        if key and key not in os.environ:
            os.environ[key] = value


@dataclass(frozen=True)
class Settings:
    preferences_path: Path
    backend_timeout_s: float
    mongo_timeout_ms: int
    log_level: str


def _env_number(name: str, default: str, cast):
    raw = os.getenv(name, default)
    try:
        value = cast(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number, got: {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive")
    return value


def get_settings() -> Settings:
    load_environments()
    return Settings(
        preferences_path=Path(os.getenv("ZENTABLE_PREFERENCES_PATH", "data/preferences.json")),
        backend_timeout_s=_env_number("ZENTABLE_BACKEND_TIMEOUT_S", "30", float),
        mongo_timeout_ms=_env_number("ZENTABLE_MONGO_TIMEOUT_MS", "5000", int),
        log_level=(os.getenv("LOG_LEVEL", "INFO") or "INFO").strip().upper(),
    )
