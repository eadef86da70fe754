from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from tutoring_tracker.config.user_settings_store import DEFAULT_SETTINGS, UserSettingsStore, normalize_setting

BASE_DIR = Path(__file__).resolve().parents[2]
ENV_PATH = BASE_DIR / ".env"
load_dotenv(ENV_PATH)

_LOGGER = logging.getLogger(__name__)

DOCUMENTS_PATH = Path(os.path.expanduser("~")) / "Documents"
APP_NAME = os.getenv("APP_NAME", "Tutoring Progress Tracker")
user_settings_store = UserSettingsStore()

APP_DATA_DIR = Path(user_settings_store.get("app_data_dir", str(DOCUMENTS_PATH / APP_NAME))).expanduser()
APP_DATA_DIR.mkdir(parents=True, exist_ok=True)


def _preference(store: UserSettingsStore, key: str, env_name: str) -> Any:
    raw = os.getenv(env_name)
    if raw is None:
        return store.get(key, DEFAULT_SETTINGS[key])
    try:
        return normalize_setting(key, raw)
    except ValueError as exc:
        _LOGGER.warning("Ignoring %s: %s", env_name, exc)
        return store.get(key, DEFAULT_SETTINGS[key])


def _build_settings(store: UserSettingsStore, app_data_dir: Path) -> "Settings":
    return Settings(
        app_name=APP_NAME,
        storage_backend=_preference(store, "storage_backend", "STORAGE_BACKEND"),
        database_path=Path(os.getenv("DATABASE_PATH", str(app_data_dir / "progress.db"))),
        remote_url=os.getenv("REMOTE_URL") or None,
        remote_api_key=os.getenv("REMOTE_API_KEY") or None,
        remote_timeout=float(os.getenv("REMOTE_TIMEOUT", "10")),
        fetch_limit=_preference(store, "fetch_limit", "FETCH_LIMIT"),
        export_delimiter=_preference(store, "export_delimiter", "EXPORT_DELIMITER"),
        admin_access_token=os.getenv("ADMIN_ACCESS_TOKEN") or None,
        log_level=os.getenv("LOG_LEVEL", "WARNING").upper(),
    )


@dataclass(frozen=True)
class Settings:
    app_name: str = APP_NAME
    storage_backend: str = "sqlite"
    database_path: Path = field(default_factory=lambda: APP_DATA_DIR / "progress.db")
    remote_url: str | None = None
    remote_api_key: str | None = field(default=None, repr=False)
    remote_timeout: float = 10.0
    fetch_limit: int = 100
    export_delimiter: str = ","
    admin_access_token: str | None = field(default=None, repr=False)
    log_level: str = "WARNING"


settings = _build_settings(user_settings_store, APP_DATA_DIR)


def refresh_settings_from_store() -> None:
    """Rebuild the settings object from the current user store values."""

    global settings, APP_DATA_DIR  # noqa: PLW0603 - module-level singletons

    user_settings_store.reload()

    app_data_dir = Path(user_settings_store.get("app_data_dir", str(DOCUMENTS_PATH / APP_NAME))).expanduser()
    app_data_dir.mkdir(parents=True, exist_ok=True)

    APP_DATA_DIR = app_data_dir
    settings = _build_settings(user_settings_store, APP_DATA_DIR)
