# src/tasknest/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Settings stay injectable: tests build their own object instead of reading env.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKNEST"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    file_log_level: str
    log_dir: Path
    log_file: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path
    export_dir: Path
    storage_key_prefix: str

    # ---- Behaviour ----
    seed_demo_data: bool
    refresh_interval_seconds: float
    due_soon_hours: float
    analytics_window_days: int
    session_days: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tasknest") or "tasknest"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        file_log_level = _env(_k("FILE_LOG_LEVEL"), "DEBUG")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tasknest"))
        log_dir = _env_path(_k("LOG_DIR"), data_dir)
        log_file = _env(_k("LOG_FILE"), "tasknest.log").strip() or "tasknest.log"
        db_path = _env_path(_k("DB_PATH"), data_dir / "tasknest.sqlite3")
        export_dir = _env_path(_k("EXPORT_DIR"), data_dir / "exports")
        storage_key_prefix = _env(_k("STORAGE_KEY_PREFIX"), "tasknest").strip() or "tasknest"

        seed_demo_data = _env_bool(_k("SEED_DEMO_DATA"), True)
        refresh_interval_seconds = _env_float(_k("REFRESH_INTERVAL_SECONDS"), 300.0)
        due_soon_hours = _env_float(_k("DUE_SOON_HOURS"), 24.0)
        analytics_window_days = _env_int(_k("ANALYTICS_WINDOW_DAYS"), 30)
        session_days = _env_int(_k("SESSION_DAYS"), 7)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            file_log_level=file_log_level,
            log_dir=log_dir,
            log_file=log_file,
            data_dir=data_dir,
            db_path=db_path,
            export_dir=export_dir,
            storage_key_prefix=storage_key_prefix,
            seed_demo_data=seed_demo_data,
            refresh_interval_seconds=refresh_interval_seconds,
            due_soon_hours=due_soon_hours,
            analytics_window_days=analytics_window_days,
            session_days=session_days,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
