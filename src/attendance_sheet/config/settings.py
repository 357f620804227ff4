from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from attendance_sheet.config.user_settings_store import DEFAULT_SETTINGS, UserSettingsStore

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parents[2]
ENV_PATH = BASE_DIR / ".env"
load_dotenv(ENV_PATH)

APP_NAME = os.getenv("APP_NAME", "Institute Attendance Sheet")
user_settings_store = UserSettingsStore()


def _optional(value: object) -> str | None:
    text = str(value).strip() if value is not None else ""
    return text or None


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_data_dir: Path
    database_path: Path
    log_path: Path
    autosave_delay_ms: int
    teacher_id: str | None

    @classmethod
    def from_environment(cls, store: UserSettingsStore) -> "Settings":
        app_data_dir = store.app_data_dir
        app_data_dir.mkdir(parents=True, exist_ok=True)
        return cls(
            app_name=APP_NAME,
            app_data_dir=app_data_dir,
            database_path=Path(os.getenv("DATABASE_PATH", str(app_data_dir / "attendance_sheet.db"))),
            log_path=Path(os.getenv("LOG_PATH", str(app_data_dir / "attendance_sheet.log"))),
            autosave_delay_ms=int(
                os.getenv("AUTOSAVE_DELAY_MS", store.get("autosave_delay_ms", DEFAULT_SETTINGS["autosave_delay_ms"]))
            ),
            teacher_id=_optional(os.getenv("TEACHER_ID") or store.get("teacher_id")),
        )


settings = Settings.from_environment(user_settings_store)


def refresh_settings_from_store() -> None:
    """Rebuild the settings object from the current user store values."""

    global settings  # noqa: PLW0603 - module-level singleton

    user_settings_store.reload()
    settings = Settings.from_environment(user_settings_store)
    logger.info("Settings reloaded: %s", settings)
