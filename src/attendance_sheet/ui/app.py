from __future__ import annotations

import json
import logging
import re
from pathlib import Path

import customtkinter as ctk

from attendance_sheet.config import settings as settings_module
from attendance_sheet.config.settings import refresh_settings_from_store, user_settings_store
from attendance_sheet.data import Database
from attendance_sheet.services import SheetStore
from attendance_sheet.ui.attendance_sheet_view import AttendanceSheetView
from attendance_sheet.ui.settings_view import SettingsView
from attendance_sheet.ui.student_progress_view import StudentProgressView
from attendance_sheet.ui.theme import VS_ACCENT, VS_ACCENT_HOVER, VS_BG, VS_SURFACE, VS_TEXT

logger = logging.getLogger(__name__)

NAV_ITEMS = {
    "Sheet": "sheet",
    "Progress": "progress",
    "Settings": "settings",
}
WINDOW_POSITION_FILENAME = "window_position.json"


class AttendanceSheetApp:
    def __init__(self) -> None:
        settings = settings_module.settings

        ctk.set_appearance_mode("dark")

        self._root = ctk.CTk()
        self._root.title(settings.app_name)
        self._root.geometry("1280x720")
        self._root.minsize(1080, 640)
        self._root.configure(fg_color=VS_BG)

        self._root.grid_rowconfigure(1, weight=1)
        self._root.grid_columnconfigure(0, weight=1)

        self._database = Database(settings.database_path)
        self._store = SheetStore(self._database)
        self._store.initialize()

        self._nav = ctk.CTkSegmentedButton(
            self._root,
            values=list(NAV_ITEMS),
            command=lambda label: self._show_view(NAV_ITEMS[label]),
            fg_color=VS_SURFACE,
            selected_color=VS_ACCENT,
            selected_hover_color=VS_ACCENT_HOVER,
            text_color=VS_TEXT,
        )
        self._nav.grid(row=0, column=0, sticky="w", padx=16, pady=(12, 0))

        self._content = ctk.CTkFrame(self._root, corner_radius=0, fg_color=VS_BG)
        self._content.grid(row=1, column=0, sticky="nsew")
        self._content.grid_rowconfigure(0, weight=1)
        self._content.grid_columnconfigure(0, weight=1)

        self._sheet_view = AttendanceSheetView(
            self._content,
            self._store,
            teacher_id=settings.teacher_id,
            autosave_delay_ms=settings.autosave_delay_ms,
            initial_month=user_settings_store.get("last_month"),
            on_month_changed=self._handle_month_changed,
        )
        self._progress_view = StudentProgressView(self._content, self._store)
        self._settings_view = SettingsView(
            self._content,
            store=user_settings_store,
            on_settings_saved=self._handle_settings_saved,
        )

        self._views = {
            "sheet": self._sheet_view,
            "progress": self._progress_view,
            "settings": self._settings_view,
        }
        for view in self._views.values():
            view.grid(row=0, column=0, sticky="nsew")

        initial_view = "sheet" if settings.teacher_id else "settings"
        self._show_view(initial_view)
        self._nav.set(next(label for label, key in NAV_ITEMS.items() if key == initial_view))
        self._sheet_view.open_sheet()

        self._restore_window_position()
        self._root.protocol("WM_DELETE_WINDOW", self._on_close)

    def _show_view(self, key: str) -> None:
        for view in self._views.values():
            view.grid_remove()
        view = self._views.get(key)
        if view is None:
            return
        view.grid()
        if key == "progress":
            self._progress_view.refresh()
        elif key == "settings":
            self._settings_view.refresh()

    def _handle_month_changed(self, month: str) -> None:
        if user_settings_store.get("last_month") != month:
            user_settings_store.update(last_month=month)

    def _handle_settings_saved(self, _updated: dict[str, object]) -> None:
        previous_db_path = self._database.path

        refresh_settings_from_store()
        settings = settings_module.settings

        store: SheetStore | None = None
        if settings.database_path != previous_db_path:
            logger.info("Switching database to %s", settings.database_path)
            # Pending edits belong to the old database.
            self._sheet_view.close()
            self._database = Database(settings.database_path)
            self._store = SheetStore(self._database)
            self._store.initialize()
            self._progress_view.set_store(self._store)
            store = self._store

        self._sheet_view.apply_preferences(
            teacher_id=settings.teacher_id,
            autosave_delay_ms=settings.autosave_delay_ms,
            store=store,
        )

    def _window_position_file(self) -> Path:
        return Path(user_settings_store.app_data_dir) / WINDOW_POSITION_FILENAME

    def _restore_window_position(self) -> None:
        config_file = self._window_position_file()
        if not config_file.exists():
            return
        try:
            position = json.loads(config_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable window position file %s", config_file)
            return
        x, y = position.get("x"), position.get("y")
        if x is None or y is None or not (0 <= x < 3000 and 0 <= y < 2000):
            return
        self._root.geometry(f"{position.get('width', 1280)}x{position.get('height', 720)}+{x}+{y}")

    def _save_window_position(self) -> None:
        matches = re.match(r"(\d+)x(\d+)\+(-?\d+)\+(-?\d+)", self._root.geometry())
        if not matches:
            return
        width, height, x, y = map(int, matches.groups())
        try:
            self._window_position_file().write_text(
                json.dumps({"width": width, "height": height, "x": x, "y": y}),
                encoding="utf-8",
            )
        except OSError:
            logger.warning("Could not save window position")

    def _on_close(self) -> None:
        self._sheet_view.close()
        self._save_window_position()
        self._root.destroy()

    def run(self) -> None:
        self._root.mainloop()

