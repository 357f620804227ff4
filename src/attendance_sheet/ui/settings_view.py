from __future__ import annotations

from pathlib import Path
from tkinter import StringVar
from typing import Any, Callable

import customtkinter as ctk
from customtkinter import filedialog

from attendance_sheet.config.user_settings_store import DEFAULT_SETTINGS, MIN_AUTOSAVE_DELAY_MS, UserSettingsStore
from attendance_sheet.ui.theme import (
    VS_ACCENT,
    VS_ACCENT_HOVER,
    VS_BG,
    VS_BORDER,
    VS_DIVIDER,
    VS_SURFACE,
    VS_SURFACE_ALT,
    VS_SUCCESS,
    VS_TEXT,
    VS_TEXT_MUTED,
    VS_WARNING,
)


class SettingsView(ctk.CTkFrame):
    """Interactive settings form backed by the UserSettingsStore."""

    def __init__(
        self,
        master: Any,
        *,
        store: UserSettingsStore,
        on_settings_saved: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        super().__init__(master, fg_color=VS_BG)
        self._store = store
        self._on_settings_saved = on_settings_saved

        self._teacher_id_var = StringVar()
        self._autosave_delay_var = StringVar()
        self._app_data_dir_var = StringVar()

        self._status_label: ctk.CTkLabel | None = None

        self._build_layout()
        self.refresh()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def refresh(self) -> None:
        """Reload the form inputs from the underlying store."""

        data = self._store.data
        self._teacher_id_var.set(data.get("teacher_id") or "")
        self._autosave_delay_var.set(str(data.get("autosave_delay_ms") or DEFAULT_SETTINGS["autosave_delay_ms"]))
        self._app_data_dir_var.set(str(data.get("app_data_dir", DEFAULT_SETTINGS["app_data_dir"])))
        self._set_status("")

    # ------------------------------------------------------------------
    # Layout helpers
    # ------------------------------------------------------------------
    def _build_layout(self) -> None:
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(0, weight=1)

        container = ctk.CTkFrame(self, fg_color=VS_SURFACE, corner_radius=18)
        container.grid(row=0, column=0, padx=24, pady=24, sticky="nsew")
        container.grid_columnconfigure(0, weight=0)
        container.grid_columnconfigure(1, weight=1)

        ctk.CTkLabel(
            container,
            text="Application settings",
            font=ctk.CTkFont(size=28, weight="bold"),
            text_color=VS_TEXT,
        ).grid(row=0, column=0, columnspan=2, sticky="w", padx=28, pady=(28, 8))

        ctk.CTkLabel(
            container,
            text=(
                "Choose which teacher's sheet to open, how quickly edits are auto-saved, and the folder "
                "that holds the attendance database and log file."
            ),
            justify="left",
            wraplength=640,
            text_color=VS_TEXT_MUTED,
        ).grid(row=1, column=0, columnspan=2, sticky="w", padx=28, pady=(0, 20))

        row_index = 2
        row_index = self._build_text_field(
            container,
            row=row_index,
            label="Teacher ID",
            variable=self._teacher_id_var,
            helper="Students assigned to this teacher appear on the monthly sheet.",
            width=240,
        )
        row_index = self._build_text_field(
            container,
            row=row_index,
            label="Auto-save delay (ms)",
            variable=self._autosave_delay_var,
            helper="Edits are saved once the sheet has been quiet for this long.",
            width=80,
        )
        row_index = self._build_app_data_field(container, row=row_index)

        buttons_row = ctk.CTkFrame(container, fg_color=VS_SURFACE)
        buttons_row.grid(row=row_index, column=0, columnspan=2, sticky="ew", padx=28, pady=(12, 24))
        buttons_row.grid_columnconfigure(0, weight=1)

        ctk.CTkButton(
            buttons_row,
            text="Reset to defaults",
            width=160,
            text_color=VS_TEXT,
            fg_color=VS_SURFACE_ALT,
            hover_color=VS_DIVIDER,
            command=self._handle_reset,
        ).grid(row=0, column=1, padx=(0, 8))

        ctk.CTkButton(
            buttons_row,
            text="Save changes",
            width=180,
            text_color=VS_TEXT,
            fg_color=VS_ACCENT,
            hover_color=VS_ACCENT_HOVER,
            command=self._handle_save,
        ).grid(row=0, column=2)

        self._status_label = ctk.CTkLabel(
            container,
            text="",
            text_color=VS_TEXT_MUTED,
            wraplength=640,
            justify="left",
        )
        self._status_label.grid(row=row_index + 1, column=0, columnspan=2, sticky="w", padx=28, pady=(0, 12))

    def _build_text_field(
        self,
        parent: ctk.CTkFrame,
        *,
        row: int,
        label: str,
        variable: StringVar,
        helper: str,
        width: int,
    ) -> int:
        ctk.CTkLabel(parent, text=label, text_color=VS_TEXT, font=ctk.CTkFont(size=18)).grid(
            row=row, column=0, sticky="w", padx=28, pady=(0, 6)
        )
        ctk.CTkEntry(
            parent,
            textvariable=variable,
            width=width,
            fg_color=VS_BG,
            border_color=VS_BORDER,
            text_color=VS_TEXT,
        ).grid(row=row, column=1, sticky="w", padx=(12, 28), pady=(0, 6))
        ctk.CTkLabel(
            parent,
            text=helper,
            text_color=VS_TEXT_MUTED,
            wraplength=480,
            font=ctk.CTkFont(size=14),
        ).grid(row=row + 1, column=0, columnspan=2, sticky="w", padx=28, pady=(0, 14))
        return row + 2

    def _build_app_data_field(self, parent: ctk.CTkFrame, *, row: int) -> int:
        ctk.CTkLabel(parent, text="App data directory", text_color=VS_TEXT, font=ctk.CTkFont(size=18)).grid(
            row=row, column=0, sticky="w", padx=28, pady=(0, 6)
        )

        field_container = ctk.CTkFrame(parent, fg_color=VS_SURFACE)
        field_container.grid(row=row, column=1, sticky="w", padx=(12, 28), pady=(0, 6))

        ctk.CTkEntry(
            field_container,
            textvariable=self._app_data_dir_var,
            fg_color=VS_BG,
            border_color=VS_BORDER,
            text_color=VS_TEXT,
            width=540,
        ).grid(row=0, column=0, sticky="w", padx=(0, 12))

        ctk.CTkButton(
            field_container,
            text="Browse",
            width=100,
            text_color=VS_TEXT,
            fg_color=VS_SURFACE_ALT,
            hover_color=VS_DIVIDER,
            command=self._choose_app_data_dir,
        ).grid(row=0, column=1, sticky="w")

        ctk.CTkLabel(
            parent,
            text="Changing the folder starts a fresh database there; existing sheets stay in the old folder.",
            text_color=VS_TEXT_MUTED,
            wraplength=540,
            font=ctk.CTkFont(size=14),
            justify="left",
        ).grid(row=row + 1, column=0, columnspan=2, sticky="w", padx=28, pady=(0, 14))
        return row + 2

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def _handle_reset(self) -> None:
        self._autosave_delay_var.set(str(DEFAULT_SETTINGS["autosave_delay_ms"]))
        self._app_data_dir_var.set(str(DEFAULT_SETTINGS["app_data_dir"]))
        self._set_status("Fields reset. Save to persist the changes.", tone="info")

    def _handle_save(self) -> None:
        errors: list[str] = []

        teacher_id = self._teacher_id_var.get().strip() or None
        if teacher_id is None:
            errors.append("Teacher ID is required.")

        delay_raw = self._autosave_delay_var.get().strip()
        delay: int | None = None
        try:
            delay = int(delay_raw)
        except ValueError:
            errors.append("Auto-save delay must be a whole number of milliseconds.")
        else:
            if delay < MIN_AUTOSAVE_DELAY_MS:
                errors.append(f"Auto-save delay must be at least {MIN_AUTOSAVE_DELAY_MS} ms.")

        app_data_raw = self._app_data_dir_var.get().strip()
        app_data_dir: Path | None = None
        if app_data_raw:
            candidate = Path(app_data_raw).expanduser()
            try:
                candidate.mkdir(parents=True, exist_ok=True)
                app_data_dir = candidate
            except OSError:
                errors.append("Unable to create or access the selected app data directory.")
        else:
            errors.append("App data directory is required.")

        if errors:
            self._set_status("\n".join(errors), tone="warning")
            return

        updated = self._store.update(
            teacher_id=teacher_id,
            autosave_delay_ms=delay,
            app_data_dir=str(app_data_dir),
        )
        self.refresh()
        self._set_status("Settings saved successfully.", tone="success")

        if self._on_settings_saved is not None:
            self._on_settings_saved(updated)

    def _choose_app_data_dir(self) -> None:
        initial_dir = self._app_data_dir_var.get().strip() or None
        selected = filedialog.askdirectory(
            title="Select app data directory",
            initialdir=initial_dir,
        )
        if selected:
            self._app_data_dir_var.set(str(Path(selected).expanduser()))

    def _set_status(self, message: str, *, tone: str = "info") -> None:
        if self._status_label is None:
            return
        color_map = {
            "info": VS_TEXT_MUTED,
            "success": VS_SUCCESS,
            "warning": VS_WARNING,
        }
        self._status_label.configure(text=message, text_color=color_map.get(tone, VS_TEXT_MUTED))
