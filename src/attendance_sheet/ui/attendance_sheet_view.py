from __future__ import annotations

import logging
from typing import Any, Callable

import customtkinter as ctk
from customtkinter import filedialog

from attendance_sheet.models import (
    LETTER_EQUIVALENTS,
    OVERALL_NUMERIC_FIELDS,
    WEEK_NUMBERS,
    WEEKDAY_KEYS,
    WEEKDAY_LABELS,
    AttendanceMark,
    StudentSheetRow,
)
from attendance_sheet.services import PASSING_RULE_TEXT, SheetController, SheetStore
from attendance_sheet.services.autosave import AutoSaveScheduler
from attendance_sheet.services.sheet_export import build_export_filename_stub, export_csv, export_excel
from attendance_sheet.ui.scheduling import ThreadedRunner, TkTimer
from attendance_sheet.ui.theme import (
    MARK_COLORS,
    STATUS_COLORS,
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
from attendance_sheet.utils import InvalidMonth, current_month, format_relative_time, shift_month

logger = logging.getLogger(__name__)

MARK_OPTIONS = ["-"] + [mark.value for mark in AttendanceMark if mark is not AttendanceMark.UNSET]
LETTER_OPTIONS = ["-", *LETTER_EQUIVALENTS]
OVERALL_LABELS = {
    "overall_score": "Overall",
    "teacher_evaluation_1": "T.Eval 1",
    "teacher_evaluation_2": "T.Eval 2",
    "final_grade": "Final",
}
INDICATOR_REFRESH_MS = 30_000


def _parse_score(text: str) -> float | None:
    value = text.strip()
    if not value:
        return None
    return float(value)


class AttendanceSheetView(ctk.CTkFrame):
    """Monthly attendance and grading sheet for one teacher."""

    def __init__(
        self,
        master: Any,
        store: SheetStore,
        *,
        teacher_id: str | None,
        autosave_delay_ms: int,
        initial_month: str | None = None,
        on_month_changed: Callable[[str], None] | None = None,
    ) -> None:
        super().__init__(master, fg_color=VS_BG)
        self._store = store
        self._teacher_id = teacher_id
        self._on_month_changed = on_month_changed

        self._month_var = ctk.StringVar(value=initial_month or current_month())
        self._indicator_var = ctk.StringVar(value="")
        self._status_var = ctk.StringVar(value="")

        self._totals_labels: dict[str, dict[str, ctk.CTkLabel]] = {}
        self._status_buttons: dict[str, ctk.CTkButton] = {}
        self._indicator_job: str | None = None

        self._controller = self._build_controller(autosave_delay_ms)

        self._build_layout()
        self._schedule_indicator_refresh()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def open_sheet(self, month: str | None = None) -> None:
        if not self._teacher_id:
            self._render_rows([])
            self._set_status("Set your teacher ID in Settings to open the attendance sheet.", tone="warning")
            return

        target_month = month or self._month_var.get()
        try:
            session = self._controller.open(self._teacher_id, target_month)
        except InvalidMonth as exc:
            self._set_status(str(exc), tone="warning")
            return

        self._month_var.set(session.month)
        self._render_rows(session.rows)
        self._update_indicator()

        if session.load_error:
            self._set_status(session.load_error, tone="warning")
        elif self._controller.unsaved_sheet_count:
            self._set_status(
                "Some edits from a previous sheet could not be saved yet; they are retried on the next save.",
                tone="warning",
            )
        elif not session.rows:
            self._set_status("No students assigned to your classes yet.")
        else:
            self._set_status(f"Loaded {len(session.rows)} student(s) for {session.month}.")

        if self._on_month_changed is not None:
            self._on_month_changed(session.month)

    def apply_preferences(
        self,
        *,
        teacher_id: str | None,
        autosave_delay_ms: int,
        store: SheetStore | None = None,
    ) -> None:
        self._controller.close()
        if store is not None:
            self._store = store
        self._teacher_id = teacher_id
        self._controller = self._build_controller(autosave_delay_ms)
        self.open_sheet()

    def close(self) -> None:
        if self._indicator_job is not None:
            self.after_cancel(self._indicator_job)
            self._indicator_job = None
        self._controller.close()

    # ------------------------------------------------------------------
    # Layout helpers
    # ------------------------------------------------------------------
    def _build_controller(self, autosave_delay_ms: int) -> SheetController:
        return SheetController(
            self._store,
            self._store,
            self._store,
            timer=TkTimer(self),
            runner=ThreadedRunner(self),
            autosave_delay_ms=autosave_delay_ms,
            on_state_change=self._handle_scheduler_state,
        )

    def _build_layout(self) -> None:
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(3, weight=1)

        header = ctk.CTkFrame(self, fg_color=VS_SURFACE, corner_radius=12)
        header.grid(row=0, column=0, sticky="ew", padx=16, pady=(16, 8))
        header.grid_columnconfigure(5, weight=1)

        ctk.CTkLabel(
            header,
            text="Monthly attendance sheet",
            font=ctk.CTkFont(size=24, weight="bold"),
            text_color=VS_TEXT,
        ).grid(row=0, column=0, columnspan=6, sticky="w", padx=16, pady=(12, 4))

        ctk.CTkButton(
            header,
            text="◀",
            width=36,
            fg_color=VS_SURFACE_ALT,
            hover_color=VS_DIVIDER,
            command=lambda: self._step_month(-1),
        ).grid(row=1, column=0, padx=(16, 4), pady=(0, 12))

        month_entry = ctk.CTkEntry(
            header,
            textvariable=self._month_var,
            width=110,
            fg_color=VS_BG,
            border_color=VS_BORDER,
            text_color=VS_TEXT,
        )
        month_entry.grid(row=1, column=1, padx=4, pady=(0, 12))
        month_entry.bind("<Return>", lambda _event: self.open_sheet())

        ctk.CTkButton(
            header,
            text="▶",
            width=36,
            fg_color=VS_SURFACE_ALT,
            hover_color=VS_DIVIDER,
            command=lambda: self._step_month(1),
        ).grid(row=1, column=2, padx=4, pady=(0, 12))

        ctk.CTkButton(
            header,
            text="Open",
            width=80,
            fg_color=VS_ACCENT,
            hover_color=VS_ACCENT_HOVER,
            command=self.open_sheet,
        ).grid(row=1, column=3, padx=(4, 12), pady=(0, 12))

        ctk.CTkLabel(
            header,
            textvariable=self._indicator_var,
            text_color=VS_TEXT_MUTED,
        ).grid(row=1, column=4, sticky="w", padx=8, pady=(0, 12))

        export_bar = ctk.CTkFrame(header, fg_color=VS_SURFACE)
        export_bar.grid(row=1, column=6, sticky="e", padx=16, pady=(0, 12))
        ctk.CTkButton(
            export_bar,
            text="Export CSV",
            width=110,
            fg_color=VS_SURFACE_ALT,
            hover_color=VS_DIVIDER,
            command=self._export_csv,
        ).grid(row=0, column=0, padx=(0, 8))
        ctk.CTkButton(
            export_bar,
            text="Export Excel",
            width=110,
            fg_color=VS_SURFACE_ALT,
            hover_color=VS_DIVIDER,
            command=self._export_excel,
        ).grid(row=0, column=1)

        ctk.CTkLabel(
            self,
            text=PASSING_RULE_TEXT,
            justify="left",
            wraplength=1100,
            text_color=VS_TEXT_MUTED,
        ).grid(row=1, column=0, sticky="w", padx=24, pady=(0, 4))

        self._status_label = ctk.CTkLabel(self, textvariable=self._status_var, text_color=VS_TEXT_MUTED, anchor="w")
        self._status_label.grid(row=2, column=0, sticky="ew", padx=24, pady=(0, 4))

        self._table = ctk.CTkScrollableFrame(
            self,
            fg_color=VS_SURFACE,
            corner_radius=12,
            orientation="horizontal",
        )
        self._table.grid(row=3, column=0, sticky="nsew", padx=16, pady=(0, 16))

    def _render_header_row(self, parent: ctk.CTkFrame) -> None:
        small = ctk.CTkFont(size=12, weight="bold")
        column = 1
        ctk.CTkLabel(parent, text="Student", font=small, text_color=VS_TEXT, anchor="w").grid(
            row=0, column=0, rowspan=2, sticky="w", padx=8
        )
        for week_number in WEEK_NUMBERS:
            ctk.CTkLabel(parent, text=f"Week {week_number}", font=small, text_color=VS_TEXT).grid(
                row=0, column=column, columnspan=len(WEEKDAY_KEYS) + 1, pady=(6, 0)
            )
            for day in WEEKDAY_KEYS:
                ctk.CTkLabel(parent, text=WEEKDAY_LABELS[day], font=small, text_color=VS_TEXT_MUTED).grid(
                    row=1, column=column, padx=2
                )
                column += 1
            ctk.CTkLabel(parent, text="WA", font=small, text_color=VS_TEXT_MUTED).grid(row=1, column=column, padx=2)
            column += 1

        ctk.CTkLabel(parent, text="Monthly", font=small, text_color=VS_TEXT).grid(
            row=0, column=column, columnspan=4, pady=(6, 0)
        )
        for label in ("P", "L", "VL", "A"):
            ctk.CTkLabel(parent, text=label, font=small, text_color=VS_TEXT_MUTED).grid(row=1, column=column, padx=2)
            column += 1

        for label in (*OVERALL_LABELS.values(), "Equiv.", "Status", "Notes"):
            ctk.CTkLabel(parent, text=label, font=small, text_color=VS_TEXT).grid(row=1, column=column, padx=4)
            column += 1

    def _render_rows(self, rows: list[StudentSheetRow]) -> None:
        for child in self._table.winfo_children():
            child.destroy()
        self._totals_labels.clear()
        self._status_buttons.clear()

        grid = ctk.CTkFrame(self._table, fg_color=VS_SURFACE)
        grid.grid(row=0, column=0, sticky="nw")
        self._render_header_row(grid)

        for index, row in enumerate(rows, start=2):
            self._render_row(grid, index, row)

    def _render_row(self, parent: ctk.CTkFrame, grid_row: int, row: StudentSheetRow) -> None:
        sid = row.student_id
        name_text = row.display_name or sid
        if row.phone:
            name_text = f"{name_text}\n{row.phone}"
        ctk.CTkLabel(parent, text=name_text, text_color=VS_TEXT, anchor="w", justify="left").grid(
            row=grid_row, column=0, sticky="w", padx=8, pady=2
        )

        column = 1
        for week in row.weeks:
            for day in WEEKDAY_KEYS:
                mark = week.days[day]
                menu = ctk.CTkOptionMenu(
                    parent,
                    values=MARK_OPTIONS,
                    width=52,
                    fg_color=MARK_COLORS[mark],
                    button_color=MARK_COLORS[mark],
                )
                menu.set(mark.label)
                menu.configure(
                    command=lambda value, m=menu, w=week.week_number, d=day: self._handle_mark(sid, w, d, value, m)
                )
                menu.grid(row=grid_row, column=column, padx=1, pady=2)
                column += 1
            self._number_entry(
                parent,
                grid_row,
                column,
                week.weekly_assessment,
                lambda value, w=week.week_number: self._controller.set_weekly_assessment(sid, w, value),
            )
            column += 1

        totals = {}
        for key in ("present_count", "late_count", "very_late_count", "absent_count"):
            label = ctk.CTkLabel(parent, text="0", width=32, text_color=VS_TEXT)
            label.grid(row=grid_row, column=column, padx=2)
            totals[key] = label
            column += 1
        self._totals_labels[sid] = totals
        self._refresh_totals(row)

        for field_name in OVERALL_NUMERIC_FIELDS:
            self._number_entry(
                parent,
                grid_row,
                column,
                getattr(row, field_name),
                lambda value, f=field_name: self._controller.set_field(sid, f, value),
            )
            column += 1

        letter_menu = ctk.CTkOptionMenu(
            parent,
            values=LETTER_OPTIONS,
            width=64,
            command=lambda value: self._controller.set_field(sid, "letter_equivalent", None if value == "-" else value),
        )
        letter_menu.set(row.letter_equivalent or "-")
        letter_menu.grid(row=grid_row, column=column, padx=2)
        column += 1

        status_button = ctk.CTkButton(
            parent,
            text=row.status.label,
            width=76,
            fg_color=STATUS_COLORS[row.status],
            command=lambda: self._handle_cycle_status(sid),
        )
        status_button.grid(row=grid_row, column=column, padx=2)
        self._status_buttons[sid] = status_button
        column += 1

        notes_var = ctk.StringVar(value=row.notes or "")
        notes_entry = ctk.CTkEntry(
            parent,
            textvariable=notes_var,
            width=180,
            placeholder_text="Notes...",
            fg_color=VS_BG,
            border_color=VS_DIVIDER,
            text_color=VS_TEXT,
        )
        notes_entry.grid(row=grid_row, column=column, padx=(2, 8))
        notes_var.trace_add("write", lambda *_args: self._controller.set_field(sid, "notes", notes_var.get()))

    def _number_entry(
        self,
        parent: ctk.CTkFrame,
        grid_row: int,
        column: int,
        value: float | None,
        apply: Callable[[float | None], Any],
    ) -> None:
        var = ctk.StringVar(value="" if value is None else f"{value:g}")
        entry = ctk.CTkEntry(
            parent,
            textvariable=var,
            width=52,
            justify="right",
            fg_color=VS_BG,
            border_color=VS_DIVIDER,
            text_color=VS_TEXT,
        )
        entry.grid(row=grid_row, column=column, padx=1, pady=2)

        def _on_change(*_args: Any) -> None:
            try:
                parsed = _parse_score(var.get())
                apply(parsed)
            except ValueError:
                entry.configure(border_color=VS_WARNING)
                return
            entry.configure(border_color=VS_DIVIDER)

        var.trace_add("write", _on_change)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def _handle_mark(self, student_id: str, week_number: int, day: str, value: str, menu: ctk.CTkOptionMenu) -> None:
        row = self._controller.set_mark(student_id, week_number, day, value)
        mark = row.week(week_number).days[day]
        menu.configure(fg_color=MARK_COLORS[mark], button_color=MARK_COLORS[mark])
        self._refresh_totals(row)

    def _handle_cycle_status(self, student_id: str) -> None:
        status = self._controller.cycle_status(student_id)
        button = self._status_buttons.get(student_id)
        if button is not None:
            button.configure(text=status.label, fg_color=STATUS_COLORS[status])

    def _refresh_totals(self, row: StudentSheetRow) -> None:
        labels = self._totals_labels.get(row.student_id)
        if not labels:
            return
        for key, value in row.monthly_totals.as_dict().items():
            labels[key].configure(text=str(value))

    def _step_month(self, offset: int) -> None:
        try:
            target = shift_month(self._month_var.get(), offset)
        except InvalidMonth as exc:
            self._set_status(str(exc), tone="warning")
            return
        self.open_sheet(target)

    def _export_csv(self) -> None:
        session = self._controller.session
        if session is None or not session.rows:
            self._set_status("Open a sheet with students before exporting.", tone="warning")
            return

        file_name = filedialog.asksaveasfilename(
            title="Export sheet to CSV",
            defaultextension=".csv",
            filetypes=[("CSV files", "*.csv"), ("All files", "*.*")],
            initialfile=f"{build_export_filename_stub(session)}.csv",
        )
        if not file_name:
            return

        try:
            count = export_csv(session, file_name)
        except OSError as exc:
            self._set_status(f"Failed to export CSV: {exc}", tone="warning")
            return
        self._set_status(f"Exported {count} rows to CSV.", tone="success")

    def _export_excel(self) -> None:
        session = self._controller.session
        if session is None or not session.rows:
            self._set_status("Open a sheet with students before exporting.", tone="warning")
            return

        file_name = filedialog.asksaveasfilename(
            title="Export sheet to Excel",
            defaultextension=".xlsx",
            filetypes=[("Excel Workbook", "*.xlsx"), ("All files", "*.*")],
            initialfile=f"{build_export_filename_stub(session)}.xlsx",
        )
        if not file_name:
            return

        try:
            count = export_excel(session, file_name)
        except OSError as exc:
            self._set_status(f"Failed to export Excel: {exc}", tone="warning")
            return
        self._set_status(f"Exported {count} rows to Excel.", tone="success")

    # ------------------------------------------------------------------
    # Indicator
    # ------------------------------------------------------------------
    def _handle_scheduler_state(self, _scheduler: AutoSaveScheduler) -> None:
        self._update_indicator()

    def _update_indicator(self) -> None:
        if self._controller.saving:
            self._indicator_var.set("Saving…")
            return
        last_saved = self._controller.last_saved_at
        if last_saved is None:
            self._indicator_var.set("")
        else:
            self._indicator_var.set(f"Auto-saved {format_relative_time(last_saved)}")

    def _schedule_indicator_refresh(self) -> None:
        self._update_indicator()
        self._indicator_job = self.after(INDICATOR_REFRESH_MS, self._schedule_indicator_refresh)

    def _set_status(self, message: str, tone: str = "info") -> None:
        self._status_var.set(message)
        color_map = {
            "info": VS_TEXT_MUTED,
            "warning": VS_WARNING,
            "success": VS_SUCCESS,
        }
        self._status_label.configure(text_color=color_map.get(tone, VS_TEXT_MUTED))
