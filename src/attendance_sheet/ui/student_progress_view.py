from __future__ import annotations

from typing import Any

import customtkinter as ctk

from attendance_sheet.models import Student
from attendance_sheet.services import ProgressService, SheetStore, StudentProgress
from attendance_sheet.ui.theme import (
    VS_BG,
    VS_SURFACE,
    VS_SURFACE_ALT,
    VS_TEXT,
    VS_TEXT_MUTED,
)


def _format_score(value: float | None) -> str:
    return "-" if value is None else f"{value:g}"


class StudentProgressView(ctk.CTkFrame):
    """Read-only performance report for one student across all months."""

    def __init__(self, master: Any, store: SheetStore) -> None:
        super().__init__(master, fg_color=VS_BG)
        self._store = store
        self._progress_service = ProgressService(store)
        self._students: dict[str, Student] = {}
        self._student_var = ctk.StringVar(value="")

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)

        ctk.CTkLabel(
            self,
            text="Student progress",
            font=ctk.CTkFont(size=24, weight="bold"),
            text_color=VS_TEXT,
        ).grid(row=0, column=0, sticky="w", padx=24, pady=(20, 8))

        self._student_menu = ctk.CTkOptionMenu(
            self,
            variable=self._student_var,
            values=["-"],
            width=320,
            command=lambda _value: self._show_selected(),
        )
        self._student_menu.grid(row=1, column=0, sticky="w", padx=24, pady=(0, 12))

        self._report = ctk.CTkScrollableFrame(self, fg_color=VS_SURFACE, corner_radius=12)
        self._report.grid(row=2, column=0, sticky="nsew", padx=16, pady=(0, 16))
        self._report.grid_columnconfigure(0, weight=1)

    def set_store(self, store: SheetStore) -> None:
        self._store = store
        self._progress_service = ProgressService(store)

    def refresh(self) -> None:
        self._students = {
            f"{student.label} ({student.student_id})": student for student in self._store.list_students()
        }
        labels = list(self._students) or ["-"]
        self._student_menu.configure(values=labels)
        if self._student_var.get() not in self._students:
            self._student_var.set(labels[0])
        self._show_selected()

    def _show_selected(self) -> None:
        for child in self._report.winfo_children():
            child.destroy()

        student = self._students.get(self._student_var.get())
        if student is None:
            self._add_line("No students registered yet.", muted=True)
            return

        self._render_progress(self._progress_service.student_progress(student.student_id))

    def _render_progress(self, progress: StudentProgress) -> None:
        totals = progress.totals
        self._add_line("Attendance summary", bold=True)
        self._add_line(
            f"Present {totals.present_count} · Late {totals.late_count} · "
            f"Very late {totals.very_late_count} · Absent {totals.absent_count}"
        )
        self._add_line(f"Attendance rate: {progress.attendance_rate}%")

        self._add_line("Grades & performance", bold=True)
        if not progress.months:
            self._add_line("No grades available yet.", muted=True)
        for grade in progress.months:
            assessments = " / ".join(_format_score(score) for score in grade.weekly_assessments)
            status = grade.status.value or "-"
            self._add_line(
                f"{grade.month}  ·  WA {assessments}  ·  Final {_format_score(grade.final_grade)}"
                f"  ·  {grade.letter_equivalent or '-'}  ·  {status}"
            )

        self._add_line("Certificates", bold=True)
        if not progress.certificates:
            self._add_line("No certificates issued yet.", muted=True)
        for certificate in progress.certificates:
            self._add_line(
                f"{certificate['issue_date']}  ·  {certificate['certificate_type']}  ·  {certificate.get('month') or '-'}"
            )

    def _add_line(self, text: str, *, bold: bool = False, muted: bool = False) -> None:
        row = len(self._report.winfo_children())
        ctk.CTkLabel(
            self._report,
            text=text,
            anchor="w",
            justify="left",
            font=ctk.CTkFont(size=18 if bold else 14, weight="bold" if bold else "normal"),
            text_color=VS_TEXT_MUTED if muted else VS_TEXT,
            fg_color=VS_SURFACE_ALT if bold else "transparent",
            corner_radius=6,
        ).grid(row=row, column=0, sticky="ew", padx=8, pady=(10 if bold else 2, 2))
