from __future__ import annotations

import csv
import re
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Font

from attendance_sheet.models import WEEK_NUMBERS, WEEKDAY_KEYS, WEEKDAY_LABELS, StudentSheetRow
from attendance_sheet.services.sheet_controller import SheetSession

OVERALL_HEADERS: tuple[str, ...] = (
    "Overall",
    "Teacher evaluation 1",
    "Teacher evaluation 2",
    "Final grade",
    "Equivalent",
    "Status",
    "Notes",
)


def export_headers() -> list[str]:
    headers = ["Student ID", "Name", "Phone"]
    for week_number in WEEK_NUMBERS:
        headers.extend(f"W{week_number} {WEEKDAY_LABELS[day]}" for day in WEEKDAY_KEYS)
        headers.append(f"W{week_number} WA")
    headers.extend(["P", "L", "VL", "A"])
    headers.extend(OVERALL_HEADERS)
    return headers


def _row_values(row: StudentSheetRow) -> list[Any]:
    values: list[Any] = [row.student_id, row.display_name, row.phone]
    for week in row.weeks:
        values.extend(week.days[day].value for day in WEEKDAY_KEYS)
        values.append(week.weekly_assessment)
    totals = row.monthly_totals
    values.extend([totals.present_count, totals.late_count, totals.very_late_count, totals.absent_count])
    values.extend(
        [
            row.overall_score,
            row.teacher_evaluation_1,
            row.teacher_evaluation_2,
            row.final_grade,
            row.letter_equivalent or "",
            row.status.value,
            row.notes or "",
        ]
    )
    return values


def sheet_export_rows(session: SheetSession) -> tuple[list[str], list[list[Any]]]:
    return export_headers(), [_row_values(row) for row in session.rows]


def build_export_filename_stub(session: SheetSession) -> str:
    raw_name = f"attendance {session.teacher_id} {session.month}"
    sanitized = re.sub(r'[<>:"/\\|?*]', "_", raw_name)
    sanitized = re.sub(r"\s+", "_", sanitized).strip("._ ")
    return sanitized or "attendance_export"


def export_csv(session: SheetSession, file_name: str | Path) -> int:
    headers, rows = sheet_export_rows(session)
    with open(file_name, "w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(headers)
        writer.writerows(["" if value is None else value for value in row] for row in rows)
    return len(rows)


def export_excel(session: SheetSession, file_name: str | Path) -> int:
    headers, rows = sheet_export_rows(session)

    wb = Workbook()
    sheet = wb.active
    sheet.title = session.month
    sheet.append(headers)
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for row in rows:
        sheet.append(row)
    sheet.freeze_panes = "D2"

    Path(file_name).parent.mkdir(parents=True, exist_ok=True)
    wb.save(file_name)
    return len(rows)
