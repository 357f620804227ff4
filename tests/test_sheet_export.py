from __future__ import annotations

import csv

from openpyxl import load_workbook

from attendance_sheet.services import SheetController
from attendance_sheet.services.sheet_export import (
    build_export_filename_stub,
    export_csv,
    export_excel,
    export_headers,
)


def _open_session(store, timer):
    controller = SheetController(store, store, store, timer=timer)
    session = controller.open("T-1", "2025-03")
    controller.set_mark("S-001", 1, "su", "P")
    controller.set_mark("S-001", 1, "m", "L")
    controller.set_field("S-001", "final_grade", 88)
    controller.set_field("S-001", "letter_equivalent", "A")
    controller.cycle_status("S-001")
    return session


def test_headers_cover_every_week_and_total():
    headers = export_headers()

    assert headers[:4] == ["Student ID", "Name", "Phone", "W1 Sun"]
    assert "W4 Thu" in headers
    assert "W4 WA" in headers
    assert headers[-7:] == [
        "Overall",
        "Teacher evaluation 1",
        "Teacher evaluation 2",
        "Final grade",
        "Equivalent",
        "Status",
        "Notes",
    ]


def test_export_csv_writes_one_line_per_row(tmp_path, store, roster, timer):
    session = _open_session(store, timer)
    target = tmp_path / "sheet.csv"

    assert export_csv(session, target) == 3

    with open(target, newline="", encoding="utf-8") as handle:
        lines = list(csv.reader(handle))

    headers = lines[0]
    first = dict(zip(headers, lines[1]))
    assert first["Student ID"] == "S-001"
    assert first["W1 Sun"] == "P"
    assert first["W1 Mon"] == "L"
    assert first["P"] == "1"
    assert first["L"] == "1"
    assert first["Final grade"] == "88.0"
    assert first["Status"] == "Passed"
    assert dict(zip(headers, lines[3]))["Overall"] == ""


def test_export_excel_names_the_sheet_after_the_month(tmp_path, store, roster, timer):
    session = _open_session(store, timer)
    target = tmp_path / "exports" / "sheet.xlsx"

    assert export_excel(session, target) == 3

    workbook = load_workbook(target)
    sheet = workbook["2025-03"]
    assert sheet["A1"].value == "Student ID"
    assert sheet["A1"].font.bold
    assert sheet["A2"].value == "S-001"
    assert sheet.max_row == 4


def test_filename_stub_is_filesystem_safe(store, roster, timer):
    session = _open_session(store, timer)
    session.teacher_id = "T/1 main"

    assert build_export_filename_stub(session) == "attendance_T_1_main_2025-03"
