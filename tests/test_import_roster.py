from __future__ import annotations

from pathlib import Path

import pytest

from attendance_sheet.data import Database
from attendance_sheet.services import SheetStore

TOOLS_DIR = Path(__file__).resolve().parents[1] / "tools"


@pytest.fixture
def import_roster_module(monkeypatch):
    monkeypatch.syspath_prepend(str(TOOLS_DIR))
    import import_roster

    return import_roster


def test_roster_csv_registers_and_assigns_students(tmp_path, import_roster_module):
    roster_file = tmp_path / "roster.csv"
    roster_file.write_text(
        "Student_ID,Name,Phone\nS-010,Huda,0123\nS-011,,\n,Missing id,\n",
        encoding="utf-8",
    )
    store = SheetStore(Database(tmp_path / "attendance.db"))
    store.initialize()

    students = import_roster_module.read_roster(roster_file)
    count = import_roster_module.import_roster(store, "T-7", students)

    assert count == 2
    assert [student.student_id for student in store.list_assigned_students("T-7")] == ["S-010", "S-011"]
    assert store.get_student("S-010").display_name == "Huda"


def test_roster_without_student_id_column_is_rejected(tmp_path, import_roster_module):
    roster_file = tmp_path / "roster.csv"
    roster_file.write_text("name,phone\nHuda,0123\n", encoding="utf-8")

    with pytest.raises(ValueError):
        import_roster_module.read_roster(roster_file)
