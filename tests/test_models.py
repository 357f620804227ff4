from __future__ import annotations

import pytest

from attendance_sheet.models import (
    AttendanceMark,
    BackingRecord,
    SheetStatus,
    Student,
    StudentSheetRow,
    WeeklyRecord,
)


def test_mark_parse_accepts_codes_and_blank_tokens():
    assert AttendanceMark.parse("p") is AttendanceMark.PRESENT
    assert AttendanceMark.parse(" vl ") is AttendanceMark.VERY_LATE
    assert AttendanceMark.parse(None) is AttendanceMark.UNSET
    assert AttendanceMark.parse("") is AttendanceMark.UNSET
    assert AttendanceMark.parse("-") is AttendanceMark.UNSET


def test_mark_parse_rejects_unknown_codes():
    with pytest.raises(ValueError):
        AttendanceMark.parse("X")


def test_weekly_record_always_holds_five_days():
    week = WeeklyRecord(2, {"m": "P"})

    assert list(week.days) == ["su", "m", "tu", "w", "th"]
    assert week.marks() == [
        AttendanceMark.UNSET,
        AttendanceMark.PRESENT,
        AttendanceMark.UNSET,
        AttendanceMark.UNSET,
        AttendanceMark.UNSET,
    ]


def test_weekly_record_rejects_bad_week_numbers_and_days():
    with pytest.raises(ValueError):
        WeeklyRecord(5)
    with pytest.raises(ValueError):
        WeeklyRecord(1, {"sa": "P"})
    with pytest.raises(ValueError):
        WeeklyRecord.from_marks(1, ["P", "P"])


def test_weekly_assessment_accepts_any_finite_number():
    week = WeeklyRecord(1)
    week.set_weekly_assessment(-5)
    assert week.weekly_assessment == -5.0

    week.set_weekly_assessment(None)
    assert week.weekly_assessment is None

    with pytest.raises(ValueError):
        week.set_weekly_assessment(float("nan"))


def test_status_cycles_through_three_states():
    status = SheetStatus.UNSET
    seen = []
    for _ in range(4):
        status = status.advance()
        seen.append(status)

    assert seen == [SheetStatus.PASSED, SheetStatus.REPEAT, SheetStatus.UNSET, SheetStatus.PASSED]


def test_status_parse_is_case_insensitive():
    assert SheetStatus.parse("passed") is SheetStatus.PASSED
    assert SheetStatus.parse(None) is SheetStatus.UNSET
    with pytest.raises(ValueError):
        SheetStatus.parse("Failed")


def test_blank_row_has_four_empty_weeks_and_zero_totals():
    row = StudentSheetRow.blank(Student("S-1", "Aisha"))

    assert [week.week_number for week in row.weeks] == [1, 2, 3, 4]
    assert row.monthly_totals.as_dict() == {
        "present_count": 0,
        "late_count": 0,
        "very_late_count": 0,
        "absent_count": 0,
    }
    assert row.status is SheetStatus.UNSET
    assert row.dirty is False
    assert row.persisted_id is None


def test_cell_edit_updates_totals_and_marks_dirty():
    row = StudentSheetRow.blank(Student("S-1"))

    row.apply_cell_edit(1, "su", "P")
    row.apply_cell_edit(1, "m", "A")

    assert row.monthly_totals.present_count == 1
    assert row.monthly_totals.absent_count == 1
    assert row.dirty is True
    assert row.revision == 2


def test_invalid_edits_leave_row_untouched():
    row = StudentSheetRow.blank(Student("S-1"))

    with pytest.raises(ValueError):
        row.apply_cell_edit(1, "su", "Z")
    with pytest.raises(ValueError):
        row.apply_field_edit("letter_equivalent", "Z")
    with pytest.raises(ValueError):
        row.apply_field_edit("student_id", "S-2")

    assert row.dirty is False
    assert row.revision == 0


def test_field_edits_cover_scores_letters_and_notes():
    row = StudentSheetRow.blank(Student("S-1"))

    row.apply_field_edit("final_grade", 88)
    row.apply_field_edit("letter_equivalent", "A")
    row.apply_field_edit("notes", "needs practice")
    row.apply_field_edit("notes", "")

    assert row.final_grade == 88.0
    assert row.letter_equivalent == "A"
    assert row.notes is None


def test_backing_record_round_trips_through_columns():
    row = StudentSheetRow.blank(Student("S-1"))
    row.apply_cell_edit(3, "w", "VL")
    row.apply_weekly_assessment(3, 7.5)
    row.cycle_status()
    record = row.to_backing_record("T-1", "2025-03")

    columns = record.to_columns()
    assert columns["week3_w"] == "VL"
    assert columns["week3_wa"] == 7.5
    assert columns["week1_su"] is None
    assert columns["status"] == "Passed"

    restored = BackingRecord.from_columns({**columns, "id": 9})
    assert restored.id == 9
    assert restored.weeks[2].days["w"] is AttendanceMark.VERY_LATE
    assert restored.status is SheetStatus.PASSED
    assert restored.certificate_issued is False


def test_row_from_backing_record_copies_weeks():
    record = BackingRecord("S-1", "T-1", "2025-03", id=4, status=SheetStatus.REPEAT)
    row = StudentSheetRow.from_backing_record(Student("S-1", "Aisha"), record)

    row.apply_cell_edit(1, "su", "P")

    assert record.weeks[0].days["su"] is AttendanceMark.UNSET
    assert row.persisted_id == 4
    assert row.status is SheetStatus.REPEAT
