from __future__ import annotations

from datetime import date, datetime

import pytest

from attendance_sheet.models import AttendanceMark, BackingRecord, SheetStatus, WeeklyRecord
from attendance_sheet.models.attendance import blank_weeks
from attendance_sheet.services import SheetController, SheetLoadError, UnknownStudentError
from attendance_sheet.services.sheet_controller import LOAD_ERROR_MESSAGE
from attendance_sheet.utils import InvalidMonth

from conftest import DeferredRunner


class BrokenStore:
    def fetch_sheet_records(self, teacher_id, month):
        raise OSError("database is locked")

    def upsert_sheet_record(self, record):
        raise AssertionError("nothing should be saved")


def _controller(registry, store, timer, issuer=None):
    return SheetController(
        registry,
        store,
        issuer or store,
        timer=timer,
        autosave_delay_ms=500,
        clock=lambda: datetime(2025, 3, 28, 9, 30),
        today=lambda: date(2025, 3, 28),
    )


def test_open_builds_rows_in_assignment_order_with_defaults(store, roster, timer):
    controller = _controller(store, store, timer)

    session = controller.open("T-1", "2025-3")

    assert session.month == "2025-03"
    assert [row.student_id for row in session.rows] == ["S-001", "S-002", "S-003"]
    assert session.rows[0].display_name == "Aisha"
    assert session.load_error is None
    for row in session.rows:
        assert row.monthly_totals.marked_count == 0
        assert row.status is SheetStatus.UNSET
        assert not row.dirty


def test_open_loads_saved_marks_and_totals(store, roster, timer):
    weeks = blank_weeks()
    weeks[0] = WeeklyRecord.from_marks(1, ["P", "P", "L", "A", "P"], 9)
    record_id = store.upsert_sheet_record(
        BackingRecord("S-002", "T-1", "2025-03", weeks=weeks, status=SheetStatus.REPEAT, letter_equivalent="B")
    )
    controller = _controller(store, store, timer)

    session = controller.open("T-1", "2025-03")
    row = session.row_for("S-002")

    assert row.persisted_id == record_id
    assert row.monthly_totals.as_dict() == {
        "present_count": 3,
        "late_count": 1,
        "very_late_count": 0,
        "absent_count": 1,
    }
    assert row.week(1).weekly_assessment == 9
    assert row.status is SheetStatus.REPEAT
    assert row.letter_equivalent == "B"
    assert session.row_for("S-001").persisted_id is None


def test_load_failure_reports_error_and_no_rows(store, roster, timer):
    controller = _controller(store, BrokenStore(), timer)

    session = controller.open("T-1", "2025-03")

    assert session.rows == []
    assert session.load_error == LOAD_ERROR_MESSAGE


def test_open_rejects_malformed_month(store, roster, timer):
    controller = _controller(store, store, timer)

    with pytest.raises(InvalidMonth):
        controller.open("T-1", "2025-13")
    assert controller.session is None


def test_edits_schedule_one_save_and_update_totals(store, roster, timer):
    controller = _controller(store, store, timer)
    controller.open("T-1", "2025-03")

    row = controller.set_mark("S-001", 1, "su", "P")
    controller.set_mark("S-001", 1, "m", AttendanceMark.VERY_LATE)
    controller.set_weekly_assessment("S-001", 1, 6.5)
    controller.set_field("S-001", "final_grade", 77)

    assert row.monthly_totals.present_count == 1
    assert row.monthly_totals.very_late_count == 1
    assert timer.active == 1
    assert timer.scheduled_delays == [500, 500, 500, 500]

    timer.fire()

    assert not row.dirty
    assert controller.last_saved_at == datetime(2025, 3, 28, 9, 30)
    (saved,) = store.fetch_sheet_records("T-1", "2025-03")
    assert saved.final_grade == 77
    assert saved.weeks[0].days["m"] is AttendanceMark.VERY_LATE


def test_cycle_status_issues_certificate_through_the_store(store, roster, timer):
    controller = _controller(store, store, timer)
    controller.open("T-1", "2025-03")

    assert controller.cycle_status("S-003") is SheetStatus.PASSED
    timer.fire()

    certificates = store.list_certificates("S-003")
    assert len(certificates) == 1
    assert certificates[0]["issue_date"] == "2025-03-28"
    assert controller.session.row_for("S-003").certificate_issued

    reopened = controller.reload()
    assert reopened.row_for("S-003").certificate_issued


def test_unknown_student_edit_raises(store, roster, timer):
    controller = _controller(store, store, timer)
    controller.open("T-1", "2025-03")

    with pytest.raises(UnknownStudentError):
        controller.set_mark("ghost", 1, "su", "P")
    assert timer.active == 0


def test_edit_without_open_sheet_raises(store, roster, timer):
    controller = _controller(store, store, timer)

    with pytest.raises(SheetLoadError):
        controller.set_mark("S-001", 1, "su", "P")


def test_switch_month_saves_pending_edits_first(store, roster, timer):
    controller = _controller(store, store, timer)
    controller.open("T-1", "2025-03")
    controller.set_mark("S-001", 2, "tu", "A")

    session = controller.switch_month("2025-04")

    assert timer.active == 0
    assert session.month == "2025-04"
    assert all(not row.dirty for row in session.rows)
    (saved,) = store.fetch_sheet_records("T-1", "2025-03")
    assert saved.totals().absent_count == 1
    assert store.fetch_sheet_records("T-1", "2025-04") == []


def test_close_flushes_and_clears_the_session(store, roster, timer):
    controller = _controller(store, store, timer)
    controller.open("T-1", "2025-03")
    controller.set_field("S-002", "notes", "moved to morning class")

    controller.close()

    assert controller.session is None
    assert timer.active == 0
    (saved,) = store.fetch_sheet_records("T-1", "2025-03")
    assert saved.notes == "moved to morning class"


def test_duplicate_assignments_render_one_row(store, roster, timer):
    class DoubledRegistry:
        def list_assigned_students(self, teacher_id):
            students = store.list_assigned_students(teacher_id)
            return students + students[:1]

    controller = _controller(DoubledRegistry(), store, timer)

    session = controller.open("T-1", "2025-03")

    assert [row.student_id for row in session.rows] == ["S-001", "S-002", "S-003"]


class FlakyStore:
    """Delegates to the real store; writes fail while ``fail`` is set."""

    def __init__(self, store) -> None:
        self._store = store
        self.fail = False

    def fetch_sheet_records(self, teacher_id, month):
        return self._store.fetch_sheet_records(teacher_id, month)

    def upsert_sheet_record(self, record):
        if self.fail:
            raise OSError("database is locked")
        return self._store.upsert_sheet_record(record)


def test_edit_in_flight_during_month_switch_reaches_the_store(store, roster, timer):
    runner = DeferredRunner()
    flaky = FlakyStore(store)
    controller = SheetController(store, flaky, store, timer=timer, runner=runner)
    controller.open("T-1", "2025-03")
    controller.set_mark("S-001", 1, "su", "P")
    timer.fire()

    flaky.fail = True
    controller.switch_month("2025-04")
    runner.run_next()

    assert controller.unsaved_sheet_count == 1
    assert store.fetch_sheet_records("T-1", "2025-03") == []

    flaky.fail = False
    controller.switch_month("2025-05")
    controller.close()

    assert controller.unsaved_sheet_count == 0
    (saved,) = store.fetch_sheet_records("T-1", "2025-03")
    assert saved.student_id == "S-001"
    assert saved.weeks[0].days["su"] is AttendanceMark.PRESENT


def test_flush_retries_sheets_left_unsaved(store, roster, timer):
    flaky = FlakyStore(store)
    controller = SheetController(store, flaky, store, timer=timer)
    controller.open("T-1", "2025-03")
    controller.set_field("S-003", "notes", "absent all week")

    flaky.fail = True
    controller.close()
    assert controller.unsaved_sheet_count == 1
    assert controller.flush() is False

    flaky.fail = False
    assert controller.flush() is True
    (saved,) = store.fetch_sheet_records("T-1", "2025-03")
    assert saved.notes == "absent all week"
