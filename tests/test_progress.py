from __future__ import annotations

from datetime import date

from attendance_sheet.models import BackingRecord, CertificateRequest, SheetStatus, WeeklyRecord
from attendance_sheet.models.attendance import blank_weeks
from attendance_sheet.services import ProgressService, summarize_student_progress


def _record(month, marks, **fields):
    weeks = blank_weeks()
    weeks[0] = WeeklyRecord.from_marks(1, marks)
    return BackingRecord("S-001", "T-1", month, weeks=weeks, **fields)


def test_summary_sums_totals_and_orders_newest_first():
    progress = summarize_student_progress(
        "S-001",
        [
            _record("2025-01", ["P", "P", "P", "A", ""], final_grade=60),
            _record("2025-02", ["P", "L", "", "", ""], final_grade=82, status=SheetStatus.PASSED),
        ],
    )

    assert [grade.month for grade in progress.months] == ["2025-02", "2025-01"]
    assert progress.totals.present_count == 4
    assert progress.totals.late_count == 1
    assert progress.totals.absent_count == 1
    assert progress.attendance_rate == 67
    assert progress.months[0].status is SheetStatus.PASSED
    assert progress.months[0].weekly_assessments == (None, None, None, None)


def test_summary_without_records_is_empty():
    progress = summarize_student_progress("S-009", [])

    assert progress.months == ()
    assert progress.attendance_rate == 0


def test_progress_service_reads_sheets_and_certificates(store, roster):
    sheet_id = store.upsert_sheet_record(_record("2025-03", ["P"] * 5, status=SheetStatus.PASSED))
    store.issue_certificate(CertificateRequest("S-001", "T-1", sheet_id, date(2025, 3, 30)))

    progress = ProgressService(store).student_progress("S-001")

    assert progress.totals.present_count == 5
    assert progress.attendance_rate == 100
    assert [certificate["month"] for certificate in progress.certificates] == ["2025-03"]
