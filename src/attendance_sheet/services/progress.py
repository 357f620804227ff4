from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from attendance_sheet.models import BackingRecord, MonthlyTotals, SheetStatus
from attendance_sheet.services.sheet_store import SheetStore


@dataclass(frozen=True, slots=True)
class MonthlyGrade:
    month: str
    teacher_id: str
    weekly_assessments: tuple[Optional[float], ...]
    final_grade: Optional[float]
    letter_equivalent: Optional[str]
    teacher_evaluation: Optional[float]
    status: SheetStatus
    totals: MonthlyTotals


@dataclass(frozen=True, slots=True)
class StudentProgress:
    student_id: str
    totals: MonthlyTotals
    months: tuple[MonthlyGrade, ...]
    certificates: tuple[dict, ...]

    @property
    def attendance_rate(self) -> int:
        return self.totals.attendance_rate


def summarize_student_progress(
    student_id: str,
    records: Iterable[BackingRecord],
    certificates: Iterable[dict] = (),
) -> StudentProgress:
    """Combine every monthly sheet of a student into one report, newest month first."""

    ordered = sorted(records, key=lambda record: (record.month, record.id or 0), reverse=True)

    totals = MonthlyTotals()
    months: list[MonthlyGrade] = []
    for record in ordered:
        record_totals = record.totals()
        totals = totals + record_totals
        months.append(
            MonthlyGrade(
                month=record.month,
                teacher_id=record.teacher_id,
                weekly_assessments=tuple(week.weekly_assessment for week in record.weeks),
                final_grade=record.final_grade,
                letter_equivalent=record.letter_equivalent,
                teacher_evaluation=record.teacher_evaluation_1,
                status=record.status,
                totals=record_totals,
            )
        )

    return StudentProgress(
        student_id=student_id,
        totals=totals,
        months=tuple(months),
        certificates=tuple(certificates),
    )


class ProgressService:
    def __init__(self, store: SheetStore) -> None:
        self._store = store

    def student_progress(self, student_id: str) -> StudentProgress:
        return summarize_student_progress(
            student_id,
            self._store.list_student_sheets(student_id),
            self._store.list_certificates(student_id),
        )
