from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Mapping, Optional

from attendance_sheet.models.aggregation import aggregate
from attendance_sheet.models.attendance import (
    WEEK_NUMBERS,
    WEEKDAY_KEYS,
    AttendanceMark,
    MonthlyTotals,
    WeeklyRecord,
    blank_weeks,
    validate_score,
    validate_week_number,
)


LETTER_EQUIVALENTS: tuple[str, ...] = ("A+", "A", "B+", "B", "C", "D")

OVERALL_NUMERIC_FIELDS: tuple[str, ...] = (
    "overall_score",
    "teacher_evaluation_1",
    "teacher_evaluation_2",
    "final_grade",
)
EDITABLE_FIELDS: tuple[str, ...] = OVERALL_NUMERIC_FIELDS + ("letter_equivalent", "notes")


class SheetStatus(str, Enum):
    UNSET = ""
    PASSED = "Passed"
    REPEAT = "Repeat"

    @classmethod
    def parse(cls, value: "SheetStatus | str | None") -> "SheetStatus":
        if value is None:
            return cls.UNSET
        if isinstance(value, cls):
            return value
        token = str(value).strip()
        for member in cls:
            if member.value.lower() == token.lower():
                return member
        raise ValueError(f"Unknown sheet status: {value!r}")

    def advance(self) -> "SheetStatus":
        """Manual three-way toggle: Unset -> Passed -> Repeat -> Unset."""

        return _STATUS_CYCLE[self]

    @property
    def storage_value(self) -> Optional[str]:
        return self.value or None

    @property
    def label(self) -> str:
        return self.value or "Click"


_STATUS_CYCLE = {
    SheetStatus.UNSET: SheetStatus.PASSED,
    SheetStatus.PASSED: SheetStatus.REPEAT,
    SheetStatus.REPEAT: SheetStatus.UNSET,
}


def validate_letter(value: str | None) -> Optional[str]:
    if value is None or value == "":
        return None
    if value not in LETTER_EQUIVALENTS:
        raise ValueError(f"Letter equivalent must be one of {LETTER_EQUIVALENTS}, got {value!r}.")
    return value


def week_column(week_number: int, day: str) -> str:
    return f"week{week_number}_{day}"


def assessment_column(week_number: int) -> str:
    return f"week{week_number}_wa"


def _check_weeks(weeks: list[WeeklyRecord]) -> None:
    numbers = tuple(week.week_number for week in weeks)
    if numbers != WEEK_NUMBERS:
        raise ValueError(f"Expected weeks {WEEK_NUMBERS} in order, got {numbers}.")


@dataclass(slots=True)
class Student:
    student_id: str
    display_name: str = ""
    phone: str = ""

    @property
    def label(self) -> str:
        return self.display_name or self.student_id


@dataclass(slots=True)
class BackingRecord:
    """Durable copy of one student's sheet for one teacher and month."""

    student_id: str
    teacher_id: str
    month: str
    weeks: list[WeeklyRecord] = field(default_factory=blank_weeks)
    overall_score: Optional[float] = None
    teacher_evaluation_1: Optional[float] = None
    teacher_evaluation_2: Optional[float] = None
    final_grade: Optional[float] = None
    letter_equivalent: Optional[str] = None
    status: SheetStatus = SheetStatus.UNSET
    notes: Optional[str] = None
    id: Optional[int] = None
    certificate_issued: bool = False

    def __post_init__(self) -> None:
        _check_weeks(self.weeks)

    def to_columns(self) -> dict[str, Any]:
        columns: dict[str, Any] = {
            "student_id": self.student_id,
            "teacher_id": self.teacher_id,
            "month": self.month,
        }
        for week in self.weeks:
            for day in WEEKDAY_KEYS:
                columns[week_column(week.week_number, day)] = week.days[day].storage_value
            columns[assessment_column(week.week_number)] = week.weekly_assessment
        for name in OVERALL_NUMERIC_FIELDS:
            columns[name] = getattr(self, name)
        columns["letter_equivalent"] = self.letter_equivalent
        columns["status"] = self.status.storage_value
        columns["notes"] = self.notes
        return columns

    @classmethod
    def from_columns(cls, row: Mapping[str, Any]) -> "BackingRecord":
        weeks = [
            WeeklyRecord(
                week_number,
                {day: AttendanceMark.parse(row[week_column(week_number, day)]) for day in WEEKDAY_KEYS},
                row[assessment_column(week_number)],
            )
            for week_number in WEEK_NUMBERS
        ]
        keys = set(row.keys())
        return cls(
            student_id=str(row["student_id"]),
            teacher_id=str(row["teacher_id"]),
            month=row["month"],
            weeks=weeks,
            overall_score=row["overall_score"],
            teacher_evaluation_1=row["teacher_evaluation_1"],
            teacher_evaluation_2=row["teacher_evaluation_2"],
            final_grade=row["final_grade"],
            letter_equivalent=row["letter_equivalent"],
            status=SheetStatus.parse(row["status"]),
            notes=row["notes"],
            id=int(row["id"]) if row["id"] is not None else None,
            certificate_issued=bool(row["certificate_issued"]) if "certificate_issued" in keys else False,
        )

    def totals(self) -> MonthlyTotals:
        return aggregate(self.weeks)


@dataclass(frozen=True, slots=True)
class CertificateRequest:
    student_id: str
    teacher_id: str
    backing_record_id: int
    issue_date: date
    certificate_type: str = "passing"


@dataclass(slots=True)
class StudentSheetRow:
    """One student's line on the monthly sheet, owned by a single session."""

    student_id: str
    display_name: str = ""
    phone: str = ""
    weeks: list[WeeklyRecord] = field(default_factory=blank_weeks)
    overall_score: Optional[float] = None
    teacher_evaluation_1: Optional[float] = None
    teacher_evaluation_2: Optional[float] = None
    final_grade: Optional[float] = None
    letter_equivalent: Optional[str] = None
    status: SheetStatus = SheetStatus.UNSET
    notes: Optional[str] = None
    persisted_id: Optional[int] = None
    certificate_issued: bool = False
    dirty: bool = False
    revision: int = 0
    monthly_totals: MonthlyTotals = field(init=False, default_factory=MonthlyTotals)

    def __post_init__(self) -> None:
        _check_weeks(self.weeks)
        self.monthly_totals = aggregate(self.weeks)

    @classmethod
    def blank(cls, student: Student) -> "StudentSheetRow":
        return cls(student_id=student.student_id, display_name=student.display_name, phone=student.phone)

    @classmethod
    def from_backing_record(cls, student: Student, record: BackingRecord) -> "StudentSheetRow":
        return cls(
            student_id=student.student_id,
            display_name=student.display_name,
            phone=student.phone,
            weeks=[week.copy() for week in record.weeks],
            overall_score=record.overall_score,
            teacher_evaluation_1=record.teacher_evaluation_1,
            teacher_evaluation_2=record.teacher_evaluation_2,
            final_grade=record.final_grade,
            letter_equivalent=record.letter_equivalent,
            status=record.status,
            notes=record.notes,
            persisted_id=record.id,
            certificate_issued=record.certificate_issued,
        )

    def week(self, week_number: int) -> WeeklyRecord:
        return self.weeks[validate_week_number(week_number) - 1]

    def apply_cell_edit(self, week_number: int, day: str, mark: AttendanceMark | str | None) -> "StudentSheetRow":
        self.week(week_number).set_mark(day, mark)
        self.monthly_totals = aggregate(self.weeks)
        self._touch()
        return self

    def apply_weekly_assessment(self, week_number: int, score: float | int | None) -> "StudentSheetRow":
        self.week(week_number).set_weekly_assessment(score)
        self._touch()
        return self

    def apply_field_edit(self, field_name: str, value: Any) -> "StudentSheetRow":
        if field_name in OVERALL_NUMERIC_FIELDS:
            setattr(self, field_name, validate_score(value))
        elif field_name == "letter_equivalent":
            self.letter_equivalent = validate_letter(value)
        elif field_name == "notes":
            self.notes = str(value) if value else None
        else:
            raise ValueError(f"Field {field_name!r} is not editable; expected one of {EDITABLE_FIELDS}.")
        self._touch()
        return self

    def cycle_status(self) -> SheetStatus:
        self.status = self.status.advance()
        self._touch()
        return self.status

    def to_backing_record(self, teacher_id: str, month: str) -> BackingRecord:
        return BackingRecord(
            student_id=self.student_id,
            teacher_id=teacher_id,
            month=month,
            weeks=[week.copy() for week in self.weeks],
            overall_score=self.overall_score,
            teacher_evaluation_1=self.teacher_evaluation_1,
            teacher_evaluation_2=self.teacher_evaluation_2,
            final_grade=self.final_grade,
            letter_equivalent=self.letter_equivalent,
            status=self.status,
            notes=self.notes,
            id=self.persisted_id,
            certificate_issued=self.certificate_issued,
        )

    def _touch(self) -> None:
        self.dirty = True
        self.revision += 1
