from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Optional


WEEK_NUMBERS: tuple[int, ...] = (1, 2, 3, 4)
WEEKDAY_KEYS: tuple[str, ...] = ("su", "m", "tu", "w", "th")

WEEKDAY_LABELS = {
    "su": "Sun",
    "m": "Mon",
    "tu": "Tue",
    "w": "Wed",
    "th": "Thu",
}


class AttendanceMark(str, Enum):
    PRESENT = "P"
    LATE = "L"
    VERY_LATE = "VL"
    ABSENT = "A"
    UNSET = ""

    @classmethod
    def parse(cls, value: "AttendanceMark | str | None") -> "AttendanceMark":
        if value is None:
            return cls.UNSET
        if isinstance(value, cls):
            return value
        token = str(value).strip().upper()
        if token in ("", "-"):
            return cls.UNSET
        try:
            return cls(token)
        except ValueError as exc:
            raise ValueError(f"Unknown attendance mark: {value!r}") from exc

    @property
    def storage_value(self) -> Optional[str]:
        return self.value or None

    @property
    def label(self) -> str:
        return self.value or "-"


COUNTABLE_MARKS: tuple[AttendanceMark, ...] = (
    AttendanceMark.PRESENT,
    AttendanceMark.LATE,
    AttendanceMark.VERY_LATE,
    AttendanceMark.ABSENT,
)


def validate_week_number(week_number: int) -> int:
    if week_number not in WEEK_NUMBERS:
        raise ValueError(f"Week number must be one of {WEEK_NUMBERS}, got {week_number!r}.")
    return week_number


def validate_weekday(day: str) -> str:
    if day not in WEEKDAY_KEYS:
        raise ValueError(f"Weekday must be one of {WEEKDAY_KEYS}, got {day!r}.")
    return day


def validate_score(value: float | int | None) -> float | None:
    """Accept any finite number or None; ranges are left to the teacher."""

    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("Scores must be numeric.")
    score = float(value)
    if not math.isfinite(score):
        raise ValueError(f"Scores must be finite numbers, got {value!r}.")
    return score


def _blank_days() -> dict[str, AttendanceMark]:
    return {day: AttendanceMark.UNSET for day in WEEKDAY_KEYS}


@dataclass(slots=True)
class WeeklyRecord:
    week_number: int
    days: dict[str, AttendanceMark] = field(default_factory=_blank_days)
    weekly_assessment: Optional[float] = None

    def __post_init__(self) -> None:
        validate_week_number(self.week_number)
        unknown = set(self.days) - set(WEEKDAY_KEYS)
        if unknown:
            raise ValueError(f"Unknown weekday keys: {sorted(unknown)}")
        self.days = {
            day: AttendanceMark.parse(self.days.get(day)) for day in WEEKDAY_KEYS
        }
        self.weekly_assessment = validate_score(self.weekly_assessment)

    @classmethod
    def from_marks(
        cls,
        week_number: int,
        marks: Mapping[str, AttendanceMark | str | None] | Iterable[AttendanceMark | str | None],
        weekly_assessment: float | None = None,
    ) -> "WeeklyRecord":
        if isinstance(marks, Mapping):
            days = dict(marks)
        else:
            values = list(marks)
            if len(values) != len(WEEKDAY_KEYS):
                raise ValueError(f"A week holds exactly {len(WEEKDAY_KEYS)} marks, got {len(values)}.")
            days = dict(zip(WEEKDAY_KEYS, values))
        return cls(week_number=week_number, days=days, weekly_assessment=weekly_assessment)

    def set_mark(self, day: str, mark: AttendanceMark | str | None) -> None:
        self.days[validate_weekday(day)] = AttendanceMark.parse(mark)

    def set_weekly_assessment(self, score: float | int | None) -> None:
        self.weekly_assessment = validate_score(score)

    def marks(self) -> list[AttendanceMark]:
        return [self.days[day] for day in WEEKDAY_KEYS]

    def copy(self) -> "WeeklyRecord":
        return WeeklyRecord(self.week_number, dict(self.days), self.weekly_assessment)


@dataclass(frozen=True, slots=True)
class MonthlyTotals:
    present_count: int = 0
    late_count: int = 0
    very_late_count: int = 0
    absent_count: int = 0

    @property
    def marked_count(self) -> int:
        return self.present_count + self.late_count + self.very_late_count + self.absent_count

    @property
    def attendance_rate(self) -> int:
        """Share of marked days that were Present, as a rounded percentage."""

        if self.marked_count == 0:
            return 0
        return round(self.present_count / self.marked_count * 100)

    def __add__(self, other: "MonthlyTotals") -> "MonthlyTotals":
        if not isinstance(other, MonthlyTotals):
            return NotImplemented
        return MonthlyTotals(
            present_count=self.present_count + other.present_count,
            late_count=self.late_count + other.late_count,
            very_late_count=self.very_late_count + other.very_late_count,
            absent_count=self.absent_count + other.absent_count,
        )

    def as_dict(self) -> dict[str, int]:
        return {
            "present_count": self.present_count,
            "late_count": self.late_count,
            "very_late_count": self.very_late_count,
            "absent_count": self.absent_count,
        }


def blank_weeks() -> list[WeeklyRecord]:
    return [WeeklyRecord(week_number) for week_number in WEEK_NUMBERS]
