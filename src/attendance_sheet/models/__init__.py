from .aggregation import aggregate
from .attendance import (
    COUNTABLE_MARKS,
    WEEK_NUMBERS,
    WEEKDAY_KEYS,
    WEEKDAY_LABELS,
    AttendanceMark,
    MonthlyTotals,
    WeeklyRecord,
)
from .sheet import (
    EDITABLE_FIELDS,
    LETTER_EQUIVALENTS,
    OVERALL_NUMERIC_FIELDS,
    BackingRecord,
    CertificateRequest,
    SheetStatus,
    Student,
    StudentSheetRow,
)

__all__ = [
    "AttendanceMark",
    "BackingRecord",
    "COUNTABLE_MARKS",
    "CertificateRequest",
    "EDITABLE_FIELDS",
    "LETTER_EQUIVALENTS",
    "MonthlyTotals",
    "OVERALL_NUMERIC_FIELDS",
    "SheetStatus",
    "Student",
    "StudentSheetRow",
    "WEEKDAY_KEYS",
    "WEEKDAY_LABELS",
    "WEEK_NUMBERS",
    "WeeklyRecord",
    "aggregate",
]
