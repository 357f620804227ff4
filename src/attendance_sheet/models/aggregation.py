from __future__ import annotations

from collections import Counter
from itertools import chain
from typing import Iterable

from attendance_sheet.models.attendance import AttendanceMark, MonthlyTotals, WeeklyRecord


def aggregate(weeks: Iterable[WeeklyRecord]) -> MonthlyTotals:
    """Count each countable mark across every day slot of ``weeks``.

    Unset slots are ignored, so an untouched month yields all-zero totals.
    """

    counts = Counter(chain.from_iterable(week.marks() for week in weeks))
    return MonthlyTotals(
        present_count=counts[AttendanceMark.PRESENT],
        late_count=counts[AttendanceMark.LATE],
        very_late_count=counts[AttendanceMark.VERY_LATE],
        absent_count=counts[AttendanceMark.ABSENT],
    )
