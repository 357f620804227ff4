from __future__ import annotations

import re
from datetime import date, datetime

MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")


class InvalidMonth(ValueError):
    pass


def parse_month(value: str) -> str:
    """Normalise a ``YYYY-MM`` month string, e.g. ``"2025-3"`` -> ``"2025-03"``."""

    match = MONTH_PATTERN.match(str(value).strip())
    if match is None:
        raise InvalidMonth("Month must be written as YYYY-MM.")

    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise InvalidMonth("Month must be between 01 and 12.")

    return f"{year:04d}-{month:02d}"


def current_month(today: date | None = None) -> str:
    reference = today or date.today()
    return f"{reference.year:04d}-{reference.month:02d}"


def shift_month(month: str, offset: int) -> str:
    year, month_number = (int(part) for part in parse_month(month).split("-"))
    index = year * 12 + (month_number - 1) + offset
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def _coerce_datetime(value: datetime | str) -> datetime:
    if isinstance(value, datetime):
        return value

    if isinstance(value, str):
        candidate = value.strip().replace(" ", "T", 1)
        try:
            return datetime.fromisoformat(candidate)
        except ValueError:
            pass

    raise ValueError(f"Unsupported datetime value: {value!r}")


def format_relative_time(value: datetime | str, *, now: datetime | None = None) -> str:
    reference = now or datetime.now()
    moment = _coerce_datetime(value)

    total_seconds = int((reference - moment).total_seconds())
    if total_seconds < 60:
        return "just now"

    minutes = total_seconds // 60
    if minutes == 1:
        return "1 minute ago"
    if minutes < 60:
        return f"{minutes} minutes ago"

    hours = minutes // 60
    if hours == 1:
        return "1 hour ago"
    if hours < 24:
        return f"{hours} hours ago"

    days = hours // 24
    if days == 1:
        return "Yesterday"
    return f"{days} days ago"
