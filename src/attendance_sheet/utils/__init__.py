from .time import InvalidMonth, current_month, format_relative_time, parse_month, shift_month

__all__ = ["InvalidMonth", "current_month", "format_relative_time", "parse_month", "shift_month"]
