from __future__ import annotations

from attendance_sheet.models import AttendanceMark, SheetStatus

# Core surfaces
VS_BG = "#1E1E1E"
VS_SURFACE = "#252526"
VS_SURFACE_ALT = "#2D2D30"

# Borders and outlines
VS_BORDER = "#3C3C3C"
VS_DIVIDER = "#2F2F2F"

# Accent colors
VS_ACCENT = "#0E639C"
VS_ACCENT_HOVER = "#1177BB"

# Text colors
VS_TEXT = "#F3F3F3"
VS_TEXT_MUTED = "#9DA5B4"

# Status colors
VS_SUCCESS = "#6A9955"
VS_WARNING = "#F48771"
VS_CAUTION = "#C9A227"
VS_DANGER = "#B5443B"

MARK_COLORS = {
    AttendanceMark.PRESENT: VS_SUCCESS,
    AttendanceMark.LATE: VS_CAUTION,
    AttendanceMark.VERY_LATE: "#8A6D3B",
    AttendanceMark.ABSENT: VS_DANGER,
    AttendanceMark.UNSET: VS_SURFACE_ALT,
}

STATUS_COLORS = {
    SheetStatus.PASSED: VS_SUCCESS,
    SheetStatus.REPEAT: VS_DANGER,
    SheetStatus.UNSET: VS_SURFACE_ALT,
}
