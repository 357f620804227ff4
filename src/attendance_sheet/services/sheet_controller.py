from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Optional

from attendance_sheet.models import AttendanceMark, SheetStatus, StudentSheetRow
from attendance_sheet.services.autosave import (
    DEFAULT_AUTOSAVE_DELAY_MS,
    AutoSaveScheduler,
    BatchRunner,
    TimerBackend,
)
from attendance_sheet.services.collaborators import CertificateIssuer, SheetBackingStore, StudentRegistry
from attendance_sheet.services.sheet_store import UnknownStudentError
from attendance_sheet.services.status import StatusEvaluator
from attendance_sheet.utils import parse_month

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Failed to load attendance data. Reopen the sheet to try again."


class SheetLoadError(RuntimeError):
    """Raised when an operation needs an open sheet and none is available."""


@dataclass
class SheetSession:
    """Rows and auto-save state for one teacher and one month."""

    teacher_id: str
    month: str
    rows: list[StudentSheetRow]
    scheduler: AutoSaveScheduler
    load_error: Optional[str] = None

    def row_for(self, student_id: str) -> StudentSheetRow:
        for row in self.rows:
            if row.student_id == student_id:
                return row
        raise UnknownStudentError(student_id)

    @property
    def dirty_rows(self) -> list[StudentSheetRow]:
        return [row for row in self.rows if row.dirty]


class SheetController:
    def __init__(
        self,
        registry: StudentRegistry,
        store: SheetBackingStore,
        issuer: CertificateIssuer,
        *,
        timer: TimerBackend,
        runner: BatchRunner | None = None,
        autosave_delay_ms: int = DEFAULT_AUTOSAVE_DELAY_MS,
        clock: Callable[[], datetime] = datetime.now,
        today: Callable[[], date] = date.today,
        on_state_change: Callable[[AutoSaveScheduler], None] | None = None,
    ) -> None:
        self._registry = registry
        self._store = store
        self._evaluator = StatusEvaluator(issuer, today=today)
        self._timer = timer
        self._runner = runner
        self._autosave_delay_ms = autosave_delay_ms
        self._clock = clock
        self._on_state_change = on_state_change
        self._session: SheetSession | None = None
        # Schedulers of closed sheets that still hold unsaved rows.
        self._unsaved: list[AutoSaveScheduler] = []

    @property
    def session(self) -> SheetSession | None:
        return self._session

    @property
    def unsaved_sheet_count(self) -> int:
        return len(self._unsaved)

    @property
    def saving(self) -> bool:
        return self._session is not None and self._session.scheduler.saving

    @property
    def last_saved_at(self) -> datetime | None:
        return self._session.scheduler.last_saved_at if self._session is not None else None

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------
    def open(self, teacher_id: str, month: str) -> SheetSession:
        normalized_month = parse_month(month)
        self.close()

        scheduler = AutoSaveScheduler(
            self._store,
            self._evaluator,
            teacher_id=teacher_id,
            month=normalized_month,
            timer=self._timer,
            runner=self._runner,
            delay_ms=self._autosave_delay_ms,
            clock=self._clock,
            on_state_change=self._on_state_change,
        )
        rows, load_error = self._load_rows(teacher_id, normalized_month)
        self._session = SheetSession(
            teacher_id=teacher_id,
            month=normalized_month,
            rows=rows,
            scheduler=scheduler,
            load_error=load_error,
        )
        return self._session

    def switch_month(self, month: str) -> SheetSession:
        session = self._require_session()
        return self.open(session.teacher_id, month)

    def reload(self) -> SheetSession:
        session = self._require_session()
        return self.open(session.teacher_id, session.month)

    def flush(self) -> bool:
        """Save the open sheet and retry closed sheets that failed to save."""

        saved = self._session is None or self._session.scheduler.flush()
        self._retry_unsaved()
        return saved and not self._unsaved

    def close(self) -> None:
        self._retry_unsaved()
        session, self._session = self._session, None
        if session is not None and not session.scheduler.flush():
            logger.warning(
                "Keeping unsaved rows of teacher %s, month %s for the next save attempt",
                session.teacher_id,
                session.month,
            )
            self._unsaved.append(session.scheduler)

    def _retry_unsaved(self) -> None:
        self._unsaved = [scheduler for scheduler in self._unsaved if not scheduler.flush()]

    def _load_rows(self, teacher_id: str, month: str) -> tuple[list[StudentSheetRow], Optional[str]]:
        try:
            students = self._registry.list_assigned_students(teacher_id)
            records = self._store.fetch_sheet_records(teacher_id, month)
        except Exception:
            logger.exception("Failed to load attendance sheet for teacher %s, month %s", teacher_id, month)
            return [], LOAD_ERROR_MESSAGE

        records_by_student = {record.student_id: record for record in records}
        rows: list[StudentSheetRow] = []
        seen: set[str] = set()
        for student in students:
            if student.student_id in seen:
                continue
            seen.add(student.student_id)

            record = records_by_student.get(student.student_id)
            if record is None:
                rows.append(StudentSheetRow.blank(student))
            else:
                rows.append(StudentSheetRow.from_backing_record(student, record))

        logger.info("Loaded %d row(s) for teacher %s, month %s", len(rows), teacher_id, month)
        return rows, None

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------
    def set_mark(
        self,
        student_id: str,
        week_number: int,
        day: str,
        mark: AttendanceMark | str | None,
    ) -> StudentSheetRow:
        row = self._row(student_id).apply_cell_edit(week_number, day, mark)
        return self._schedule(row)

    def set_weekly_assessment(self, student_id: str, week_number: int, score: float | None) -> StudentSheetRow:
        row = self._row(student_id).apply_weekly_assessment(week_number, score)
        return self._schedule(row)

    def set_field(self, student_id: str, field_name: str, value: Any) -> StudentSheetRow:
        row = self._row(student_id).apply_field_edit(field_name, value)
        return self._schedule(row)

    def cycle_status(self, student_id: str) -> SheetStatus:
        row = self._row(student_id)
        status = self._evaluator.cycle(row)
        self._schedule(row)
        return status

    def _row(self, student_id: str) -> StudentSheetRow:
        return self._require_session().row_for(student_id)

    def _schedule(self, row: StudentSheetRow) -> StudentSheetRow:
        self._require_session().scheduler.mark_dirty(row)
        return row

    def _require_session(self) -> SheetSession:
        if self._session is None:
            raise SheetLoadError("No attendance sheet is open.")
        return self._session
