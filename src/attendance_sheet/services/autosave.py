from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional, Protocol, TypeVar

from attendance_sheet.models import BackingRecord, StudentSheetRow
from attendance_sheet.services.collaborators import SheetBackingStore
from attendance_sheet.services.status import StatusEvaluator

logger = logging.getLogger(__name__)

DEFAULT_AUTOSAVE_DELAY_MS = 1000

T = TypeVar("T")


class TimerBackend(Protocol):
    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        ...

    def cancel(self, handle: Any) -> None:
        ...


class BatchRunner(Protocol):
    """Runs ``work`` and hands its result to ``on_done``.

    If ``work`` raises, the runner logs it and calls ``on_done(None)``.
    """

    def submit(self, work: Callable[[], T], on_done: Callable[[Optional[T]], None]) -> None:
        ...


class ImmediateRunner:
    """Run a batch inline on the calling thread."""

    def submit(self, work: Callable[[], T], on_done: Callable[[Optional[T]], None]) -> None:
        try:
            result = work()
        except Exception:
            logger.exception("Save batch crashed")
            result = None
        on_done(result)


@dataclass(frozen=True, slots=True)
class RowSaveResult:
    student_id: str
    revision: int
    persisted_id: Optional[int] = None
    certificate_issued: bool = False
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class _Batch:
    generation: int
    rows: dict[str, StudentSheetRow] = field(default_factory=dict)


class AutoSaveScheduler:
    """Debounced batch writer shared by every row of one sheet.

    Edits call :meth:`mark_dirty`, which restarts a single timer. When the
    timer fires, all pending rows are snapshotted on the calling thread and
    the snapshot is handed to the runner; rows themselves are only touched
    again when the batch result comes back.

    At most one batch is in flight. A timer that fires while a batch is
    running leaves its rows pending, and the next batch starts as soon as
    the running one completes. :meth:`flush` takes over the in-flight rows
    and saves them inline; the batch it replaced writes nothing and its
    completion is ignored.
    """

    def __init__(
        self,
        store: SheetBackingStore,
        evaluator: StatusEvaluator,
        *,
        teacher_id: str,
        month: str,
        timer: TimerBackend,
        runner: BatchRunner | None = None,
        delay_ms: int = DEFAULT_AUTOSAVE_DELAY_MS,
        clock: Callable[[], datetime] = datetime.now,
        on_state_change: Callable[["AutoSaveScheduler"], None] | None = None,
    ) -> None:
        self._store = store
        self._evaluator = evaluator
        self._teacher_id = teacher_id
        self._month = month
        self._timer = timer
        self._runner = runner or ImmediateRunner()
        self._delay_ms = int(delay_ms)
        self._clock = clock
        self._on_state_change = on_state_change

        self._pending: dict[str, StudentSheetRow] = {}
        self._timer_handle: Any = None
        self._in_flight: _Batch | None = None
        self._deferred = False
        self._generation = 0
        # Held for every store write; flush takes it to wait out a running batch.
        self._write_lock = threading.RLock()
        self._last_saved_at: datetime | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def saving(self) -> bool:
        return self._in_flight is not None

    @property
    def last_saved_at(self) -> datetime | None:
        return self._last_saved_at

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def timer_active(self) -> bool:
        return self._timer_handle is not None

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def mark_dirty(self, row: StudentSheetRow) -> None:
        self._pending[row.student_id] = row
        self._restart_timer()

    def flush(self) -> bool:
        """Save every pending or in-flight row right now.

        Returns True when no row is left dirty.
        """
        self.cancel()
        with self._write_lock:
            self._generation += 1
            if self._in_flight is not None:
                for student_id, row in self._in_flight.rows.items():
                    self._pending.setdefault(student_id, row)
                self._in_flight = None
            self._deferred = False
            self._start_batch(ImmediateRunner())

        if self._pending:
            logger.warning(
                "%d row(s) for teacher %s, month %s could not be saved during flush",
                len(self._pending),
                self._teacher_id,
                self._month,
            )
        return not self._pending

    def cancel(self) -> None:
        if self._timer_handle is not None:
            self._timer.cancel(self._timer_handle)
            self._timer_handle = None

    def _restart_timer(self) -> None:
        self.cancel()
        self._timer_handle = self._timer.schedule(self._delay_ms, self._handle_timer)

    def _handle_timer(self) -> None:
        self._timer_handle = None
        if self._in_flight is not None:
            self._deferred = True
            return
        self._start_batch(self._runner)

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------
    def _start_batch(self, runner: BatchRunner) -> None:
        rows = {student_id: row for student_id, row in self._pending.items() if row.dirty}
        self._pending.clear()
        if not rows:
            return

        snapshot = [
            (row.to_backing_record(self._teacher_id, self._month), row.revision)
            for row in rows.values()
        ]
        batch = _Batch(self._generation, rows)
        self._in_flight = batch
        self._notify()
        logger.debug("Auto-saving %d row(s) for %s / %s", len(snapshot), self._teacher_id, self._month)

        runner.submit(
            lambda: self._persist(batch.generation, snapshot),
            lambda results: self._finish_batch(batch, results),
        )

    def _persist(
        self,
        generation: int,
        snapshot: list[tuple[BackingRecord, int]],
    ) -> list[RowSaveResult] | None:
        with self._write_lock:
            if generation != self._generation:
                logger.debug("Skipping superseded batch for %s / %s", self._teacher_id, self._month)
                return None
            return [self._persist_record(record, revision) for record, revision in snapshot]

    def _persist_record(self, record: BackingRecord, revision: int) -> RowSaveResult:
        try:
            persisted_id = self._store.upsert_sheet_record(record)
        except Exception as exc:
            logger.exception(
                "Auto-save failed for student %s (teacher %s, month %s)",
                record.student_id,
                record.teacher_id,
                record.month,
            )
            return RowSaveResult(record.student_id, revision, error=exc)

        issued = self._evaluator.after_save(record, persisted_id)
        return RowSaveResult(
            record.student_id,
            revision,
            persisted_id=persisted_id,
            certificate_issued=issued,
        )

    def _finish_batch(self, batch: _Batch, results: list[RowSaveResult] | None) -> None:
        if batch is not self._in_flight:
            # Replaced by a flush, which already saved these rows.
            return
        self._in_flight = None

        if results is None:
            results = [
                RowSaveResult(student_id, -1, error=RuntimeError("save batch did not complete"))
                for student_id in batch.rows
            ]

        saved_any = False
        for result in results:
            row = batch.rows[result.student_id]
            if not result.ok:
                # Still dirty; it rides along with whichever batch the next edit schedules.
                self._pending.setdefault(row.student_id, row)
                continue

            saved_any = True
            row.persisted_id = result.persisted_id
            row.certificate_issued = row.certificate_issued or result.certificate_issued
            if row.revision == result.revision:
                row.dirty = False

        if saved_any:
            self._last_saved_at = self._clock()
        self._notify()

        if self._deferred:
            self._deferred = False
            if self._timer_handle is None:
                self._start_batch(self._runner)

    def _notify(self) -> None:
        if self._on_state_change is not None:
            self._on_state_change(self)
