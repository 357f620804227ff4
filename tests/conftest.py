from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from attendance_sheet.data import Database
from attendance_sheet.models import Student
from attendance_sheet.services import SheetStore


class FakeTimer:
    """Manual stand-in for the Tk ``after`` queue."""

    def __init__(self) -> None:
        self._next_handle = 0
        self.jobs: dict[int, tuple[int, Callable[[], None]]] = {}
        self.scheduled_delays: list[int] = []

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> int:
        self._next_handle += 1
        self.jobs[self._next_handle] = (delay_ms, callback)
        self.scheduled_delays.append(delay_ms)
        return self._next_handle

    def cancel(self, handle: int) -> None:
        self.jobs.pop(handle, None)

    @property
    def active(self) -> int:
        return len(self.jobs)

    def fire(self) -> None:
        jobs = list(self.jobs.values())
        self.jobs.clear()
        for _delay, callback in jobs:
            callback()


class DeferredRunner:
    """Hold submitted batches until the test decides to run them."""

    def __init__(self) -> None:
        self.batches: list[tuple[Callable[[], Any], Callable[[Any], None]]] = []

    def submit(self, work: Callable[[], Any], on_done: Callable[[Any], None]) -> None:
        self.batches.append((work, on_done))

    def run_next(self) -> None:
        work, on_done = self.batches.pop(0)
        on_done(work())

    def run_work_only(self) -> Callable[[], None]:
        """Run the persistence step now and return the completion for later."""

        work, on_done = self.batches.pop(0)
        result = work()
        return lambda: on_done(result)


@pytest.fixture
def store(tmp_path: Path) -> SheetStore:
    sheet_store = SheetStore(Database(tmp_path / "attendance.db"))
    sheet_store.initialize()
    return sheet_store


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def roster(store: SheetStore) -> list[Student]:
    students = [
        Student("S-001", "Aisha", "0100"),
        Student("S-002", "Omar", "0101"),
        Student("S-003", "Layla", ""),
    ]
    for student in students:
        store.add_student(student)
        store.assign_student("T-1", student.student_id)
    return students
