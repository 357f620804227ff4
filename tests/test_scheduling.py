from __future__ import annotations

import threading

from attendance_sheet.ui.scheduling import ThreadedRunner, TkTimer


class InlineWidget:
    """Runs ``after`` callbacks immediately on the calling thread."""

    def __init__(self) -> None:
        self.cancelled = []

    def after(self, delay_ms, callback):
        callback()
        return f"after#{delay_ms}"

    def after_cancel(self, handle):
        self.cancelled.append(handle)


def _submit_and_wait(work):
    delivered = []
    done = threading.Event()

    def on_done(result):
        delivered.append(result)
        done.set()

    ThreadedRunner(InlineWidget()).submit(work, on_done)
    assert done.wait(timeout=5)
    return delivered


def test_threaded_runner_delivers_the_result():
    assert _submit_and_wait(lambda: [1, 2]) == [[1, 2]]


def test_threaded_runner_reports_a_crashed_batch_as_none():
    def work():
        raise RuntimeError("boom")

    assert _submit_and_wait(work) == [None]


def test_tk_timer_cancels_through_the_widget():
    widget = InlineWidget()
    timer = TkTimer(widget)

    timer.cancel("after#1")

    assert widget.cancelled == ["after#1"]
