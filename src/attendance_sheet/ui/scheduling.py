from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TkTimer:
    """Debounce timer backed by the widget's ``after`` queue."""

    def __init__(self, widget: Any) -> None:
        self._widget = widget

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> str:
        return self._widget.after(delay_ms, callback)

    def cancel(self, handle: str) -> None:
        try:
            self._widget.after_cancel(handle)
        except Exception:  # pragma: no cover - widget may be disposed
            logger.debug("Timer %s already gone", handle)


class ThreadedRunner:
    """Run a save batch on a daemon thread and deliver the result on the UI thread.

    A batch that raises is delivered as ``None`` so the caller always hears back.
    """

    def __init__(self, widget: Any) -> None:
        self._widget = widget

    def submit(self, work: Callable[[], T], on_done: Callable[[Optional[T]], None]) -> None:
        def _worker() -> None:
            result: Optional[T] = None
            try:
                result = work()
            except Exception:
                logger.exception("Background save batch crashed")
            finally:
                self._deliver(on_done, result)

        threading.Thread(target=_worker, daemon=True).start()

    def _deliver(self, on_done: Callable[[Optional[T]], None], result: Optional[T]) -> None:
        try:
            self._widget.after(0, lambda: on_done(result))
        except Exception:  # pragma: no cover - widget may be disposed
            logger.warning("Dropped auto-save completion; the window is closed")
