"""
Cancelable timed waits.

The pairing flow pauses between prompts with explicit waits rather than
polling. A scheduler hands back a handle whose ``cancel()`` guarantees the
callback will not run.
"""

import threading


class TimerHandle:
    """Handle for a callback scheduled on a ``threading.Timer``."""

    def __init__(self, delay: float, callback):
        self._cancelled = threading.Event()
        self._callback = callback
        self._timer = threading.Timer(delay, self._fire)
        self._timer.daemon = True

    def _fire(self):
        if not self._cancelled.is_set():
            self._callback()

    def start(self):
        self._timer.start()
        return self

    def cancel(self):
        self._cancelled.set()
        self._timer.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


class TimerScheduler:
    """Runs callbacks on background timer threads."""

    def call_later(self, delay: float, callback) -> TimerHandle:
        return TimerHandle(max(delay, 0.0), callback).start()
