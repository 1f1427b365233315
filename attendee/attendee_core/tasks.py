"""
Background work and timers bound to the Tk event loop.

BackgroundRunner: runs a blocking call on a daemon thread and hands the
outcome back on the main thread by polling with root.after() — worker
threads never touch widgets or screen state.

LongPressCountdown: cancellable progress ticker. Owned by exactly one
screen; cancel() on release, on completion and on teardown.

Both only need a scheduler with ``after(ms, fn)`` and ``after_cancel(id)``,
which a Tk root provides.
"""

import threading

from .config import log
from .constants import TASK_POLL_MS, LONG_PRESS_TICK_MS, LONG_PRESS_STEP, LONG_PRESS_COMPLETE


class BackgroundRunner:
    """
    submit(fn, on_done) → on_done(result, error) later, on the main thread.
    Exactly one of result/error is meaningful; error is the raised exception.
    """

    def __init__(self, scheduler, poll_ms=TASK_POLL_MS):
        self._scheduler = scheduler
        self._poll_ms = poll_ms
        self._closed = False

    def submit(self, fn, on_done):
        outcome = {}

        def work():
            try:
                outcome["result"] = fn()
            except Exception as e:
                outcome["error"] = e
            finally:
                outcome["done"] = True

        threading.Thread(target=work, daemon=True).start()
        self._scheduler.after(self._poll_ms, lambda: self._poll(outcome, on_done))

    def _poll(self, outcome, on_done):
        if self._closed:
            return
        if not outcome.get("done"):
            self._scheduler.after(self._poll_ms, lambda: self._poll(outcome, on_done))
            return
        try:
            on_done(outcome.get("result"), outcome.get("error"))
        except Exception as e:
            log.error("Task callback error: %s", e, exc_info=True)

    def close(self):
        """Drop results still in flight; their callbacks never run."""
        self._closed = True


class LongPressCountdown:
    """
    Progress 0 → 100 in LONG_PRESS_STEP increments every LONG_PRESS_TICK_MS.

    on_progress(value) fires on every tick; on_complete() fires once, when
    the value reaches 100, after the timer has already stopped.
    """

    def __init__(self, scheduler, on_progress, on_complete,
                 tick_ms=LONG_PRESS_TICK_MS, step=LONG_PRESS_STEP):
        self._scheduler = scheduler
        self._on_progress = on_progress
        self._on_complete = on_complete
        self._tick_ms = tick_ms
        self._step = step
        self._job = None
        self.progress = 0

    @property
    def running(self) -> bool:
        return self._job is not None

    def start(self):
        self.cancel()
        self.progress = 0
        self._on_progress(0)
        self._job = self._scheduler.after(self._tick_ms, self._tick)

    def _tick(self):
        self._job = None
        self.progress = min(self.progress + self._step, LONG_PRESS_COMPLETE)
        self._on_progress(self.progress)
        if self.progress >= LONG_PRESS_COMPLETE:
            self._on_complete()
            return
        self._job = self._scheduler.after(self._tick_ms, self._tick)

    def cancel(self):
        """Stop ticking. Returns True if a countdown was actually running."""
        if self._job is None:
            return False
        try:
            self._scheduler.after_cancel(self._job)
        finally:
            self._job = None
        return True
