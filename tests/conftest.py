from __future__ import annotations

import os
import tempfile

# Must run before attendee_core.config is imported: it creates its data dir
# and log file at import time.
os.environ["ATTENDEE_HOME"] = tempfile.mkdtemp(prefix="attendee-tests-")
os.environ.pop("ATTENDEE_SERVER_URL", None)
os.environ.pop("ATTENDEE_ADMIN_PASS", None)

from typing import Callable, Optional

import pytest


class FakeScheduler:
    """Tk-style after/after_cancel driven by a manual clock."""

    def __init__(self):
        self.now = 0
        self._jobs: dict[str, tuple[int, Callable]] = {}
        self._seq = 0

    def after(self, ms: int, fn: Callable) -> str:
        self._seq += 1
        job = f"after#{self._seq}"
        self._jobs[job] = (self.now + ms, fn)
        return job

    def after_cancel(self, job: str) -> None:
        self._jobs.pop(job, None)

    @property
    def pending(self) -> int:
        return len(self._jobs)

    def advance(self, ms: int) -> None:
        target = self.now + ms
        while True:
            due = [(t, j) for j, (t, _) in self._jobs.items() if t <= target]
            if not due:
                break
            t, job = min(due)
            self.now = t
            _, fn = self._jobs.pop(job)
            fn()
        self.now = target


class ImmediateRunner:
    """Runs submitted work synchronously; records every call."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, on_done):
        self.submitted += 1
        try:
            result = fn()
        except Exception as e:
            on_done(None, e)
        else:
            on_done(result, None)


class ManualRunner:
    """Queues work until the test completes it, to model in-flight requests."""

    def __init__(self):
        self.queue: list[tuple[Callable, Callable]] = []

    def submit(self, fn, on_done):
        self.queue.append((fn, on_done))

    def complete(self, index: int = 0) -> None:
        fn, on_done = self.queue.pop(index)
        try:
            result = fn()
        except Exception as e:
            on_done(None, e)
        else:
            on_done(result, None)


class FakeTokens:
    def __init__(self, token: Optional[str] = "42"):
        self.token = token

    def get_token(self):
        return self.token

    def set_token(self, token):
        self.token = str(token)

    def clear_token(self):
        self.token = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None


@pytest.fixture
def config():
    return {"serverUrl": "https://api.example.test", "adminPass": "app-secret"}


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def runner():
    return ImmediateRunner()


@pytest.fixture
def manual_runner():
    return ManualRunner()


@pytest.fixture
def tokens():
    return FakeTokens()
