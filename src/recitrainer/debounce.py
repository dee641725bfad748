"""Single-slot debounce for typed input validation."""

from __future__ import annotations

import time
from collections.abc import Callable

DEFAULT_INTERVAL_SECONDS = 0.6

Clock = Callable[[], float]
Task = Callable[[], None]


class Debouncer:
    """Hold at most one pending task and run it after a quiet interval.

    Submitting a new task replaces the pending one and restarts the interval.
    Nothing runs on its own: the owner calls `poll` from its event loop.
    """

    def __init__(self, interval: float = DEFAULT_INTERVAL_SECONDS, clock: Clock = time.monotonic) -> None:
        if interval < 0:
            raise ValueError("Debounce interval must not be negative.")
        self.interval = interval
        self._clock = clock
        self._task: Task | None = None
        self._deadline = 0.0

    @property
    def pending(self) -> bool:
        return self._task is not None

    @property
    def deadline(self) -> float | None:
        return self._deadline if self._task is not None else None

    def submit(self, task: Task, now: float | None = None) -> None:
        """Replace any pending task with task and restart the quiet interval."""
        started = self._clock() if now is None else now
        self._task = task
        self._deadline = started + self.interval

    def cancel(self) -> None:
        self._task = None

    def poll(self, now: float | None = None) -> bool:
        """Run the pending task if its deadline has passed."""
        if self._task is None:
            return False
        current = self._clock() if now is None else now
        if current < self._deadline:
            return False
        return self.flush()

    def flush(self) -> bool:
        """Run the pending task immediately, ignoring the deadline."""
        task = self._task
        if task is None:
            return False
        self._task = None
        task()
        return True
