"""Focus session countdown state machine."""

from collections.abc import Callable
from enum import StrEnum
from typing import Any

import structlog
from pydantic import BaseModel

logger = structlog.get_logger()

TimerListener = Callable[..., None]


class TimerState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


class InvalidTransition(RuntimeError):
    """Raised when an operation is not allowed in the current state."""


class TimerOutcome(BaseModel):
    """Snapshot taken when a session completes."""

    initial_duration: int
    time_left: int
    finished_early: bool = False

    @property
    def elapsed_seconds(self) -> int:
        return max(0, self.initial_duration - self.time_left)

    @property
    def spent_minutes(self) -> int:
        return spent_minutes(self.initial_duration, self.time_left)


def spent_minutes(initial_duration: int, time_left: int) -> int:
    """Whole minutes studied, never less than one."""
    return max(1, (initial_duration - time_left) // 60)


class FocusTimer:
    """Countdown for exactly one focus session.

    States move ``idle -> running <-> paused -> completed``. ``tick`` is
    driven externally once per second; reaching zero completes the session.
    ``initial_duration`` is what elapsed time is measured against, so a
    duration learnt late (video metadata) keeps the accounting correct.

    Events: ``started``, ``paused`` (reason), ``resumed``, ``tick``
    (time_left), ``completed`` (TimerOutcome), ``reset``.

    Args:
        duration_seconds: Length of the session.
    """

    def __init__(self, duration_seconds: int):
        self.initial_duration = int(duration_seconds)
        self.time_left = int(duration_seconds)
        self.state = TimerState.IDLE
        self.outcome: TimerOutcome | None = None
        self._listeners: dict[str, list[TimerListener]] = {}

    def on(self, event: str, listener: TimerListener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def _emit(self, event: str, *args: Any) -> None:
        for listener in self._listeners.get(event, []):
            listener(*args)

    @property
    def is_running(self) -> bool:
        return self.state == TimerState.RUNNING

    @property
    def elapsed_seconds(self) -> int:
        return max(0, self.initial_duration - self.time_left)

    def _require(self, *states: TimerState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidTransition(f"timer is {self.state.value}; expected {allowed}")

    def start(self) -> None:
        self._require(TimerState.IDLE)
        self.initial_duration = self.time_left
        self.state = TimerState.RUNNING
        logger.debug("timer_started", duration=self.initial_duration)
        self._emit("started")

    def pause(self, reason: str = "manual") -> None:
        self._require(TimerState.RUNNING)
        self.state = TimerState.PAUSED
        self._emit("paused", reason)

    def resume(self) -> None:
        self._require(TimerState.PAUSED)
        self.state = TimerState.RUNNING
        self._emit("resumed")

    def toggle(self) -> None:
        """Start, pause or resume depending on the current state."""
        if self.state == TimerState.IDLE:
            self.start()
        elif self.state == TimerState.RUNNING:
            self.pause()
        else:
            self.resume()

    def tick(self) -> int:
        """Advance one second while running; returns the remaining seconds."""
        if self.state != TimerState.RUNNING:
            return self.time_left
        if self.time_left > 0:
            self.time_left -= 1
            self._emit("tick", self.time_left)
        if self.time_left == 0:
            self._complete(finished_early=False)
        return self.time_left

    def finish(self) -> TimerOutcome:
        """Finish and save before the countdown ends."""
        self._require(TimerState.RUNNING, TimerState.PAUSED)
        if self.elapsed_seconds <= 0:
            raise InvalidTransition("no time has elapsed yet")
        return self._complete(finished_early=self.time_left > 0)

    def _complete(self, finished_early: bool) -> TimerOutcome:
        self.state = TimerState.COMPLETED
        self.outcome = TimerOutcome(
            initial_duration=self.initial_duration,
            time_left=self.time_left,
            finished_early=finished_early,
        )
        logger.info(
            "timer_completed",
            spent_minutes=self.outcome.spent_minutes,
            time_left=self.time_left,
        )
        self._emit("completed", self.outcome)
        return self.outcome

    def set_duration(self, duration_seconds: int) -> None:
        """Replace the target length, e.g. once a video's real length is known.

        Elapsed time is preserved; a completed timer is left alone.
        """
        if self.state == TimerState.COMPLETED or duration_seconds <= 0:
            return
        elapsed = self.elapsed_seconds
        self.initial_duration = int(duration_seconds)
        self.time_left = max(0, self.initial_duration - elapsed)

    def reset(self, duration_seconds: int) -> None:
        """Return to idle for a newly selected task."""
        self.initial_duration = int(duration_seconds)
        self.time_left = int(duration_seconds)
        self.state = TimerState.IDLE
        self.outcome = None
        self._emit("reset")

    def snapshot(self) -> dict:
        return {
            "state": self.state.value,
            "time_left": self.time_left,
            "initial_duration": self.initial_duration,
            "clock": format_hms(self.time_left),
        }


def format_hms(seconds: int) -> str:
    """``H:MM:SS`` when an hour or more remains, otherwise ``MM:SS``."""
    hours, rest = divmod(max(0, seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"
