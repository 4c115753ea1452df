"""Tests for the focus countdown state machine."""

import pytest

from study_command_center.focus.timer import (
    FocusTimer,
    InvalidTransition,
    TimerState,
    format_hms,
    spent_minutes,
)


def run(timer: FocusTimer, seconds: int) -> None:
    for _ in range(seconds):
        timer.tick()


class TestTransitions:
    def test_starts_idle(self):
        timer = FocusTimer(600)
        assert timer.state == TimerState.IDLE
        assert timer.time_left == 600

    def test_tick_ignored_until_started(self):
        timer = FocusTimer(600)
        assert timer.tick() == 600

    def test_start_pause_resume(self):
        timer = FocusTimer(600)
        events = []
        timer.on("paused", lambda reason: events.append(("paused", reason)))
        timer.on("resumed", lambda: events.append(("resumed",)))
        timer.start()
        run(timer, 10)
        timer.pause()
        run(timer, 10)
        assert timer.time_left == 590
        timer.resume()
        run(timer, 5)
        assert timer.time_left == 585
        assert events == [("paused", "manual"), ("resumed",)]

    def test_toggle_cycles(self):
        timer = FocusTimer(60)
        timer.toggle()
        assert timer.state == TimerState.RUNNING
        timer.toggle()
        assert timer.state == TimerState.PAUSED
        timer.toggle()
        assert timer.state == TimerState.RUNNING

    def test_cannot_start_twice(self):
        timer = FocusTimer(60)
        timer.start()
        with pytest.raises(InvalidTransition):
            timer.start()

    def test_pause_requires_running(self):
        with pytest.raises(InvalidTransition):
            FocusTimer(60).pause()


class TestCompletion:
    def test_tick_to_zero_completes_once(self):
        timer = FocusTimer(3)
        outcomes = []
        timer.on("completed", outcomes.append)
        timer.start()
        run(timer, 10)
        assert timer.state == TimerState.COMPLETED
        assert len(outcomes) == 1
        assert outcomes[0].time_left == 0
        assert outcomes[0].finished_early is False

    def test_finish_early(self):
        timer = FocusTimer(25 * 60)
        timer.start()
        run(timer, 10 * 60)
        outcome = timer.finish()
        assert outcome.finished_early is True
        assert outcome.time_left == 15 * 60
        assert outcome.spent_minutes == 10

    def test_finish_requires_elapsed_time(self):
        timer = FocusTimer(600)
        timer.start()
        with pytest.raises(InvalidTransition):
            timer.finish()

    def test_finish_from_paused(self):
        timer = FocusTimer(600)
        timer.start()
        run(timer, 120)
        timer.pause()
        assert timer.finish().spent_minutes == 2

    def test_finish_rejected_when_idle(self):
        with pytest.raises(InvalidTransition):
            FocusTimer(600).finish()


class TestSpentMinutes:
    @pytest.mark.parametrize(
        "initial,left,expected",
        [(1800, 1800 - 30, 1), (1800, 0, 30), (1800, 1800 - 119, 1), (1800, 1800 - 120, 2)],
    )
    def test_floor_with_minimum_one(self, initial, left, expected):
        assert spent_minutes(initial, left) == expected


class TestSetDuration:
    def test_before_start_replaces_duration(self):
        timer = FocusTimer(30 * 60)
        timer.set_duration(754)
        assert timer.initial_duration == 754
        assert timer.time_left == 754

    def test_preserves_elapsed_while_running(self):
        timer = FocusTimer(30 * 60)
        timer.start()
        run(timer, 100)
        timer.set_duration(1000)
        assert timer.initial_duration == 1000
        assert timer.time_left == 900
        assert timer.elapsed_seconds == 100

    def test_ignored_after_completion(self):
        timer = FocusTimer(2)
        timer.start()
        run(timer, 2)
        timer.set_duration(500)
        assert timer.time_left == 0

    def test_reset_returns_to_idle(self):
        timer = FocusTimer(60)
        timer.start()
        run(timer, 5)
        timer.reset(120)
        assert timer.state == TimerState.IDLE
        assert timer.time_left == 120


class TestFormatHms:
    def test_minutes_only(self):
        assert format_hms(125) == "02:05"

    def test_with_hours(self):
        assert format_hms(3725) == "1:02:05"

    def test_negative_clamped(self):
        assert format_hms(-3) == "00:00"
