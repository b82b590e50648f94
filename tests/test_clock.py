"""Tests for the Clock module."""

import pytest
from vm8.clock import Clock, CLOCK_HZ


class FakeTime:
    """Manually advanced time source."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class TestClock:
    """Clock pacing tests."""

    def test_default_period(self):
        """16 Hz gives a 62.5 ms period."""
        assert CLOCK_HZ == 16
        assert Clock().period == pytest.approx(0.0625)

    def test_sleeps_remaining_budget(self):
        t = FakeTime()
        clock = Clock(now=t, sleep=t.sleep)

        def work():
            t.now += 0.02
            return "done"

        assert clock.run_cycle(work) == "done"
        assert t.sleeps == [pytest.approx(0.0425)]
        assert t.now == pytest.approx(0.0625)

    def test_overrun_does_not_sleep_or_catch_up(self):
        t = FakeTime()
        clock = Clock(now=t, sleep=t.sleep)

        def slow():
            t.now += 0.1

        def fast():
            t.now += 0.01

        clock.run_cycle(slow)
        clock.run_cycle(fast)
        assert t.sleeps == [pytest.approx(0.0525)]
        assert clock.overruns == 1

    def test_disabled_clock_never_sleeps(self):
        t = FakeTime()
        clock = Clock(enabled=False, now=t, sleep=t.sleep)
        clock.run_cycle(lambda: None)
        assert t.sleeps == []

    def test_invalid_frequency(self):
        with pytest.raises(ValueError):
            Clock(hz=0)
