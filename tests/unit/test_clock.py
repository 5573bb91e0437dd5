from datetime import UTC, datetime

import pytest

from rabbitstress.clock import Clock, ManualClock


class TestClock:
    def test_now_is_utc(self):
        assert Clock().now().tzinfo is UTC

    def test_monotonic_never_goes_backwards(self):
        clock = Clock()
        first = clock.monotonic()
        assert clock.monotonic() >= first


class TestManualClock:
    def test_frozen_without_tick(self):
        clock = ManualClock()
        assert clock.monotonic() == clock.monotonic() == 0.0

    def test_tick_after_each_reading(self):
        clock = ManualClock(tick_s=0.5)
        assert [clock.monotonic() for _ in range(3)] == [0.0, 0.5, 1.0]

    def test_now_follows_elapsed_time(self):
        start = datetime(2024, 6, 1, tzinfo=UTC)
        clock = ManualClock(start=start)

        clock.advance(90)

        assert (clock.now() - start).total_seconds() == 90
        assert clock.monotonic() == 90

    def test_cannot_go_backwards(self):
        with pytest.raises(ValueError):
            ManualClock().advance(-1)

    def test_negative_tick_rejected(self):
        with pytest.raises(ValueError):
            ManualClock(tick_s=-0.1)
