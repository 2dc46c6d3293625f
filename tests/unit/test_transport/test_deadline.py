"""Tests for the shared call deadline."""

from __future__ import annotations

import pytest

from hostlink.domain.errors import ControlTimeoutError
from hostlink.transport.deadline import MAX_POLL_SLICE, Deadline


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestDeadline:
    def test_remaining_counts_down(self) -> None:
        clock = FakeClock()
        deadline = Deadline.after(5.0, clock=clock)
        clock.now += 2.0
        assert deadline.remaining() == pytest.approx(3.0)
        assert not deadline.expired

    def test_remaining_never_negative(self) -> None:
        clock = FakeClock()
        deadline = Deadline.after(1.0, clock=clock)
        clock.now += 10.0
        assert deadline.remaining() == 0.0
        assert deadline.expired

    def test_poll_slice_capped(self) -> None:
        clock = FakeClock()
        deadline = Deadline.after(30.0, clock=clock)
        assert deadline.poll_slice() == MAX_POLL_SLICE
        clock.now += 29.8
        assert deadline.poll_slice() == pytest.approx(0.2)

    def test_check_raises_with_bound(self) -> None:
        clock = FakeClock()
        deadline = Deadline.after(10.0, clock=clock)
        deadline.check("/tmp/x.sock")
        clock.now += 10.0
        with pytest.raises(ControlTimeoutError) as exc_info:
            deadline.check("/tmp/x.sock")
        assert exc_info.value.seconds == 10.0
        assert str(exc_info.value) == "timed out after 10s"
        assert exc_info.value.endpoint == "/tmp/x.sock"
