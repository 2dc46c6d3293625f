"""A single absolute time bound shared by every blocking step of a call."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

from hostlink.domain.errors import ControlTimeoutError

# Longest single poll slice. Waits are re-derived from the deadline after
# every slice, so a wakeup never extends the overall bound.
MAX_POLL_SLICE = 0.5


@dataclass(frozen=True)
class Deadline:
    """Absolute expiry computed once from a timeout.

    Every wait asks the deadline for its remaining budget instead of
    starting a fresh timer.
    """

    timeout: float
    expires_at: float
    clock: Callable[[], float] = field(default=time.monotonic, repr=False, compare=False)

    @classmethod
    def after(cls, timeout: float, clock: Callable[[], float] = time.monotonic) -> Deadline:
        return cls(timeout=timeout, expires_at=clock() + timeout, clock=clock)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self.clock())

    @property
    def expired(self) -> bool:
        return self.clock() >= self.expires_at

    def check(self, endpoint: str = "") -> None:
        """Raise ControlTimeoutError if the deadline has passed."""
        if self.expired:
            raise ControlTimeoutError(self.timeout, endpoint=endpoint)

    def poll_slice(self) -> float:
        """Seconds to wait in the next poll, never past the deadline."""
        return min(self.remaining(), MAX_POLL_SLICE)
