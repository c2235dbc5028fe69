"""
Consecutive-error circuit breaker used by the transport loops.
"""
from enum import Enum

MAX_CONSECUTIVE_ERRORS = 10


class BreakerState(Enum):
    ACCEPTING = "accepting"            # Last operation succeeded (or none yet)
    ERROR_COUNTING = "error_counting"  # One or more failures since the last success
    CLOSED = "closed"                  # Threshold reached, the loop must stop


class ErrorBreaker:
    """
    Counts sequential failed accept/receive operations.

    Any success resets the count. Once `threshold` failures happen in a row
    the breaker closes for good; later successes do not reopen it.
    """

    def __init__(self, threshold=MAX_CONSECUTIVE_ERRORS):
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        self.threshold = threshold
        self.errors = 0
        self.state = BreakerState.ACCEPTING

    @property
    def closed(self):
        return self.state is BreakerState.CLOSED

    def record_success(self):
        if self.closed:
            return
        self.errors = 0
        self.state = BreakerState.ACCEPTING

    def record_failure(self):
        """Count one failure. Returns True when this failure closed the breaker."""
        if self.closed:
            return False
        self.errors += 1
        if self.errors >= self.threshold:
            self.state = BreakerState.CLOSED
            return True
        self.state = BreakerState.ERROR_COUNTING
        return False
