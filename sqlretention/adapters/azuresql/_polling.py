"""
Deadline token and long-running operation wait helper.

Blocking calls take an explicit Deadline instead of relying on ambient
context; the only suspension point is waiting on an azure-core poller.
"""

import logging
import time
from typing import Optional

from azure.core.exceptions import AzureError
from azure.core.polling import LROPoller

from .errors import PolicyTimeoutError


log = logging.getLogger("sqlretention.azuresql")


class Deadline:
    """Absolute point in (monotonic) time after which blocking work is abandoned."""

    def __init__(self, seconds: float):
        if seconds <= 0:
            raise ValueError("Deadline must be positive")
        self.seconds = float(seconds)
        self._expires_at = time.monotonic() + self.seconds

    @classmethod
    def after_minutes(cls, minutes: float) -> "Deadline":
        return cls(minutes * 60)

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        return self.remaining() <= 0

    def __repr__(self) -> str:
        return f"Deadline(seconds={self.seconds:.0f}, remaining={self.remaining():.1f})"


def ensure_time_left(deadline: Deadline, context: str) -> float:
    """
    Return the seconds left on a deadline, or fail before issuing a call.

    Raises:
        PolicyTimeoutError: If the deadline has already passed
    """
    remaining = deadline.remaining()
    if remaining <= 0:
        raise PolicyTimeoutError(f"Deadline exceeded before {context}")
    return remaining


def wait_for_completion(poller: LROPoller, deadline: Deadline, context: str) -> Optional[object]:
    """
    Block until a long-running operation reaches a terminal state.

    Args:
        poller: Poller returned by a begin_* call
        deadline: Bound on the wait
        context: Human readable description used in error messages

    Returns:
        The operation's final resource, as reported by the poller

    Raises:
        PolicyTimeoutError: If the operation fails while waiting or is
            still running when the deadline elapses
    """
    remaining = ensure_time_left(deadline, f"waiting for completion of {context}")
    try:
        poller.wait(timeout=remaining)
        if not poller.done():
            raise PolicyTimeoutError(
                f"Timed out after {deadline.seconds:.0f}s waiting for completion of {context}"
            )
        return poller.result()
    except PolicyTimeoutError:
        log.warning("Wait for %s exceeded its deadline", context)
        raise
    except AzureError as e:
        log.warning("Wait for %s failed: %s", context, e)
        raise PolicyTimeoutError(f"Error waiting for completion of {context}: {e}") from e
