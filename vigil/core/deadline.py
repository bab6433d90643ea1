"""Global wall-clock deadline for a single vigil invocation.

A Deadline is armed at most once, from the --timeout flag or the
[client] timeout setting, and then threaded through everything that
waits: the connection retry loop and the server launcher. Every blocking
wait goes through it so that no sleep can run past the deadline unnoticed.
"""

import logging
import math
import time
from collections.abc import Callable

from vigil.core.errors import timeout_exceeded_error

logger = logging.getLogger(__name__)


class Deadline:
    """Set-once deadline that gates every blocking wait.

    Uses a monotonic clock, so adjusting the system time cannot shorten or
    extend an armed deadline.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleeper: Callable[[float], None] = time.sleep,
    ) -> None:
        """Create an unarmed (unbounded) deadline.

        Args:
            clock: Returns the current time in seconds.
            sleeper: Blocks for the given number of seconds.
        """
        self._clock = clock
        self._sleeper = sleeper
        self._expires_at: float | None = None

    @classmethod
    def after(cls, seconds: int | None, **kwargs) -> "Deadline":
        """Create a deadline armed `seconds` from now (unbounded if 0 or None)."""
        deadline = cls(**kwargs)
        if seconds:
            deadline.arm(seconds)
        return deadline

    @property
    def armed(self) -> bool:
        return self._expires_at is not None

    def arm(self, seconds: int) -> None:
        """Arm the deadline `seconds` from now.

        Non-positive values leave the deadline unbounded. Once armed, later
        calls are ignored: the deadline is never moved.

        Args:
            seconds: Maximum seconds the invocation may take.
        """
        if seconds <= 0:
            return
        if self._expires_at is not None:
            logger.warning("Deadline already armed; ignoring new timeout of %ss", seconds)
            return
        self._expires_at = self._clock() + seconds
        logger.debug(f"Deadline armed for {seconds}s")

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when unbounded."""
        if self._expires_at is None:
            return None
        return self._expires_at - self._clock()

    def check(self) -> None:
        """Exit with the timeout error if the deadline has passed.

        Raises:
            VigilCliError: With ExitCode.TIMEOUT once the deadline is exceeded.
        """
        if self._expires_at is not None and self._clock() > self._expires_at:
            timeout_exceeded_error()

    def sleep(self, seconds: int) -> None:
        """Sleep for `seconds` unless that would reach the deadline.

        When the whole-second time left is not more than the requested
        sleep, the timeout error is raised immediately instead of sleeping.

        Args:
            seconds: Seconds to sleep.

        Raises:
            VigilCliError: With ExitCode.TIMEOUT if the sleep would not
                finish before the deadline.
        """
        if self._expires_at is not None:
            remaining = math.ceil(self._expires_at - self._clock())
            if remaining <= seconds:
                timeout_exceeded_error()
        self._sleeper(seconds)
