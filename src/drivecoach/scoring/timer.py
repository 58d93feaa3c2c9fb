"""
Session timer - Elapsed driving time from an injected monotonic clock.

Provides:
- Clock protocol and the default monotonic clock
- Start/pause/resume/stop accumulation of active time
- Whole-second elapsed reading
"""

from typing import Protocol
import time


class Clock(Protocol):
    """Monotonic time source in seconds."""

    def now(self) -> float: ...


class MonotonicClock:
    """Clock backed by time.monotonic (unaffected by wall-clock changes)."""

    def now(self) -> float:
        return time.monotonic()


class SessionTimer:
    """Accumulates active session time.

    Time only accumulates between start/resume and pause/stop, so a
    paused or suspended session does not earn time. Readings are
    floored to whole seconds.
    """

    def __init__(self, clock: Clock | None = None):
        """Initialize timer.

        Args:
            clock: Time source (defaults to MonotonicClock)
        """
        self._clock = clock or MonotonicClock()
        self._accumulated: float = 0.0
        self._running_since: float | None = None

    @property
    def is_running(self) -> bool:
        return self._running_since is not None

    @property
    def elapsed(self) -> float:
        """Accumulated active time in seconds."""
        if self._running_since is None:
            return self._accumulated
        return self._accumulated + max(0.0, self._clock.now() - self._running_since)

    @property
    def elapsed_seconds(self) -> int:
        """Accumulated active time, 1-second resolution."""
        return int(self.elapsed)

    def start(self) -> None:
        """Reset to zero and start accumulating."""
        self._accumulated = 0.0
        self._running_since = self._clock.now()

    def pause(self) -> None:
        """Freeze accumulation. No-op when not running."""
        if self._running_since is None:
            return
        self._accumulated = self.elapsed
        self._running_since = None

    def resume(self) -> None:
        """Continue accumulating. No-op when already running."""
        if self._running_since is None:
            self._running_since = self._clock.now()

    def stop(self) -> int:
        """Freeze the timer.

        Returns:
            Final elapsed whole seconds
        """
        self.pause()
        return self.elapsed_seconds

    def reset(self) -> None:
        self._accumulated = 0.0
        self._running_since = None
