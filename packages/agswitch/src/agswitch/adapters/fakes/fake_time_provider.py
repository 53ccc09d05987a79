"""Fake time provider for deterministic timing tests."""

from __future__ import annotations


class FakeTimeProvider:
    """Fake implementation of TimeProvider.

    Time only moves when sleep() or advance() is called, so polling loops
    and durations can be asserted exactly.

    Example:
        >>> clock = FakeTimeProvider()
        >>> clock.sleep(10.0)
        >>> clock.get_time_seconds()
        10.0
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._sleeps: list[float] = []

    @property
    def sleeps(self) -> list[float]:
        """Durations passed to sleep(), in order (copy)."""
        return list(self._sleeps)

    def get_time_seconds(self) -> float:
        return self._now

    def sleep(self, seconds: float) -> None:
        self._sleeps.append(seconds)
        self.advance(seconds)

    def advance(self, seconds: float) -> None:
        """Move the clock forward without recording a sleep."""
        if seconds < 0:
            raise ValueError("cannot move time backwards")
        self._now += seconds
