"""Node-local logical clock and time."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

__all__ = ["Clock", "NodeTime"]


@dataclass(frozen=True, order=True, slots=True)
class NodeTime:
    """Elapsed logical time since a clock was created."""

    elapsed: timedelta

    def as_duration(self) -> timedelta:
        """Return this time as a duration since the clock's creation."""
        return self.elapsed

    def __add__(self, other: timedelta) -> NodeTime:
        if not isinstance(other, timedelta):
            return NotImplemented
        return NodeTime(self.elapsed + other)


class Clock:
    """Node-local clock that starts at zero and advances only through :meth:`tick`."""

    __slots__ = ("_elapsed",)

    def __init__(self) -> None:
        self._elapsed = timedelta(0)

    @classmethod
    def max(cls) -> Clock:
        """Return a clock standing at the largest representable time."""
        clock = cls()
        clock._elapsed = timedelta.max
        return clock

    def now(self) -> NodeTime:
        """Return the current time of the clock."""
        return NodeTime(self._elapsed)

    def tick(self, duration: timedelta) -> None:
        """Advance the clock by ``duration``, which must not be negative."""
        if duration < timedelta(0):
            raise ValueError("a clock cannot move backwards")
        self._elapsed += duration

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Clock):
            return NotImplemented
        return self._elapsed == other._elapsed

    def __hash__(self) -> int:
        return hash(self._elapsed)

    def __repr__(self) -> str:
        return f"Clock({self._elapsed!r})"