"""Vector clocks for ordering events across nodes."""

from __future__ import annotations

import enum
from collections.abc import Hashable, Mapping
from types import MappingProxyType

__all__ = ["VectorClock", "VectorClockOrdering"]


class VectorClockOrdering(enum.Enum):
    """Relation of one vector clock to another."""

    BEFORE = "before"
    AFTER = "after"
    CONCURRENT = "concurrent"
    EQUAL = "equal"


class VectorClock:
    """A logical clock holding one counter per known node."""

    def __init__(self, node_id: Hashable) -> None:
        self._node_id = node_id
        self._timestamps: dict[Hashable, int] = {node_id: 0}

    @property
    def node_id(self) -> Hashable:
        """The node that owns this clock."""
        return self._node_id

    @property
    def timestamps(self) -> Mapping[Hashable, int]:
        """Read-only view of the counters, by node."""
        return MappingProxyType(self._timestamps)

    def update_from(self, sender: Hashable, sender_timestamp: int) -> None:
        """Raise the counter for ``sender`` to ``sender_timestamp`` if that is larger."""
        self._timestamps[sender] = max(self._timestamps.get(sender, 0), sender_timestamp)

    def increment(self) -> None:
        """Advance this node's own counter by one."""
        self._timestamps[self._node_id] = self._timestamps.get(self._node_id, 0) + 1

    def own_timestamp(self) -> int:
        """Return this node's own counter."""
        return self._timestamps.get(self._node_id, 0)

    def compare_with(self, other: VectorClock) -> VectorClockOrdering:
        """Classify this clock against ``other``."""
        mine, theirs = self._timestamps, other._timestamps

        self_is_greater = all(
            node in theirs and ts >= theirs[node] for node, ts in mine.items()
        ) and any(node in theirs and ts > theirs[node] for node, ts in mine.items())

        other_is_greater = all(
            node in mine and ts < mine[node] for node, ts in theirs.items()
        ) and any(node in mine and ts < mine[node] for node, ts in theirs.items())

        if self_is_greater and other_is_greater:
            return VectorClockOrdering.CONCURRENT
        if self_is_greater:
            return VectorClockOrdering.AFTER
        if other_is_greater:
            return VectorClockOrdering.BEFORE
        return VectorClockOrdering.EQUAL

    def __repr__(self) -> str:
        return f"VectorClock(node_id={self._node_id!r}, timestamps={self._timestamps!r})"