"""Bookkeeping of announced (``IHAVE``) messages that have not yet arrived."""

from __future__ import annotations

import heapq
import itertools
from collections.abc import Hashable
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Union

from plumtree.message import IhaveMessage
from plumtree.time import Clock, NodeTime

__all__ = ["MissingMessages"]


@dataclass
class _IhaveEntry:
    seqno: int
    head_round: int
    head_owner: Hashable
    owners: int
    next_expiry_time: NodeTime


@dataclass(frozen=True)
class _MessageItem:
    entry_seqno: int
    ihave: IhaveMessage

    @property
    def message_id(self) -> Hashable:
        return self.ihave.message_id


@dataclass(frozen=True)
class _EntryItem:
    entry_seqno: int
    message_id: Hashable


_QueueItem = Union[_MessageItem, _EntryItem]


class MissingMessages:
    """Timeout queue of ``IHAVE`` announcements, grouped by message identifier."""

    def __init__(self) -> None:
        self._queue: list[tuple[NodeTime, int, _QueueItem]] = []
        self._order = itertools.count()
        self._ihaves: dict[Hashable, _IhaveEntry] = {}
        self._entry_seqno = 0

    def _schedule(self, expiry_time: NodeTime, item: _QueueItem) -> None:
        heapq.heappush(self._queue, (expiry_time, next(self._order), item))

    def push(self, ihave: IhaveMessage, clock: Clock, timeout: timedelta) -> None:
        """Record an announcement; each further announcer waits one more ``timeout``."""
        entry = self._ihaves.get(ihave.message_id)
        if entry is None:
            expiry_time = clock.now()
            if not ihave.realtime:
                expiry_time = expiry_time + timeout
            entry = _IhaveEntry(
                seqno=self._entry_seqno,
                head_round=ihave.round,
                head_owner=ihave.sender,
                owners=0,
                next_expiry_time=expiry_time,
            )
            self._ihaves[ihave.message_id] = entry

        expiry_time = entry.next_expiry_time
        entry.next_expiry_time = entry.next_expiry_time + timeout
        entry.owners += 1
        if entry.owners == 1:
            self._entry_seqno += 1

        self._schedule(expiry_time, _MessageItem(entry.seqno, ihave))

    def pop_expired(self, clock: Clock) -> Optional[IhaveMessage]:
        """Return the next announcement whose timeout has passed, or ``None``."""
        now = clock.now()
        while self._queue and self._queue[0][0] <= now:
            _, _, item = heapq.heappop(self._queue)
            entry = self._ihaves.get(item.message_id)
            if entry is None or entry.seqno != item.entry_seqno:
                # The message arrived, or was forgotten and announced afresh.
                continue

            if isinstance(item, _MessageItem):
                if entry.owners == 0:
                    raise AssertionError("announcement popped for an entry without owners")
                ihave = item.ihave
                entry.owners -= 1
                entry.head_round = ihave.round
                entry.head_owner = ihave.sender
                if entry.owners == 0:
                    self._schedule(
                        entry.next_expiry_time, _EntryItem(entry.seqno, ihave.message_id)
                    )
                return ihave

            if entry.owners == 0:
                del self._ihaves[item.message_id]
        return None

    def remove(self, message_id: Hashable) -> None:
        """Drop every announcement of ``message_id``."""
        self._ihaves.pop(message_id, None)

    def waiting_messages(self) -> int:
        """Return how many distinct messages are being waited for."""
        return len(self._ihaves)

    def next_expiry_time(self) -> Optional[NodeTime]:
        """Return the earliest pending expiry time, or ``None`` if nothing is queued."""
        return self._queue[0][0] if self._queue else None

    def get_ihave(self, message_id: Hashable) -> Optional[tuple[int, Hashable]]:
        """Return ``(round, owner)`` of the head announcement of ``message_id``."""
        entry = self._ihaves.get(message_id)
        if entry is None:
            return None
        return entry.head_round, entry.head_owner

    def __repr__(self) -> str:
        return (
            f"MissingMessages(queued={len(self._queue)}, "
            f"waiting={len(self._ihaves)}, entry_seqno={self._entry_seqno})"
        )