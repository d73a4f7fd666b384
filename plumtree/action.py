"""Actions a node asks its host to carry out."""

from __future__ import annotations

from collections import deque
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Optional, Union

from plumtree.message import Message, ProtocolMessage

__all__ = ["Send", "Deliver", "Action", "ActionQueue"]


@dataclass(frozen=True)
class Send:
    """Send ``message`` to ``destination``; drop it silently if that fails."""

    destination: Hashable
    message: ProtocolMessage


@dataclass(frozen=True)
class Deliver:
    """Deliver ``message`` to the application."""

    message: Message


Action = Union[Send, Deliver]


class ActionQueue:
    """First-in, first-out queue of pending actions."""

    __slots__ = ("_actions",)

    def __init__(self) -> None:
        self._actions: deque[Action] = deque()

    def send(self, destination: Hashable, message: ProtocolMessage) -> None:
        """Queue a send action."""
        self._actions.append(Send(destination, message))

    def deliver(self, message: Message) -> None:
        """Queue a delivery action."""
        self._actions.append(Deliver(message))

    def pop(self) -> Optional[Action]:
        """Remove and return the oldest action, or ``None`` if there is none."""
        return self._actions.popleft() if self._actions else None

    def __len__(self) -> int:
        return len(self._actions)

    def __repr__(self) -> str:
        return f"ActionQueue({list(self._actions)!r})"