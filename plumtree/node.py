"""The Plumtree node: epidemic broadcast over a self-repairing spanning tree."""

from __future__ import annotations

import dataclasses
from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from types import MappingProxyType
from typing import Any, Optional

from plumtree.action import Action, ActionQueue
from plumtree.message import (
    MAX_ROUND,
    GossipMessage,
    GraftMessage,
    IhaveMessage,
    Message,
    ProtocolMessage,
    PruneMessage,
)
from plumtree.missing import MissingMessages
from plumtree.time import Clock, NodeTime

__all__ = ["NodeOptions", "Node"]


@dataclass
class NodeOptions:
    """Tunable parameters of a :class:`Node`.

    ``ihave_timeout`` is how long an ``IHAVE`` announcement waits for the
    matching ``GOSSIP`` before a ``GRAFT`` is sent to its announcer.
    ``optimization_threshold`` is the round difference that triggers the
    tree optimisation step.
    """

    ihave_timeout: timedelta = field(default_factory=lambda: timedelta(milliseconds=500))
    optimization_threshold: int = 2


def _next_round(round_: int) -> int:
    return min(round_ + 1, MAX_ROUND)


class Node:
    """A Plumtree node.

    The host must poll actions with :meth:`poll_action` and carry them out,
    feed incoming messages to :meth:`handle_protocol_message`, report
    membership changes with :meth:`handle_neighbor_up` and
    :meth:`handle_neighbor_down`, advance :attr:`clock`, and call
    :meth:`forget_message` to bound memory use.
    """

    def __init__(self, node_id: Hashable, options: Optional[NodeOptions] = None) -> None:
        self._id = node_id
        self.options = options if options is not None else NodeOptions()
        self._eager: set[Hashable] = set()
        self._lazy: set[Hashable] = set()
        self._messages: dict[Hashable, Any] = {}
        self._missings = MissingMessages()
        self._actions = ActionQueue()
        self._clock = Clock()

    @property
    def id(self) -> Hashable:
        """The identifier of this node."""
        return self._id

    @property
    def eager_push_peers(self) -> frozenset:
        """Peers to which whole messages are pushed."""
        return frozenset(self._eager)

    @property
    def lazy_push_peers(self) -> frozenset:
        """Peers to which only announcements are pushed."""
        return frozenset(self._lazy)

    @property
    def messages(self) -> Mapping[Hashable, Any]:
        """Read-only view of the messages held, by identifier."""
        return MappingProxyType(self._messages)

    @property
    def clock(self) -> Clock:
        """The node's clock; advance it with ``clock.tick(...)``."""
        return self._clock

    def broadcast_message(self, message: Message) -> None:
        """Deliver ``message`` locally and diffuse it to the peers."""
        self._actions.deliver(message)
        gossip = GossipMessage(self._id, message, 0)
        self._eager_push(gossip)
        self._lazy_push(gossip)
        self._messages[message.id] = message.payload

    def waiting_messages(self) -> int:
        """Return roughly how many announced messages have not arrived yet."""
        return self._missings.waiting_messages()

    def forget_message(self, message_id: Hashable) -> bool:
        """Drop a held message; return whether it was held."""
        if message_id in self._messages:
            del self._messages[message_id]
            return True
        return False

    def poll_action(self) -> Optional[Action]:
        """Return the next action to carry out, or ``None``."""
        self._handle_expiration()
        return self._actions.pop()

    def handle_protocol_message(self, message: ProtocolMessage) -> bool:
        """Handle an incoming message; return ``False`` if its sender is not a neighbour."""
        if not self._is_known_node(message.sender):
            return False
        match message:
            case GossipMessage():
                self._handle_gossip(message)
            case IhaveMessage():
                self._handle_ihave(message)
            case GraftMessage():
                self._handle_graft(message)
            case PruneMessage():
                self._handle_prune(message)
            case _:
                raise TypeError(f"not a protocol message: {message!r}")
        return True

    def handle_neighbor_up(self, neighbor_node_id: Hashable) -> None:
        """Accept a new neighbour and announce every held message to it."""
        if self._is_known_node(neighbor_node_id) or neighbor_node_id == self._id:
            return
        for message_id in self._messages:
            self._actions.send(neighbor_node_id, IhaveMessage(self._id, message_id, 0, False))
        self._eager.add(neighbor_node_id)

    def handle_neighbor_down(self, neighbor_node_id: Hashable) -> None:
        """Remove a neighbour that went away, repairing the tree if needed."""
        if not self._is_known_node(neighbor_node_id):
            return
        self._eager.discard(neighbor_node_id)
        self._lazy.discard(neighbor_node_id)

        if not self._eager:
            latest = Clock.max()
            while (ihave := self._missings.pop_expired(latest)) is not None:
                if self._send_graft(ihave):
                    break

    def next_expiry_time(self) -> Optional[NodeTime]:
        """Return the nearest time an ``IHAVE`` timeout expires, or ``None``."""
        return self._missings.next_expiry_time()

    def _handle_expiration(self) -> None:
        while (ihave := self._missings.pop_expired(self._clock)) is not None:
            self._send_graft(ihave)

    def _send_graft(self, ihave: IhaveMessage) -> bool:
        if not self._is_known_node(ihave.sender):
            return False
        self._eager.add(ihave.sender)
        self._lazy.discard(ihave.sender)
        self._actions.send(ihave.sender, GraftMessage(self._id, ihave.message_id, ihave.round))
        return True

    def _handle_gossip(self, gossip: GossipMessage) -> None:
        if gossip.message.id in self._messages:
            self._eager.discard(gossip.sender)
            self._lazy.add(gossip.sender)
            self._actions.send(gossip.sender, PruneMessage(self._id))
            return

        self._actions.deliver(gossip.message)
        self._eager_push(gossip)
        self._lazy_push(gossip)
        self._eager.add(gossip.sender)
        self._lazy.discard(gossip.sender)

        self._optimize(gossip)
        self._missings.remove(gossip.message.id)
        self._messages[gossip.message.id] = gossip.message.payload

    def _handle_ihave(self, ihave: IhaveMessage) -> None:
        if ihave.message_id in self._messages:
            return
        if not self._eager:
            ihave = dataclasses.replace(ihave, realtime=True)
        self._missings.push(ihave, self._clock, self.options.ihave_timeout)

    def _handle_graft(self, graft: GraftMessage) -> None:
        self._eager.add(graft.sender)
        self._lazy.discard(graft.sender)
        message_id = graft.message_id
        if message_id is not None and message_id in self._messages:
            payload = self._messages[message_id]
            gossip = GossipMessage(self._id, Message(message_id, payload), graft.round)
            self._actions.send(graft.sender, gossip)

    def _handle_prune(self, prune: PruneMessage) -> None:
        self._eager.discard(prune.sender)
        self._lazy.add(prune.sender)

    def _eager_push(self, gossip: GossipMessage) -> None:
        round_ = _next_round(gossip.round)
        for peer in self._eager:
            if peer != gossip.sender:
                self._actions.send(peer, GossipMessage(self._id, gossip.message, round_))

    def _lazy_push(self, gossip: GossipMessage) -> None:
        ihave = IhaveMessage(self._id, gossip.message.id, _next_round(gossip.round), True)
        for peer in self._lazy:
            if peer != gossip.sender:
                self._actions.send(peer, ihave)

    def _optimize(self, gossip: GossipMessage) -> None:
        head = self._missings.get_ihave(gossip.message.id)
        if head is None:
            return
        ihave_round, ihave_owner = head
        if (
            gossip.round >= ihave_round
            and gossip.round - ihave_round >= self.options.optimization_threshold
        ):
            self._actions.send(ihave_owner, GraftMessage(self._id, None, ihave_round))
            self._actions.send(gossip.sender, PruneMessage(self._id))

    def _is_known_node(self, node_id: Hashable) -> bool:
        return node_id in self._eager or node_id in self._lazy

    def __repr__(self) -> str:
        return (
            f"Node(id={self._id!r}, options={self.options!r}, "
            f"eager_push_peers={self._eager!r}, lazy_push_peers={self._lazy!r}, "
            f"messages={len(self._messages)}, missings={self._missings!r}, "
            f"actions={self._actions!r}, clock={self._clock!r})"
        )