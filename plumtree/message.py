"""Application messages and the protocol messages exchanged between nodes.

Node identifiers and message identifiers may be any hashable values;
payloads may be any value.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

__all__ = [
    "Message",
    "GossipMessage",
    "IhaveMessage",
    "GraftMessage",
    "PruneMessage",
    "ProtocolMessage",
    "MAX_ROUND",
    "to_dict",
    "from_dict",
]

MAX_ROUND = 0xFFFF


def _check_round(value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_ROUND:
        raise ValueError(f"round must be an integer in 0..={MAX_ROUND}, got {value!r}")


@dataclass(frozen=True)
class Message:
    """Application message."""

    id: Hashable
    payload: Any


@dataclass(frozen=True)
class GossipMessage:
    """``GOSSIP`` message: carries a whole application message."""

    sender: Hashable
    message: Message
    round: int

    def __post_init__(self) -> None:
        _check_round(self.round)


@dataclass(frozen=True)
class IhaveMessage:
    """``IHAVE`` message: announces a message the sender holds."""

    sender: Hashable
    message_id: Hashable
    round: int
    realtime: bool

    def __post_init__(self) -> None:
        _check_round(self.round)


@dataclass(frozen=True)
class GraftMessage:
    """``GRAFT`` message: asks the receiver to push eagerly, optionally for one message."""

    sender: Hashable
    message_id: Optional[Hashable]
    round: int

    def __post_init__(self) -> None:
        _check_round(self.round)


@dataclass(frozen=True)
class PruneMessage:
    """``PRUNE`` message: asks the receiver to push lazily."""

    sender: Hashable


ProtocolMessage = Union[GossipMessage, IhaveMessage, GraftMessage, PruneMessage]


def to_dict(message: ProtocolMessage) -> dict:
    """Encode a protocol message as a tagged dictionary."""
    match message:
        case GossipMessage(sender=sender, message=app, round=rnd):
            body = {"sender": sender, "message": {"id": app.id, "payload": app.payload}, "round": rnd}
            return {"Gossip": body}
        case IhaveMessage(sender=sender, message_id=mid, round=rnd, realtime=realtime):
            return {"Ihave": {"sender": sender, "message_id": mid, "round": rnd, "realtime": realtime}}
        case GraftMessage(sender=sender, message_id=mid, round=rnd):
            return {"Graft": {"sender": sender, "message_id": mid, "round": rnd}}
        case PruneMessage(sender=sender):
            return {"Prune": {"sender": sender}}
    raise TypeError(f"not a protocol message: {message!r}")


def _field(body: Mapping, name: str) -> Any:
    try:
        return body[name]
    except KeyError:
        raise ValueError(f"missing field {name!r}") from None


def from_dict(data: Mapping) -> ProtocolMessage:
    """Decode a tagged dictionary produced by :func:`to_dict`."""
    if not isinstance(data, Mapping) or len(data) != 1:
        raise ValueError("a protocol message must be a mapping with exactly one tag")
    ((tag, body),) = data.items()
    if not isinstance(body, Mapping):
        raise ValueError(f"body of {tag!r} must be a mapping")
    if tag == "Gossip":
        app = _field(body, "message")
        if not isinstance(app, Mapping):
            raise ValueError("gossip message body must be a mapping")
        return GossipMessage(
            sender=_field(body, "sender"),
            message=Message(_field(app, "id"), _field(app, "payload")),
            round=_field(body, "round"),
        )
    if tag == "Ihave":
        realtime = _field(body, "realtime")
        if not isinstance(realtime, bool):
            raise ValueError("realtime must be a boolean")
        return IhaveMessage(
            sender=_field(body, "sender"),
            message_id=_field(body, "message_id"),
            round=_field(body, "round"),
            realtime=realtime,
        )
    if tag == "Graft":
        return GraftMessage(
            sender=_field(body, "sender"),
            message_id=body.get("message_id"),
            round=_field(body, "round"),
        )
    if tag == "Prune":
        return PruneMessage(sender=_field(body, "sender"))
    raise ValueError(f"unknown protocol message tag {tag!r}")