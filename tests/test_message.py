import pytest

from plumtree.message import (
    MAX_ROUND,
    GossipMessage,
    GraftMessage,
    IhaveMessage,
    Message,
    PruneMessage,
    from_dict,
    to_dict,
)

SAMPLES = [
    GossipMessage("foo", Message(0, "hello"), 0),
    IhaveMessage("bar", 7, 3, True),
    IhaveMessage("bar", 7, 3, False),
    GraftMessage("baz", 5, 1),
    GraftMessage("baz", None, 2),
    PruneMessage("qux"),
]


@pytest.mark.parametrize("message", SAMPLES)
def test_round_trip(message):
    assert from_dict(to_dict(message)) == message


@pytest.mark.parametrize("message", SAMPLES)
def test_sender_is_kept(message):
    assert from_dict(to_dict(message)).sender == message.sender


def test_prune_encoding():
    assert to_dict(PruneMessage("foo")) == {"Prune": {"sender": "foo"}}


def test_gossip_encoding():
    encoded = to_dict(GossipMessage("foo", Message(1, None), 0))
    assert encoded == {"Gossip": {"sender": "foo", "message": {"id": 1, "payload": None}, "round": 0}}


def test_graft_without_message_id():
    encoded = to_dict(GraftMessage("foo", None, 0))
    assert encoded["Graft"]["message_id"] is None
    assert from_dict(encoded).message_id is None


def test_messages_compare_by_value():
    assert Message(1, "x") == Message(1, "x")
    assert not Message(1, "x") == Message(1, "y")


@pytest.mark.parametrize("bad_round", [-1, MAX_ROUND + 1, 1.5])
def test_round_out_of_range(bad_round):
    with pytest.raises(ValueError):
        GossipMessage("foo", Message(0, None), bad_round)


def test_max_round_accepted():
    assert IhaveMessage("foo", 0, MAX_ROUND, True).round == MAX_ROUND


def test_unknown_tag_rejected():
    with pytest.raises(ValueError):
        from_dict({"Hello": {"sender": "foo"}})


def test_multiple_tags_rejected():
    with pytest.raises(ValueError):
        from_dict({"Prune": {"sender": "a"}, "Graft": {"sender": "b"}})


def test_missing_field_rejected():
    with pytest.raises(ValueError):
        from_dict({"Ihave": {"sender": "foo", "round": 0, "realtime": True}})


def test_to_dict_rejects_non_protocol_message():
    with pytest.raises(TypeError):
        to_dict(Message(0, None))