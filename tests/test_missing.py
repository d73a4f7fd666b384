from datetime import timedelta

from plumtree.message import IhaveMessage
from plumtree.missing import MissingMessages
from plumtree.time import Clock

TIMEOUT = timedelta(milliseconds=500)


def test_empty():
    missing = MissingMessages()
    assert missing.waiting_messages() == 0
    assert missing.next_expiry_time() is None
    assert missing.pop_expired(Clock()) is None
    assert missing.get_ihave(0) is None


def test_realtime_ihave_expires_immediately():
    clock = Clock()
    missing = MissingMessages()
    ihave = IhaveMessage("a", 1, 2, True)
    missing.push(ihave, clock, TIMEOUT)
    assert missing.waiting_messages() == 1
    assert missing.next_expiry_time() == clock.now()
    assert missing.pop_expired(clock) == ihave
    assert missing.pop_expired(clock) is None
    # The entry lingers until one more timeout passes.
    assert missing.waiting_messages() == 1
    clock.tick(TIMEOUT)
    assert missing.pop_expired(clock) is None
    assert missing.waiting_messages() == 0
    assert missing.next_expiry_time() is None


def test_buffered_ihave_waits_for_timeout():
    clock = Clock()
    missing = MissingMessages()
    ihave = IhaveMessage("a", 1, 0, False)
    missing.push(ihave, clock, TIMEOUT)
    assert missing.next_expiry_time() == clock.now() + TIMEOUT
    assert missing.pop_expired(clock) is None
    clock.tick(TIMEOUT)
    assert missing.pop_expired(clock) == ihave


def test_later_announcers_wait_longer():
    clock = Clock()
    missing = MissingMessages()
    first = IhaveMessage("a", 9, 1, True)
    second = IhaveMessage("b", 9, 4, True)
    missing.push(first, clock, TIMEOUT)
    missing.push(second, clock, TIMEOUT)
    assert missing.waiting_messages() == 1
    assert missing.get_ihave(9) == (1, "a")

    assert missing.pop_expired(clock) == first
    assert missing.pop_expired(clock) is None

    clock.tick(TIMEOUT)
    assert missing.pop_expired(clock) == second
    assert missing.get_ihave(9) == (4, "b")


def test_remove_cancels_pending():
    clock = Clock()
    missing = MissingMessages()
    missing.push(IhaveMessage("a", 1, 0, True), clock, TIMEOUT)
    missing.remove(1)
    assert missing.waiting_messages() == 0
    assert missing.pop_expired(clock) is None
    missing.remove(1)
    assert missing.waiting_messages() == 0


def test_stale_entry_items_are_ignored_after_readding():
    clock = Clock()
    missing = MissingMessages()
    first = IhaveMessage("a", 1, 0, True)
    missing.push(first, clock, TIMEOUT)
    assert missing.pop_expired(clock) == first
    missing.remove(1)

    again = IhaveMessage("b", 1, 0, False)
    missing.push(again, clock, TIMEOUT)
    clock.tick(TIMEOUT)
    assert missing.pop_expired(clock) == again
    assert missing.waiting_messages() == 1

    clock.tick(TIMEOUT)
    assert missing.pop_expired(clock) is None
    assert missing.waiting_messages() == 0


def test_max_clock_pops_everything():
    clock = Clock()
    missing = MissingMessages()
    ihaves = [IhaveMessage(sender, 5, 0, False) for sender in ("a", "b", "c")]
    for ihave in ihaves:
        missing.push(ihave, clock, TIMEOUT)
    popped = []
    while (ihave := missing.pop_expired(Clock.max())) is not None:
        popped.append(ihave)
    assert popped == ihaves
    assert missing.waiting_messages() == 0


def test_distinct_messages_tracked_separately():
    clock = Clock()
    missing = MissingMessages()
    missing.push(IhaveMessage("a", 1, 0, False), clock, TIMEOUT)
    missing.push(IhaveMessage("a", 2, 3, False), clock, TIMEOUT)
    assert missing.waiting_messages() == 2
    assert missing.get_ihave(2) == (3, "a")
    clock.tick(TIMEOUT)
    ids = {missing.pop_expired(clock).message_id, missing.pop_expired(clock).message_id}
    assert ids == {1, 2}