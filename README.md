# plumtree

An implementation of the Plumtree broadcast protocol ("Epidemic Broadcast
Trees"). It does no I/O of its own. A `Node` takes in protocol messages and
neighbour changes and hands back actions. Each action is either a message to
send to a peer or an application message to deliver. You provide the
transport and decide how time passes.

## Install

```
pip install .
```

## Use

```python
from datetime import timedelta

from plumtree.action import Deliver, Send
from plumtree.message import Message
from plumtree.node import Node

nodes = {name: Node(name) for name in ("foo", "bar", "baz")}
for a, b in [("foo", "bar"), ("bar", "baz")]:
    nodes[a].handle_neighbor_up(b)
    nodes[b].handle_neighbor_up(a)

nodes["foo"].broadcast_message(Message(id=1, payload="hello"))

busy = True
while busy:
    busy = False
    for node in nodes.values():
        while (action := node.poll_action()) is not None:
            busy = True
            if isinstance(action, Send):
                nodes[action.destination].handle_protocol_message(action.message)
            elif isinstance(action, Deliver):
                print(node.id, "got", action.message.payload)
    for node in nodes.values():
        node.clock.tick(timedelta(milliseconds=100))
```

Your own code has to do the following:

- Call `poll_action()` until it returns `None`, and carry out each `Send` or
  `Deliver` it returns.
- Pass incoming protocol messages to `handle_protocol_message()`. It returns
  `False` and ignores the message if the sender is not a neighbour.
- Report peers with `handle_neighbor_up()` and `handle_neighbor_down()`.
- Move each node's clock forward with `node.clock.tick(...)` so that `IHAVE`
  timeouts can expire. `next_expiry_time()` tells you when the next one is
  due. A negative duration raises `ValueError`.
- Call `forget_message()` for messages you no longer need to keep.

A node exposes these read-only views:

- `id`
- `eager_push_peers`
- `lazy_push_peers`
- `messages`
- `waiting_messages()`

`NodeOptions` sets two values:

- `ihave_timeout`: 500 ms by default.
- `optimization_threshold`: 2 by default.

Pass it as `Node(node_id, options)`.

## Messages

`plumtree.message` defines these classes:

- `Message`, the application message.
- `GossipMessage`, `IhaveMessage`, `GraftMessage` and `PruneMessage`, the
  protocol messages.

Rounds must be integers from 0 to `MAX_ROUND` (65535). Any other value raises
`ValueError`. `to_dict` turns a protocol message into a plain tagged
dictionary, and `from_dict` turns one back, so that you can use whatever wire
encoding you choose. `from_dict` raises `ValueError` when the input is
malformed.

## Vector clocks

`plumtree.vclock.VectorClock` keeps one counter per node. It has these
methods:

- `increment()`
- `update_from(sender, timestamp)`
- `own_timestamp()`
- `compare_with(other)`, which returns a `VectorClockOrdering`: `BEFORE`,
  `AFTER`, `CONCURRENT` or `EQUAL`.

## What this package does not do

- It has no networking, transport or serialisation format.
- It has no peer membership protocol. You decide who the neighbours are.
- It has no command-line program or user interface.

## Tests

```
pip install .[test]
pytest
```