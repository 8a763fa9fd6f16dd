# concur

Small, self-contained concurrency building blocks for threaded Python
programs, with a few demonstration commands. Everything is pure Python and
uses only the standard library.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

| Module | Provides |
| --- | --- |
| `concur.hashing` | 32-bit Murmur-style mixing: `hash_rot`, `mhash_add`, `mhash_finish`, `hash_add`, `hash_finish`, `hash_2words`, `hash_int` |
| `concur.xorshift` | `XorShift32`, a seeded 32-bit xorshift generator (`set_seed`, `next_uint32`; a zero seed is taken from the clock) |
| `concur.pool` | `Pool`, a thread-safe pool of equally sized `bytearray` slots (`acquire`, `release`, `len()` of free slots), `PoolExhausted`, `align_up`, `is_pow2` |
| `concur.broadcast` | `Broadcast`, a bounded multi-publisher ring that overwrites its oldest message; `Subscription` and `Message` for readers |
| `concur.channel` | `Channel`, a Go-style channel, buffered or unbuffered, with `send`, `recv`, `try_send`, `try_recv`, `close`, and `ChannelClosed` |
| `concur.fiber` | `FiberGroup`, a bounded group of threads that yield cooperatively with `fiber_yield`; `FiberError`, `FiberLimitError` |
| `concur.coro` | Generator-based round-robin scheduling: `schedule`, `fib_task`, `count_task`, `fib_sequence` |
| `concur.rcu` | `Rcu`, `RcuSnapshot` (reference counted, with postponed callbacks) and `Fence` |
| `concur.cmap` | `CMap`, a hash map with snapshot readers and a single writer, that doubles its table as it grows; `CMapState`, `CMapNode` |
| `concur.free_later` | `FreeLater`, two-phase deferred release (`defer`, `stage`, `run`, `close`, `pending`) |
| `concur.hashmap` | `LockFreeHashMap`, a fixed-bucket map whose updates retry on contention, counting retries in `RetryStats` |
| `concur.http_request` | `parse_request`, `HttpRequest`, `HttpStatus`, `HttpMethod`, `ContentType`, `RequestError`, `status_reason` |
| `concur.httpd` | A threaded HTTP server: `serve`, `handle_connection`, `build_response_head`, `receive_timeout`, `ConnectionQueue` |
| `concur.hp_list` | `HazardList`, an ordered set in a linked list, with reclamation through `HazardPointers` |

## Examples

### Channels

```python
import threading
from concur.channel import Channel, ChannelClosed

ch = Channel(4)

def producer():
    for i in range(10):
        ch.send(i)

threading.Thread(target=producer).start()
print([ch.recv() for _ in range(10)])
ch.close()

try:
    ch.send(99)
except ChannelClosed:
    print("closed")
```

A capacity of `0` gives an unbuffered channel: `send` returns only once a
receiver has taken the item. After `close`, every `send` and `recv` raises
`ChannelClosed`, even if items are still buffered.

### Broadcast

```python
from concur.broadcast import Broadcast

bus = Broadcast(8, 64)          # depth (a power of two), largest message size
sub = bus.subscribe()
bus.publish(b"hello")
bus.publish(b"world")
for message in sub:
    print(message.payload, message.drops)
```

`publish` returns `False` when no buffer is free. A subscriber that falls
behind gets, on each `Message`, the number of messages it missed just
before it.

### Concurrent map with snapshots

```python
from concur.cmap import CMap
from concur.hashing import hash_int

cmap = CMap()
node = cmap.insert(42, hash_int(42, 0))
with cmap.snapshot() as state:
    print([n.value for n in state.find(hash_int(42, 0))])
cmap.remove(node)
print(len(cmap), cmap.utilization())
```

`find` yields every node in the hash's bucket; compare values to pick
the one you want.

### Hash map with deferred release

```python
from concur.free_later import FreeLater
from concur.hashmap import LockFreeHashMap

with FreeLater() as reclaimer:
    m = LockFreeHashMap(16, free_later=reclaimer, release=print)
    m.put("a", 1)
    m.put("a", 2)       # the old value 1 is deferred, not released yet
    print(m.get("a"), len(m), reclaimer.pending())
    reclaimer.stage()
    reclaimer.run()     # prints 1
```

### Hazard-pointer list

```python
from concur.hp_list import HazardList

lst = HazardList()
lst.insert(5)
lst.insert(3)
print(3 in lst, list(lst))
lst.delete(3)
lst.destroy()
```

### HTTP request parsing

```python
from concur.http_request import parse_request

request = parse_request("GET / HTTP/1.1\r\n\r\n", "/srv/www")
print(request.method, request.path)   # HttpMethod.GET /srv/www/index.html
```

A request that cannot be served raises `RequestError`, whose `status` is
the `HttpStatus` to answer with.

## Commands

- `concur-coro` runs three round-robin tasks, two printing Fibonacci
  numbers and one counting, and prints their interleaved output.
- `concur-fiber` runs a Fibonacci and a squares fiber side by side.
- `concur-hp-list [--threads N] [--elements N]` runs inserting and deleting
  threads against one `HazardList` and reports how many nodes were created
  and destroyed.
- `concur-httpd [--port PORT] [--root DIR] [--threads N]` starts the HTTP
  server on port 9000 by default, with `./resources` as the document root.

## Limitations

- The HTTP server answers only `GET` and `HEAD` for `/` and `/index.html`,
  serving `index.html` from the document root as `text`. Every other path
  gets `404 Not Found`; request headers are read but not interpreted. It is
  not a general static-file server.
- "Lock-free" structures here are written in the compare-and-swap style,
  but each swap is made atomic with a lock; they give correct results under
  threads, not lock-free performance.
- Fibers are ordinary threads; `fiber_yield` only gives up the processor.