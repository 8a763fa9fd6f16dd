"""Multi-publisher, multi-subscriber broadcast ring with drop detection."""

import threading
from dataclasses import dataclass
from typing import NamedTuple, Optional

from .pool import Pool, PoolExhausted, is_pow2

ESTIMATED_PUBLISHERS = 16


@dataclass(frozen=True)
class Message:
    """A received message and how many were missed just before it."""

    payload: bytes
    drops: int = 0


class _Ref(NamedTuple):
    tag: int
    buf: Optional[bytearray]
    size: int


_UNUSED = _Ref(0, None, 0)


class Broadcast:
    """A ring of ``depth`` messages; the oldest is overwritten when full."""

    def __init__(self, depth, max_msg_size):
        if not is_pow2(depth):
            raise ValueError("depth must be a power of two")
        if max_msg_size <= 0:
            raise ValueError("max_msg_size must be positive")
        self.depth = depth
        self.max_msg_size = max_msg_size
        self._mask = depth - 1
        self._pool = Pool(depth + ESTIMATED_PUBLISHERS, max_msg_size)
        self._slots = [_UNUSED] * depth
        # Index 0 marks an unused slot, so counting starts at 1.
        self._head = 1
        self._tail = 1
        self._lock = threading.Lock()

    def publish(self, msg):
        """Append ``msg``; return False if no buffer was available."""
        payload = bytes(msg)
        if len(payload) > self.max_msg_size:
            raise ValueError("message larger than max_msg_size")
        try:
            buf = self._pool.acquire()
        except PoolExhausted:
            return False
        buf[: len(payload)] = payload

        with self._lock:
            index = self._tail & self._mask
            current = self._slots[index]
            while self._head <= current.tag:
                self._drop_head()
            self._slots[index] = _Ref(self._tail, buf, len(payload))
            self._tail += 1
        return True

    def subscribe(self):
        """Start a subscription at the oldest retained message."""
        with self._lock:
            return Subscription(self, self._head)

    def _drop_head(self):
        ref = self._slots[self._head & self._mask]
        self._head += 1
        if ref.buf is not None:
            self._pool.release(ref.buf)

    def _read_from(self, idx):
        drops = 0
        with self._lock:
            while idx < self._tail:
                ref = self._slots[idx & self._mask]
                expected = idx
                idx += 1
                if ref.tag != expected:
                    drops += 1
                    continue
                return idx, Message(bytes(ref.buf[: ref.size]), drops)
        return idx, None


class Subscription:
    """A reader's position in a Broadcast."""

    def __init__(self, broadcast, start):
        self._broadcast = broadcast
        self._idx = start

    def next(self):
        """Return the next Message, or None when caught up."""
        self._idx, message = self._broadcast._read_from(self._idx)
        return message

    def __iter__(self):
        while (message := self.next()) is not None:
            yield message