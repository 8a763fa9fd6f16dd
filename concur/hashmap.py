"""Hash map with chained buckets updated by compare-and-swap."""

import threading
from dataclasses import dataclass


@dataclass
class RetryStats:
    """How often each kind of compare-and-swap had to be retried."""

    put_retries: int = 0
    put_replace_fail: int = 0
    put_head_fail: int = 0
    del_fail: int = 0
    del_fail_new_head: int = 0


class _Node:
    __slots__ = ("key", "value", "next")

    def __init__(self, key, value):
        self.key = key
        self.value = value
        self.next = None


class LockFreeHashMap:
    """A fixed-bucket hash map whose updates retry on contention.

    Every update reads a bucket chain, prepares the change and publishes it
    with a single compare-and-swap on a bucket head or a node link.  Values
    displaced by ``put`` or ``delete`` are handed to ``free_later`` (if
    given) together with ``release``, so readers may keep using them.
    """

    def __init__(self, n_buckets, hash_func=hash, free_later=None, release=None):
        if n_buckets <= 0:
            raise ValueError("n_buckets must be positive")
        self.n_buckets = n_buckets
        self._hash = hash_func
        self._free_later = free_later
        self._release = release
        self._buckets = [None] * n_buckets
        self._length = 0
        self._atomic = threading.Lock()
        self.stats = RetryStats()

    def _index(self, key):
        return self._hash(key) % self.n_buckets

    def _cas_head(self, index, expected, new, delta=0):
        with self._atomic:
            if self._buckets[index] is not expected:
                return False
            self._buckets[index] = new
            self._length += delta
            return True

    def _cas_next(self, node, expected, new, delta=0):
        with self._atomic:
            if node.next is not expected:
                return False
            node.next = new
            self._length += delta
            return True

    def _count(self, name):
        with self._atomic:
            setattr(self.stats, name, getattr(self.stats, name) + 1)

    def _retire(self, node):
        if self._free_later is not None:
            self._free_later.defer(node.value, self._release)

    def _find(self, index, key):
        prev = None
        node = self._buckets[index]
        while node is not None and node.key != key:
            prev, node = node, node.next
        return prev, node

    def get(self, key):
        """Return the value stored under ``key``, or None."""
        _, node = self._find(self._index(key), key)
        return None if node is None else node.value

    def put(self, key, value):
        """Store ``value`` under ``key``; return True if a value was replaced."""
        index = self._index(key)
        new = None
        while True:
            head = self._buckets[index]
            prev, match = self._find(index, key)
            if new is None:
                new = _Node(key, value)

            if match is not None:
                new.next = match.next
                if prev is not None:
                    if self._cas_next(prev, match, new):
                        self._retire(match)
                        return True
                    self._count("put_replace_fail")
                else:
                    if self._cas_head(index, match, new):
                        self._retire(match)
                        return True
                    self._count("put_head_fail")
            else:
                new.next = head
                if self._cas_head(index, head, new, delta=1):
                    return False
                self._count("put_retries")

    def delete(self, key):
        """Remove ``key``; return True if it was present."""
        index = self._index(key)
        while True:
            prev, match = self._find(index, key)
            if match is None:
                return False
            if prev is not None:
                if self._cas_next(prev, match, match.next, delta=-1):
                    self._retire(match)
                    return True
                self._count("del_fail")
            else:
                if self._cas_head(index, match, match.next, delta=-1):
                    self._retire(match)
                    return True
                self._count("del_fail_new_head")

    def __len__(self):
        with self._atomic:
            return self._length