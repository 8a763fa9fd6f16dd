"""Concurrent hash map: many readers and a single writer, RCU-resized."""

from dataclasses import dataclass, field
from typing import Any, Optional

from .rcu import Fence, Rcu

MAP_INITIAL_SIZE = 512

_MASK32 = 0xFFFFFFFF


@dataclass(eq=False)
class CMapNode:
    """An entry of a CMap: a value and its 32-bit hash."""

    value: Any
    hash: int
    next: Optional["CMapNode"] = field(default=None, repr=False)


class _Table:
    """A bucket array of singly linked node chains."""

    def __init__(self, entry_num):
        self.buckets = [None] * entry_num
        self.max = entry_num - 1
        self.count = 0
        self.utilization = 0
        self.fence = Fence()

    def link(self, node):
        index = node.hash & self.max
        node.next = self.buckets[index]
        if node.next is None:
            self.utilization += 1
        self.buckets[index] = node

    def unlink(self, node):
        index = node.hash & self.max
        prev = None
        cur = self.buckets[index]
        while cur is not None:
            if cur is node:
                if prev is None:
                    self.buckets[index] = node.next
                else:
                    prev.next = node.next
                if self.buckets[index] is None:
                    self.utilization -= 1
                return True
            prev, cur = cur, cur.next
        return False

    def wait_fence(self):
        while self.fence.is_locked():
            self.fence.wait()


def _walk(node):
    # Fetch the successor before yielding so the current node may be removed.
    while node is not None:
        following = node.next
        yield node
        node = following


class CMapState:
    """A snapshot of a CMap for lookups and iteration; release when done."""

    def __init__(self, snapshot):
        self._snapshot = snapshot
        self._table = snapshot.value

    def find(self, hash_):
        """Yield the nodes in the bucket of ``hash_``.

        Nodes with other hashes may share the bucket; callers compare values.
        """
        table = self._table
        table.wait_fence()
        yield from _walk(table.buckets[hash_ & _MASK32 & table.max])

    def __iter__(self):
        table = self._table
        table.wait_fence()
        for head in table.buckets:
            yield from _walk(head)

    def release(self):
        """Give the snapshot back."""
        self._snapshot.release()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.release()


class CMap:
    """Hash map with lock-free readers and one concurrent writer.

    The table doubles once the count exceeds twice its highest bucket index;
    the old table is rehashed into the new one when its last reader leaves,
    and readers of the new table wait until then.
    """

    def __init__(self):
        self._rcu = Rcu(_Table(MAP_INITIAL_SIZE))

    def insert(self, value, hash_):
        """Insert ``value`` under ``hash_`` and return its new node."""
        node = CMapNode(value, hash_ & _MASK32)
        with self._rcu.acquire() as snap:
            table = snap.value
            table.link(node)
            table.count += 1
            expand = table.count > table.max * 2
        if expand:
            self._expand()
        return node

    def _expand(self):
        snap = self._rcu.acquire()
        old = snap.value
        while old.fence.is_locked():
            snap.release()
            old.fence.wait()
            snap = self._rcu.acquire()
            old = snap.value

        new = _Table((old.max + 1) * 2)
        new.count = old.count
        new.fence.lock()
        snap.postpone(self._rehash, old, new)
        snap.release()
        self._rcu.set(new)

    @staticmethod
    def _rehash(old, new):
        for head in old.buckets:
            for node in _walk(head):
                new.link(node)
        new.fence.unlock()

    def remove(self, node):
        """Remove ``node`` if present and return the resulting count."""
        with self._rcu.acquire() as snap:
            table = snap.value
            if table.unlink(node):
                table.count -= 1
            return table.count

    def __len__(self):
        with self._rcu.acquire() as snap:
            return snap.value.count

    def utilization(self):
        """Fraction of buckets holding at least one node."""
        with self._rcu.acquire() as snap:
            table = snap.value
            return table.utilization / (table.max + 1)

    def snapshot(self):
        """Acquire a CMapState for lookups and iteration."""
        return CMapState(self._rcu.acquire())

    def destroy(self):
        """Tear the map down; no snapshot may still be held."""
        self._rcu.destroy()