"""Ordered set kept in a linked list, with hazard-pointer reclamation.

Nodes are removed in two steps: the link leaving a node is first marked,
which deletes the node logically, and the node is then unlinked from its
predecessor. Unlinked nodes are retired. A retired node is handed to the
delete function once no thread protects it with a hazard pointer.
"""

import argparse
import sys
import threading
from dataclasses import dataclass
from typing import Any, Optional, Tuple

HP_MAX_THREADS = 128
HP_MAX_HPS = 5
HP_THRESHOLD_R = 0

HP_NEXT, HP_CURR, HP_PREV = 0, 1, 2

N_ELEMENTS = 128
N_THREADS = 128 // 2

_HEAD_RANK = -1
_TAIL_RANK = 1


def _discard(obj):
    return None


class HazardPointers:
    """Per-thread hazard pointer slots and retired-object lists."""

    def __init__(self, max_hps=0, deletefunc=None, max_threads=HP_MAX_THREADS):
        if max_hps < 0:
            raise ValueError("max_hps must not be negative")
        if max_threads <= 0:
            raise ValueError("max_threads must be positive")
        self.max_hps = max_hps or HP_MAX_HPS
        self.max_threads = max_threads
        self.max_retired = max_threads * self.max_hps
        self._deletefunc = deletefunc or _discard
        self._hazards = [[None] * self.max_hps for _ in range(max_threads)]
        self._retired = [[] for _ in range(max_threads)]
        self._local = threading.local()
        self._tid_lock = threading.Lock()
        self._next_tid = 0

    def _tid(self):
        tid = getattr(self._local, "tid", None)
        if tid is None:
            with self._tid_lock:
                if self._next_tid >= self.max_threads:
                    raise RuntimeError(
                        f"at most {self.max_threads} threads may use these hazard pointers"
                    )
                tid = self._next_tid
                self._next_tid += 1
            self._local.tid = tid
        return tid

    @property
    def retired_count(self):
        """Number of retired objects not yet deleted, over all threads."""
        return sum(len(rl) for rl in self._retired)

    def clear(self):
        """Clear every hazard pointer of the calling thread."""
        slots = self._hazards[self._tid()]
        for index in range(self.max_hps):
            slots[index] = None

    def protect(self, index, obj):
        """Protect ``obj`` in slot ``index`` of the calling thread; return it."""
        if not 0 <= index < self.max_hps:
            raise IndexError(f"hazard pointer index {index} out of range")
        self._hazards[self._tid()][index] = obj
        return obj

    def _is_protected(self, obj):
        return any(slot is obj for slots in self._hazards for slot in slots)

    def retire(self, obj):
        """Retire ``obj`` and delete every retired object no longer protected."""
        retired = self._retired[self._tid()]
        if len(retired) + 1 >= self.max_retired:
            raise RuntimeError("too many retired objects")
        retired.append(obj)
        if len(retired) < HP_THRESHOLD_R:
            return

        kept, freed = [], []
        for candidate in retired:
            (kept if self._is_protected(candidate) else freed).append(candidate)
        retired[:] = kept
        for candidate in freed:
            self._deletefunc(candidate)

    def destroy(self):
        """Delete every object still retired and clear all slots."""
        for slots, retired in zip(self._hazards, self._retired):
            for index in range(len(slots)):
                slots[index] = None
            pending, retired[:] = list(retired), []
            for obj in pending:
                self._deletefunc(obj)


@dataclass(eq=False)
class ListNode:
    """A list node; ``ref`` is the outgoing link as ``(next, marked)``."""

    key: Any
    rank: int = 0
    ref: Tuple[Optional["ListNode"], bool] = (None, False)
    alive: bool = True


def _less(node, key):
    return node.rank == _HEAD_RANK or (node.rank == 0 and node.key < key)


def _equal(node, key):
    return node.rank == 0 and node.key == key


class HazardList:
    """A concurrent sorted set of keys with lock-free style updates."""

    def __init__(self, max_threads=HP_MAX_THREADS):
        self._atomic = threading.Lock()
        self._count_lock = threading.Lock()
        self.inserts = 0
        self.deletes = 0
        self._tail = self._new_node(None, _TAIL_RANK)
        self._head = self._new_node(None, _HEAD_RANK)
        self._head.ref = (self._tail, False)
        self._hp = HazardPointers(3, self._destroy_node, max_threads)

    def _new_node(self, key, rank=0):
        node = ListNode(key, rank)
        with self._count_lock:
            self.inserts += 1
        return node

    def _destroy_node(self, node):
        if not node.alive:
            raise RuntimeError("list node destroyed twice")
        node.alive = False
        with self._count_lock:
            self.deletes += 1

    def _cas(self, node, expected, new):
        with self._atomic:
            cur_next, cur_mark = node.ref
            if cur_next is not expected[0] or cur_mark != expected[1]:
                return False
            node.ref = new
            return True

    @staticmethod
    def _links_to(prev, curr):
        nxt, marked = prev.ref
        return nxt is curr and not marked

    def _search(self, key):
        """One search attempt; None means it must start over."""
        hp = self._hp
        prev = self._head
        curr = hp.protect(HP_CURR, prev.ref[0])
        if not self._links_to(prev, curr):
            return None
        while True:
            nxt, marked = curr.ref
            hp.protect(HP_NEXT, nxt)
            now_next, now_mark = curr.ref
            if now_next is not nxt or now_mark != marked:
                return None
            if not self._links_to(prev, curr):
                return None
            if not marked:
                if not _less(curr, key):
                    return prev, curr, nxt, _equal(curr, key)
                prev = curr
                hp.protect(HP_PREV, curr)
            else:
                if not self._cas(prev, (curr, False), (nxt, False)):
                    return None
                hp.retire(curr)
            curr = nxt
            hp.protect(HP_CURR, nxt)

    def _find(self, key):
        while True:
            found = self._search(key)
            if found is not None:
                return found

    def insert(self, key):
        """Add ``key``; return False if it was already present."""
        node = self._new_node(key)
        while True:
            prev, curr, _nxt, found = self._find(key)
            if found:
                self._destroy_node(node)
                self._hp.clear()
                return False
            node.ref = (curr, False)
            if self._cas(prev, (curr, False), (node, False)):
                self._hp.clear()
                return True

    def delete(self, key):
        """Remove ``key``; return False if it was absent."""
        while True:
            prev, curr, nxt, found = self._find(key)
            if not found:
                self._hp.clear()
                return False
            if not self._cas(curr, (nxt, False), (nxt, True)):
                continue
            if self._cas(prev, (curr, False), (nxt, False)):
                self._hp.clear()
                self._hp.retire(curr)
            else:
                self._hp.clear()
            return True

    def __contains__(self, key):
        found = self._find(key)[3]
        self._hp.clear()
        return found

    def __iter__(self):
        node = self._head.ref[0]
        while node is not None and node.rank == 0:
            nxt, marked = node.ref
            if not marked:
                yield node.key
            node = nxt

    def destroy(self):
        """Destroy every node, including retired ones; not thread safe."""
        node = self._head
        while node is not None:
            following = node.ref[0]
            self._destroy_node(node)
            node = following
        self._hp.destroy()


def main(argv=None):
    """Run inserting and deleting threads against one list and report counts."""
    parser = argparse.ArgumentParser(description="Hazard-pointer list stress run.")
    parser.add_argument("--threads", type=int, default=N_THREADS)
    parser.add_argument("--elements", type=int, default=N_ELEMENTS)
    args = parser.parse_args(argv)
    if args.threads < 0 or args.elements < 0:
        parser.error("--threads and --elements must not be negative")

    n_threads, n_elements = args.threads, args.elements
    lst = HazardList(max_threads=max(HP_MAX_THREADS, n_threads + 1))

    def key_of(owner, i):
        return owner * n_elements + i + 1

    def worker(owner):
        op = lst.delete if owner & 1 else lst.insert
        for i in range(n_elements):
            op(key_of(owner, i))

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n_threads)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    for i in range(n_elements):
        for owner in range(n_threads):
            lst.delete(key_of(owner, i))

    lst.destroy()
    print(f"inserts = {lst.inserts}, deletes = {lst.deletes}", file=sys.stderr)
    return 0