"""Fixed-capacity pool of reusable byte buffers."""

import threading

SLOT_ALIGN = 16


class PoolExhausted(Exception):
    """Raised when every slot of a pool is in use."""


def align_up(size, alignment):
    """Round ``size`` up to a multiple of the power-of-two ``alignment``."""
    return (size + alignment - 1) & ~(alignment - 1)


def is_pow2(value):
    """Return True if ``value`` is a positive power of two."""
    return value > 0 and value & (value - 1) == 0


class Pool:
    """A thread-safe LIFO pool of equally sized byte buffers."""

    def __init__(self, num_elts, elt_size):
        if elt_size <= 0:
            raise ValueError("element size must be positive")
        if num_elts < 0:
            raise ValueError("number of elements must not be negative")
        self.num_elts = num_elts
        self.elt_size = align_up(elt_size, SLOT_ALIGN)
        self._lock = threading.Lock()
        slots = [bytearray(self.elt_size) for _ in range(num_elts)]
        self._owned = {id(slot) for slot in slots}
        # Stack whose top is the first slot, so slots come out in order.
        self._free = list(reversed(slots))
        self._free_ids = set(self._owned)

    def acquire(self):
        """Take a free slot, raising PoolExhausted if none is left."""
        with self._lock:
            if not self._free:
                raise PoolExhausted("no free slots in pool")
            slot = self._free.pop()
            self._free_ids.discard(id(slot))
            return slot

    def release(self, slot):
        """Return ``slot`` to the pool."""
        key = id(slot)
        with self._lock:
            if key not in self._owned:
                raise ValueError("slot does not belong to this pool")
            if key in self._free_ids:
                raise ValueError("slot already released")
            self._free.append(slot)
            self._free_ids.add(key)

    def __len__(self):
        """Number of free slots."""
        with self._lock:
            return len(self._free)