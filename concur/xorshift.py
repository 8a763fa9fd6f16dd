"""A 32-bit xorshift pseudo-random generator."""

import time

_MASK32 = 0xFFFFFFFF


class XorShift32:
    """Xorshift32 generator; a zero seed is replaced with the current time."""

    def __init__(self, seed=0):
        self._state = 0
        self.set_seed(seed)

    @property
    def state(self):
        return self._state

    def set_seed(self, seed):
        """Reset the generator; zero means 'seed from the clock'."""
        seed &= _MASK32
        while not seed:
            seed = int(time.time()) & _MASK32
        self._state = seed

    def next_uint32(self):
        """Advance the generator and return the next 32-bit value."""
        x = self._state
        x ^= (x << 13) & _MASK32
        x ^= x >> 17
        x ^= (x << 5) & _MASK32
        self._state = x
        return x