"""Deferred release of objects that other threads may still be reading.

Objects are registered with ``defer``.  Before a round of work, ``stage``
moves everything registered so far into a staged batch and starts a new one.
Once every worker has moved past the old references, ``run`` releases the
staged batch.  ``close`` releases everything that is left.
"""

import threading
from collections import deque


class FreeLater:
    """Two-phase reclamation buffer for lock-free deletes."""

    def __init__(self):
        self._lock = threading.Lock()
        self._buffer = deque()
        self._staged = deque()
        self._closed = False

    @property
    def closed(self):
        return self._closed

    def defer(self, obj, release=None):
        """Register ``obj`` to have ``release(obj)`` called later.

        Without ``release`` the reference is simply dropped when released.
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("free-later buffer is closed")
            # Newest registrations come first, as in a prepend-only list.
            self._buffer.appendleft((obj, release))

    def stage(self):
        """Stage the buffered objects and start a fresh buffer.

        Does nothing while an earlier staged batch has not been run yet.
        """
        with self._lock:
            if self._staged:
                return
            self._staged, self._buffer = self._buffer, deque()

    def run(self):
        """Release every staged object, most recently registered first."""
        with self._lock:
            staged, self._staged = self._staged, deque()
        for obj, release in staged:
            if release is not None:
                release(obj)

    def close(self):
        """Release everything still registered and refuse new registrations."""
        self.run()
        self.stage()
        self.run()
        with self._lock:
            self._closed = True

    def pending(self):
        """Number of objects registered but not yet released."""
        with self._lock:
            return len(self._buffer) + len(self._staged)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()