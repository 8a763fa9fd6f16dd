"""Read-copy-update cells with deferred reclamation, plus a simple fence."""

import threading


class Fence:
    """A flag that readers can wait on until it is lowered.

    Raising the fence does not block; ``wait`` blocks while it is raised and
    ``unlock`` lowers it and wakes every waiter.
    """

    def __init__(self):
        self._cond = threading.Condition()
        self._locked = False

    def lock(self):
        """Raise the fence."""
        with self._cond:
            self._locked = True

    def unlock(self):
        """Lower the fence and wake all waiters."""
        with self._cond:
            self._locked = False
            self._cond.notify_all()

    def wait(self):
        """Block until the fence is lowered."""
        with self._cond:
            self._cond.wait_for(lambda: not self._locked)

    def is_locked(self):
        """Return True while the fence is raised."""
        return self._locked


class RcuSnapshot:
    """One published version of an Rcu value, reference counted.

    The Rcu cell holds one reference while the version is current; every
    ``Rcu.acquire`` adds one.  When the last reference is released the
    postponed callbacks run in the order they were registered.
    """

    def __init__(self, value):
        self.value = value
        self._refs = 1
        self._callbacks = []
        self._lock = threading.Lock()

    @property
    def refs(self):
        """Number of live references to this version."""
        return self._refs

    def _retain(self):
        with self._lock:
            if self._refs == 0:
                raise RuntimeError("snapshot already reclaimed")
            self._refs += 1

    def postpone(self, callback, *args):
        """Run ``callback(*args)`` once this version is no longer used."""
        with self._lock:
            if self._refs == 0:
                raise RuntimeError("snapshot already reclaimed")
            self._callbacks.append((callback, args))

    def release(self):
        """Drop one reference, reclaiming the version if it was the last."""
        with self._lock:
            if self._refs == 0:
                raise RuntimeError("snapshot released too many times")
            self._refs -= 1
            if self._refs:
                return
            callbacks, self._callbacks = self._callbacks, []
        for callback, args in callbacks:
            callback(*args)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.release()


class Rcu:
    """A cell whose value readers snapshot while a writer replaces it."""

    def __init__(self, value):
        self._current = RcuSnapshot(value)
        self._lock = threading.Lock()

    def _require_current(self):
        if self._current is None:
            raise RuntimeError("rcu cell has been destroyed")
        return self._current

    def acquire(self):
        """Take a reference to the current version."""
        with self._lock:
            snapshot = self._require_current()
            snapshot._retain()
            return snapshot

    def set(self, value):
        """Publish ``value``; the old version is reclaimed once unused."""
        new = RcuSnapshot(value)
        with self._lock:
            old = self._require_current()
            self._current = new
        old.release()

    def destroy(self):
        """Reclaim the current version; no snapshot may still be held."""
        with self._lock:
            snapshot = self._require_current()
            if snapshot.refs != 1:
                raise RuntimeError("rcu snapshot still in use")
            self._current = None
        snapshot.release()