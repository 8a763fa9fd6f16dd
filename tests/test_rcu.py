import threading

import pytest

from concur.rcu import Fence, Rcu, RcuSnapshot


def test_acquire_returns_current_value():
    cell = Rcu("first")
    with cell.acquire() as snap:
        assert snap.value == "first"
        assert snap.refs == 2
    assert cell.acquire().value == "first"


def test_set_replaces_value_and_reclaims_old_immediately_without_readers():
    cell = Rcu("old")
    reclaimed = []
    with cell.acquire() as snap:
        snap.postpone(reclaimed.append, "old-gone")
    assert reclaimed == []
    cell.set("new")
    assert reclaimed == ["old-gone"]
    with cell.acquire() as snap:
        assert snap.value == "new"


def test_reclamation_waits_for_outstanding_reader():
    cell = Rcu(1)
    reclaimed = []
    reader = cell.acquire()
    reader.postpone(reclaimed.append, 1)
    cell.set(2)
    assert reclaimed == []
    assert reader.value == 1
    reader.release()
    assert reclaimed == [1]


def test_callbacks_run_in_registration_order():
    snap = RcuSnapshot(None)
    order = []
    snap.postpone(order.append, "a")
    snap.postpone(order.append, "b")
    snap.postpone(order.append, "c")
    snap.release()
    assert order == ["a", "b", "c"]


def test_release_too_many_times_raises():
    snap = RcuSnapshot(None)
    snap.release()
    with pytest.raises(RuntimeError):
        snap.release()


def test_postpone_after_reclaim_raises():
    snap = RcuSnapshot(None)
    snap.release()
    with pytest.raises(RuntimeError):
        snap.postpone(print)


def test_destroy_runs_callbacks_and_disables_cell():
    cell = Rcu("v")
    ran = []
    with cell.acquire() as snap:
        snap.postpone(ran.append, "done")
    cell.destroy()
    assert ran == ["done"]
    with pytest.raises(RuntimeError):
        cell.acquire()
    with pytest.raises(RuntimeError):
        cell.set("w")


def test_destroy_with_reader_raises():
    cell = Rcu("v")
    snap = cell.acquire()
    with pytest.raises(RuntimeError):
        cell.destroy()
    snap.release()
    cell.destroy()
    with pytest.raises(RuntimeError):
        cell.destroy()


def test_fence_lock_unlock_state():
    fence = Fence()
    assert fence.is_locked() is False
    fence.lock()
    assert fence.is_locked() is True
    fence.unlock()
    assert fence.is_locked() is False


def test_fence_wait_blocks_until_unlocked():
    fence = Fence()
    fence.lock()
    passed = threading.Event()

    def waiter():
        fence.wait()
        passed.set()

    thread = threading.Thread(target=waiter)
    thread.start()
    assert not passed.wait(0.05)
    assert fence.is_locked() is True
    fence.unlock()
    thread.join(timeout=5)
    assert passed.is_set()
    assert fence.is_locked() is False


def test_concurrent_readers_see_consistent_values():
    cell = Rcu(0)
    seen = []
    errors = []

    def reader():
        for _ in range(500):
            with cell.acquire() as snap:
                value = snap.value
                if not isinstance(value, int):
                    errors.append(value)
                seen.append(value)

    threads = [threading.Thread(target=reader) for _ in range(4)]
    for thread in threads:
        thread.start()
    for value in range(1, 200):
        cell.set(value)
    for thread in threads:
        thread.join(timeout=10)
    assert errors == []
    assert all(0 <= v < 200 for v in seen)
    assert cell.acquire().value == 199