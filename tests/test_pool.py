import threading

import pytest

from concur.pool import Pool, PoolExhausted, align_up, is_pow2


@pytest.mark.parametrize("value", [1, 2, 4, 64, 1 << 20])
def test_powers_of_two(value):
    assert is_pow2(value) is True


@pytest.mark.parametrize("value", [0, 3, 6, 12, 1000])
def test_not_powers_of_two(value):
    assert is_pow2(value) is False


@pytest.mark.parametrize("size", [0, 1, 15, 16, 17, 100])
def test_align_up_invariants(size):
    aligned = align_up(size, 16)
    assert aligned % 16 == 0
    assert size <= aligned < size + 16


def test_align_up_keeps_aligned_value():
    assert align_up(64, 64) == 64


def test_zero_element_size_rejected():
    with pytest.raises(ValueError):
        Pool(4, 0)


def test_slots_are_aligned():
    pool = Pool(2, 9)
    slot = pool.acquire()
    assert len(slot) == pool.elt_size
    assert len(slot) % 16 == 0
    assert len(slot) >= 9


def test_exhaustion_and_reuse():
    pool = Pool(3, 8)
    slots = [pool.acquire() for _ in range(3)]
    assert len(pool) == 0
    with pytest.raises(PoolExhausted):
        pool.acquire()
    pool.release(slots[1])
    assert len(pool) == 1
    assert pool.acquire() is slots[1]


def test_release_is_lifo():
    pool = Pool(2, 8)
    a = pool.acquire()
    b = pool.acquire()
    pool.release(a)
    pool.release(b)
    assert pool.acquire() is b
    assert pool.acquire() is a


def test_foreign_and_double_release_rejected():
    pool = Pool(1, 8)
    slot = pool.acquire()
    with pytest.raises(ValueError):
        pool.release(bytearray(16))
    pool.release(slot)
    with pytest.raises(ValueError):
        pool.release(slot)


def test_concurrent_acquire_release_keeps_count():
    pool = Pool(8, 8)

    def worker():
        for _ in range(500):
            try:
                slot = pool.acquire()
            except PoolExhausted:
                continue
            pool.release(slot)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(pool) == 8