import threading
import time

import pytest

from concur.channel import Channel, ChannelClosed


def _split(total, n):
    each, left = divmod(total, n)
    start = 0
    for i in range(n):
        batch = each + (1 if i < left else 0)
        yield range(start, start + batch)
        start += batch


def _join_all(threads, timeout=10.0):
    deadline = time.monotonic() + timeout
    for t in threads:
        t.join(max(0.0, deadline - time.monotonic()))
    return [t for t in threads if t.is_alive()]


def test_negative_capacity_rejected():
    with pytest.raises(ValueError):
        Channel(-1)


def test_buffered_fifo_order():
    ch = Channel(3)
    for item in ("a", "b", "c"):
        ch.send(item)
    assert [ch.recv() for _ in range(3)] == ["a", "b", "c"]


def test_buffered_try_send_full_and_try_recv_empty():
    ch = Channel(2)
    assert ch.try_send(1) is True
    assert ch.try_send(2) is True
    assert ch.try_send(3) is False
    assert ch.try_recv() == (True, 1)
    assert ch.try_recv() == (True, 2)
    assert ch.try_recv() == (False, None)


def test_send_after_close_raises():
    ch = Channel(1)
    ch.close()
    assert ch.closed is True
    with pytest.raises(ChannelClosed):
        ch.send(1)
    with pytest.raises(ChannelClosed):
        ch.try_send(1)


def test_recv_on_closed_buffered_channel_raises_even_with_items():
    ch = Channel(2)
    ch.send("left")
    ch.close()
    with pytest.raises(ChannelClosed):
        ch.recv()
    with pytest.raises(ChannelClosed):
        ch.try_recv()


@pytest.mark.parametrize("cap", [0, 1])
def test_close_wakes_blocked_receiver(cap):
    ch = Channel(cap)
    errors = []

    def reader():
        try:
            ch.recv()
        except ChannelClosed as exc:
            errors.append(exc)

    t = threading.Thread(target=reader)
    t.start()
    time.sleep(0.05)
    ch.close()
    assert _join_all([t]) == []
    assert len(errors) == 1
    assert ch.closed is True
    with pytest.raises(ChannelClosed):
        ch.recv()


def test_close_wakes_blocked_unbuffered_sender():
    ch = Channel(0)
    errors = []

    def writer():
        try:
            ch.send("x")
        except ChannelClosed as exc:
            errors.append(exc)

    t = threading.Thread(target=writer)
    t.start()
    time.sleep(0.05)
    ch.close()
    assert _join_all([t]) == []
    assert len(errors) == 1
    assert ch.closed is True
    with pytest.raises(ChannelClosed):
        ch.send("y")


def test_unbuffered_rendezvous():
    ch = Channel(0)
    received = []
    t = threading.Thread(target=lambda: received.append(ch.recv()))
    t.start()
    ch.send("hello")
    assert _join_all([t]) == []
    assert received == ["hello"]


def test_unbuffered_try_ops_without_partner():
    ch = Channel(0)
    assert ch.try_send(1) is False
    assert ch.try_recv() == (False, None)


def test_unbuffered_try_send_to_waiting_receiver():
    ch = Channel(0)
    received = []
    t = threading.Thread(target=lambda: received.append(ch.recv()))
    t.start()
    deadline = time.monotonic() + 5
    sent = False
    while not sent and time.monotonic() < deadline:
        sent = ch.try_send(42)
        time.sleep(0.001)
    assert sent is True
    assert _join_all([t]) == []
    assert received == [42]


def test_unbuffered_try_recv_takes_offered_item():
    ch = Channel(0)
    t = threading.Thread(target=lambda: ch.send("item"))
    t.start()
    deadline = time.monotonic() + 5
    result = (False, None)
    while not result[0] and time.monotonic() < deadline:
        result = ch.try_recv()
        time.sleep(0.001)
    assert result == (True, "item")
    assert _join_all([t]) == []


@pytest.mark.parametrize("cap", [0, 7])
def test_many_readers_and_writers_deliver_each_message_once(cap):
    total, n_readers, n_writers = 500, 8, 8
    ch = Channel(cap)
    counts = [0] * total
    counts_lock = threading.Lock()

    def writer(items):
        for i in items:
            ch.send(i)

    def reader(expect):
        for _ in range(expect):
            msg = ch.recv()
            with counts_lock:
                counts[msg] += 1

    threads = [
        threading.Thread(target=reader, args=(len(r),))
        for r in _split(total, n_readers)
    ]
    threads += [
        threading.Thread(target=writer, args=(r,)) for r in _split(total, n_writers)
    ]
    for t in threads:
        t.start()
    stuck = _join_all(threads, timeout=30)
    assert stuck == []
    assert ch.try_recv() == (False, None)
    ch.close()
    assert counts == [1] * total