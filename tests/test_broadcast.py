import threading

import pytest

from concur.broadcast import Broadcast, Message


@pytest.mark.parametrize("depth", [0, 3, 6])
def test_depth_must_be_power_of_two(depth):
    with pytest.raises(ValueError):
        Broadcast(depth, 8)


def test_max_msg_size_must_be_positive():
    with pytest.raises(ValueError):
        Broadcast(4, 0)


def test_oversized_message_rejected():
    bcast = Broadcast(4, 4)
    with pytest.raises(ValueError):
        bcast.publish(b"12345")


def test_empty_subscription_returns_none():
    sub = Broadcast(4, 8).subscribe()
    assert sub.next() is None


def test_round_trip_in_order():
    bcast = Broadcast(8, 8)
    sub = bcast.subscribe()
    for i in range(5):
        assert bcast.publish(str(i).encode()) is True
    received = list(sub)
    assert received == [Message(str(i).encode(), 0) for i in range(5)]
    assert sub.next() is None


def test_late_subscriber_sees_retained_messages():
    bcast = Broadcast(4, 8)
    for i in range(6):
        bcast.publish(str(i).encode())
    payloads = [m.payload for m in bcast.subscribe()]
    assert payloads == [str(i).encode() for i in range(2, 6)]


def test_slow_subscriber_reports_drops():
    depth = 4
    total = 9
    bcast = Broadcast(depth, 8)
    sub = bcast.subscribe()
    for i in range(total):
        bcast.publish(str(i).encode())
    first = sub.next()
    assert first.drops == total - depth
    assert first.payload == str(total - depth).encode()
    rest = list(sub)
    assert [m.drops for m in rest] == [0] * (depth - 1)


def test_subscribers_are_independent():
    bcast = Broadcast(8, 8)
    a = bcast.subscribe()
    b = bcast.subscribe()
    bcast.publish(b"x")
    assert a.next().payload == b"x"
    assert a.next() is None
    assert b.next().payload == b"x"


def test_long_run_never_exhausts_pool():
    bcast = Broadcast(2, 8)
    assert all(bcast.publish(b"abc") for _ in range(1000))


def test_concurrent_publishers():
    bcast = Broadcast(1024, 8)
    sub = bcast.subscribe()
    n_threads, per_thread = 4, 100

    def publisher(pub_id):
        for i in range(per_thread):
            assert bcast.publish(((pub_id << 32) | i).to_bytes(8, "little"))

    threads = [threading.Thread(target=publisher, args=(p,)) for p in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    messages = list(sub)
    assert len(messages) == n_threads * per_thread
    assert sum(m.drops for m in messages) == 0
    values = {int.from_bytes(m.payload, "little") for m in messages}
    assert values == {(p << 32) | i for p in range(n_threads) for i in range(per_thread)}