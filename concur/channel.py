"""Go-style channels: buffered FIFO queues and unbuffered rendezvous."""

import threading
from collections import deque


class ChannelClosed(Exception):
    """Raised when sending to or receiving from a closed channel."""


class Channel:
    """A channel carrying arbitrary objects between threads.

    With ``cap`` of zero the channel is unbuffered: a send completes only
    once a receiver has taken the item.  Otherwise up to ``cap`` items are
    buffered in FIFO order.  Once closed, every send and receive raises
    ChannelClosed, including receives that could still find buffered items.
    """

    def __init__(self, cap=0):
        if cap < 0:
            raise ValueError("capacity must not be negative")
        self.cap = cap
        self._cond = threading.Condition()
        self._closed = False
        self._buffer = deque()
        # Unbuffered hand-off state.
        self._item = None
        self._has_item = False
        self._offered = 0
        self._taken = 0
        self._recv_waiting = 0

    @property
    def closed(self):
        return self._closed

    def _check_open(self):
        if self._closed:
            raise ChannelClosed("channel is closed")

    def send(self, item):
        """Send ``item``, blocking until there is room or a receiver takes it."""
        with self._cond:
            self._check_open()
            if self.cap:
                self._cond.wait_for(
                    lambda: self._closed or len(self._buffer) < self.cap
                )
                self._check_open()
                self._buffer.append(item)
                self._cond.notify_all()
                return
            self._cond.wait_for(lambda: self._closed or not self._has_item)
            self._check_open()
            ticket = self._offer(item)
            self._cond.wait_for(lambda: self._closed or self._taken >= ticket)
            if self._taken < ticket:
                self._item = None
                self._has_item = False
                raise ChannelClosed("channel closed before the item was received")

    def recv(self):
        """Receive an item, blocking until one is available."""
        with self._cond:
            self._check_open()
            if self.cap:
                self._cond.wait_for(lambda: self._closed or self._buffer)
                self._check_open()
                item = self._buffer.popleft()
                self._cond.notify_all()
                return item
            self._recv_waiting += 1
            try:
                self._cond.wait_for(lambda: self._closed or self._has_item)
            finally:
                self._recv_waiting -= 1
            self._check_open()
            return self._take()

    def try_send(self, item):
        """Send without blocking; return False if the send would block."""
        with self._cond:
            self._check_open()
            if self.cap:
                if len(self._buffer) >= self.cap:
                    return False
                self._buffer.append(item)
                self._cond.notify_all()
                return True
            if self._has_item or self._recv_waiting <= self._pending_offers():
                return False
            self._offer(item)
            return True

    def try_recv(self):
        """Receive without blocking; return ``(True, item)`` or ``(False, None)``."""
        with self._cond:
            self._check_open()
            if self.cap:
                if not self._buffer:
                    return False, None
                item = self._buffer.popleft()
                self._cond.notify_all()
                return True, item
            if not self._has_item:
                return False, None
            return True, self._take()

    def close(self):
        """Close the channel and wake every blocked sender and receiver."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def _pending_offers(self):
        return self._offered - self._taken

    def _offer(self, item):
        self._item = item
        self._has_item = True
        self._offered += 1
        self._cond.notify_all()
        return self._offered

    def _take(self):
        item = self._item
        self._item = None
        self._has_item = False
        self._taken += 1
        self._cond.notify_all()
        return item