"""A small threaded HTTP server that serves an index page."""

import argparse
import os
import socket
import sys
import threading
from collections import deque
from email.utils import formatdate

from .http_request import (
    HttpMethod,
    HttpStatus,
    RequestError,
    parse_request,
    status_reason,
)

PORT = 9000
BACKLOG = 1024
MAXMSG = 1024
BASE_TIMEOUT = 10
CONNECTIONS_PER_EXTRA_SECOND = 50


class ConnectionQueue:
    """A blocking FIFO queue of connections waiting to be served."""

    def __init__(self):
        self._items = deque()
        self._cond = threading.Condition()

    def put(self, conn):
        """Append ``conn`` and wake one waiting worker."""
        with self._cond:
            self._items.append(conn)
            self._cond.notify()

    def get(self):
        """Remove and return the oldest connection, waiting for one if needed."""
        with self._cond:
            self._cond.wait_for(lambda: self._items)
            return self._items.popleft()

    def __len__(self):
        with self._cond:
            return len(self._items)


def receive_timeout(queue_length):
    """Seconds a new connection may take to send a request.

    Ten seconds, plus one for every fifty connections already queued.
    """
    timeout = BASE_TIMEOUT
    if queue_length > 0:
        timeout += queue_length // CONNECTIONS_PER_EXTRA_SECOND
    return timeout


def _sends_body(request, status):
    return (
        status == HttpStatus.OK
        and request is not None
        and request.method is HttpMethod.GET
    )


def build_response_head(request, status, now=None, content_length=None):
    """Return the status line and headers of a response, as bytes.

    ``request`` may be None when the request could not be parsed; ``now`` is
    a POSIX timestamp (the current time if None).
    """
    version = request.protocol_version if request is not None else 1
    lines = [
        f"HTTP/1.{version} {int(status)} {status_reason(status)}\r\n",
        f"Date: {formatdate(now, usegmt=True)}\r\n",
    ]
    if _sends_body(request, status):
        if content_length is None:
            raise ValueError("content_length is required for a GET response")
        lines.append(f"Content-Length: {content_length}\r\n")
        lines.append(f"Content-Type: {request.content_type.value}\r\n")
    lines.append("\r\n")
    return "".join(lines).encode("latin-1")


def _receive(conn):
    """Read until the end of the request head; None if the peer closed."""
    buf = bytearray()
    while b"\r\n\r\n" not in buf and b"\n\n" not in buf and len(buf) < MAXMSG:
        chunk = conn.recv(MAXMSG - len(buf))
        if not chunk:
            return None
        buf += chunk
    return bytes(buf)


def handle_connection(conn, queue, document_root):
    """Serve one request on ``conn``.

    Returns the status answered, or None if the client had closed the
    connection.  Connections kept alive are put back on ``queue``; the
    others are closed.
    """
    request = None
    try:
        msg = _receive(conn)
    except TimeoutError:
        status = HttpStatus.REQUEST_TIMEOUT
    except OSError as exc:
        print(f"recv: {exc}", file=sys.stderr)
        status = HttpStatus.SERVER_ERROR
    else:
        if msg is None:
            conn.close()
            return None
        try:
            request = parse_request(msg, document_root)
            status = HttpStatus.OK
        except RequestError as exc:
            status = exc.status

    content_length = None
    if _sends_body(request, status):
        try:
            content_length = os.stat(request.path).st_size
        except OSError as exc:
            print(f"stat: {exc}", file=sys.stderr)
            status = HttpStatus.SERVER_ERROR

    try:
        conn.sendall(build_response_head(request, status, None, content_length))
        if _sends_body(request, status):
            with open(request.path, "rb") as resource:
                while chunk := resource.read(MAXMSG):
                    conn.sendall(chunk)
    except OSError as exc:
        print(f"sending response: {exc}", file=sys.stderr)
        conn.close()
        return status

    if status != HttpStatus.OK or request.protocol_version == 0:
        conn.close()
    else:
        queue.put(conn)
    return status


def _greeter(listener, queue):
    while True:
        try:
            conn, _addr = listener.accept()
        except OSError as exc:
            print(f"accept: {exc}", file=sys.stderr)
            continue
        conn.settimeout(receive_timeout(len(queue)))
        queue.put(conn)


def _worker(queue, document_root):
    while True:
        handle_connection(queue.get(), queue, document_root)


def serve(document_root, port=PORT, n_threads=None):
    """Listen on ``port`` and serve requests forever."""
    if n_threads is None:
        n_threads = 24 * (os.cpu_count() or 1)
    half = max(1, n_threads // 2)
    queue = ConnectionQueue()
    listener = socket.create_server(("", port), backlog=BACKLOG)
    threads = [
        threading.Thread(target=_greeter, args=(listener, queue), daemon=True)
        for _ in range(half)
    ]
    threads += [
        threading.Thread(target=_worker, args=(queue, document_root), daemon=True)
        for _ in range(half)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


def main(argv=None):
    """Start the server from the command line."""
    parser = argparse.ArgumentParser(description="Serve an index page over HTTP.")
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument(
        "--root",
        default=os.path.join(os.getcwd(), "resources"),
        help="document root (default: ./resources)",
    )
    parser.add_argument("--threads", type=int, default=None)
    args = parser.parse_args(argv)
    try:
        serve(args.root, args.port, args.threads)
    except KeyboardInterrupt:
        pass
    return 0