"""Lightweight fibers backed by threads that yield cooperatively."""

import argparse
import threading
import time

MAX_FIBERS = 10


class FiberError(Exception):
    """Raised when fibers are misused."""


class FiberLimitError(FiberError):
    """Raised when spawning beyond the fiber limit."""


def fiber_yield():
    """Give up the processor so that another fiber may run."""
    time.sleep(0)


class FiberGroup:
    """A bounded set of running fibers that can be waited for together."""

    def __init__(self, max_fibers=MAX_FIBERS):
        if max_fibers <= 0:
            raise ValueError("max_fibers must be positive")
        self.max_fibers = max_fibers
        self._owner = threading.get_ident()
        self._fibers = []
        self._lock = threading.Lock()

    def spawn(self, func):
        """Start a new fiber running ``func()``."""
        with self._lock:
            if len(self._fibers) >= self.max_fibers:
                raise FiberLimitError(
                    f"at most {self.max_fibers} fibers may be active"
                )
            fiber = threading.Thread(target=func, daemon=True)
            fiber.start()
            self._fibers.append(fiber)

    def wait_all(self):
        """Wait until every fiber has finished.

        Only the thread that created the group may wait; a fiber that tries
        to wait raises FiberError.
        """
        if threading.get_ident() != self._owner:
            raise FiberError("cannot wait for fibers from inside a fiber")
        while True:
            with self._lock:
                if not self._fibers:
                    return
                fiber = self._fibers[0]
            fiber.join()
            with self._lock:
                self._fibers.remove(fiber)

    def __len__(self):
        """Number of fibers not yet waited for."""
        with self._lock:
            return len(self._fibers)


def fibonacci(emit):
    """Emit the first fifteen Fibonacci numbers, yielding after each."""
    emit("Fib(0) = 0")
    emit("Fib(1) = 1")
    a, b = 0, 1
    for i in range(2, 15):
        a, b = b, a + b
        emit(f"Fib({i}) = {b}")
        fiber_yield()


def squares(emit):
    """Emit the squares of 1 to 9, yielding after each."""
    for i in range(1, 10):
        emit(f"{i} * {i} = {i * i}")
        fiber_yield()


def main(argv=None):
    """Run the Fibonacci and squares fibers side by side."""
    parser = argparse.ArgumentParser(description="Fiber demo.")
    parser.parse_args(argv)

    def emit(line):
        print(line, flush=True)

    group = FiberGroup()
    group.spawn(lambda: fibonacci(emit))
    group.spawn(lambda: squares(emit))
    group.wait_all()
    return 0