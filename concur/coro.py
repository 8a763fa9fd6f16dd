"""Cooperative round-robin tasks built on generators."""

import argparse
from collections import deque


def fib_sequence(k):
    """Return the ``k``-th Fibonacci number."""
    if k < 0:
        raise ValueError("k must not be negative")
    a, b = 0, 1
    for _ in range(k):
        a, b = b, a + b
    return a


def fib_task(name, n, i):
    """Task printing every other Fibonacci number from ``i`` below ``n``.

    Each yield is a switch point and carries the lines printed since the
    previous one; the final lines are the generator's return value.
    """
    yield [f"{name}: n = {n}"]
    lines = []
    while i < n:
        lines.append(f"{name} fib({i}) = {fib_sequence(i)}")
        yield lines
        lines = [f"{name}: resume"]
        i += 2
    lines.append(f"{name}: complete")
    return lines


def count_task(name, n, i):
    """Task printing the integers from ``i`` below ``n``, one per turn."""
    yield [f"{name}: n = {n}"]
    lines = []
    while i < n:
        lines.append(f"{name} {i}")
        yield lines
        lines = [f"{name}: resume"]
        i += 1
    lines.append(f"{name}: complete")
    return lines


def schedule(tasks):
    """Run task generators round-robin, yielding each line they print."""
    ready = deque()
    for task in tasks:
        try:
            yield from next(task)
        except StopIteration as stop:
            yield from stop.value or ()
            continue
        ready.append(task)

    while ready:
        task = ready.popleft()
        try:
            lines = next(task)
        except StopIteration as stop:
            yield from stop.value or ()
            continue
        yield from lines
        ready.append(task)


def main(argv=None):
    """Run the demonstration tasks and print their output."""
    parser = argparse.ArgumentParser(description="Round-robin coroutine demo.")
    parser.parse_args(argv)
    tasks = [
        fib_task("Task 0", 70, 0),
        fib_task("Task 1", 70, 1),
        count_task("Task 2", 70, 0),
    ]
    for line in schedule(tasks):
        print(line)
    return 0