"""Concurrency building blocks: channels, broadcast rings, RCU maps, hazard-pointer lists, a small HTTP server and demos."""

__version__ = "0.1.0"

__all__ = [
    "broadcast",
    "channel",
    "cmap",
    "coro",
    "fiber",
    "free_later",
    "hashing",
    "hashmap",
    "hp_list",
    "http_request",
    "httpd",
    "pool",
    "rcu",
    "xorshift",
]