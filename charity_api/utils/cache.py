import threading
from contextlib import contextmanager

import redis

_clients: dict[str, redis.Redis] = {}
_local_locks: dict[str, threading.Lock] = {}
_guard = threading.Lock()


def r(url: str) -> redis.Redis:
    client = _clients.get(url)
    if client is None:
        client = redis.Redis.from_url(url, decode_responses=True)
        _clients[url] = client
    return client


def _local_lock(name: str) -> threading.Lock:
    with _guard:
        lock = _local_locks.get(name)
        if lock is None:
            lock = threading.Lock()
            _local_locks[name] = lock
        return lock


@contextmanager
def collection_lock(name: str, redis_url: str | None = None):
    """
    Serialize writers of one collection. Uses a Redis lock when a URL is
    configured so several worker processes share it; otherwise a process-local
    lock keyed by collection name.
    """
    if redis_url:
        with r(redis_url).lock(f"lock:collection:{name}", timeout=30, blocking_timeout=10):
            yield
        return
    with _local_lock(name):
        yield
