"""
Per-server mutation locks.

The Server record is the unit of contention: channel create/delete, role
changes, joins and message appends on one server are serialized, while
different servers proceed independently. Locks are re-entrant so a service
holding one may call another service on the same server.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class ServerLocks:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def _lock_for(self, server_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(server_id)
            if lock is None:
                lock = self._locks[server_id] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, server_id: str) -> Iterator[None]:
        lock = self._lock_for(server_id)
        with lock:
            yield


server_locks = ServerLocks()
