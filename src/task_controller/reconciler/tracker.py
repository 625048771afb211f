"""Per-GUID callback bookkeeping owned by one reconciler instance."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field


@dataclass
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class CallbackTracker:
    """Retry counts and reported flags, guarded by a map lock and per-GUID locks.

    State lives only in process memory: a restart resets retry budgets and
    re-enables reporting for in-flight GUIDs.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._retries: dict[str, int] = {}
        self._reported: set[str] = set()
        self._key_locks: dict[str, _KeyLock] = {}

    @contextmanager
    def hold(self, guid: str) -> Iterator[None]:
        """Serialize work on one GUID; key locks are dropped once nobody holds them."""
        with self._lock:
            key_lock = self._key_locks.setdefault(guid, _KeyLock())
            key_lock.holders += 1
        key_lock.lock.acquire()
        try:
            yield
        finally:
            key_lock.lock.release()
            with self._lock:
                key_lock.holders -= 1
                if key_lock.holders == 0:
                    self._key_locks.pop(guid, None)

    def retries(self, guid: str) -> int:
        with self._lock:
            return self._retries.get(guid, 0)

    def is_reported(self, guid: str) -> bool:
        with self._lock:
            return guid in self._reported

    def mark_reported(self, guid: str) -> None:
        with self._lock:
            self._reported.add(guid)

    def record_failure(self, guid: str) -> int:
        with self._lock:
            self._retries[guid] = self._retries.get(guid, 0) + 1
            return self._retries[guid]

    def clear_retries(self, guid: str) -> None:
        with self._lock:
            self._retries.pop(guid, None)

    def clear_reported(self, guid: str) -> None:
        with self._lock:
            self._reported.discard(guid)

    def tracked_guids(self) -> set[str]:
        with self._lock:
            return set(self._retries) | self._reported
