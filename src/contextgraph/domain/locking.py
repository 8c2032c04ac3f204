"""Per-company readers/writer locks.

Writes to one company's graph are serialised and exclusive; reads may share the
lock with other reads but never overlap an in-flight write. Different
companies never contend. Locks are not reentrant: a holder must not acquire
the same company's lock again.
"""

from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class ReadWriteLock:
    """Writer-preferring readers/writer lock."""

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._condition:
            while self._writer or self._writers_waiting:
                self._condition.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._condition:
                self._readers -= 1
                if self._readers == 0:
                    self._condition.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._condition:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._condition.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._condition:
                self._writer = False
                self._condition.notify_all()


class EntityLocks:
    """Lazily created per-company locks; a lock is dropped once nothing holds or awaits it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, ReadWriteLock] = (
            weakref.WeakValueDictionary()
        )

    def __len__(self) -> int:
        return len(self._locks)

    def for_entity(self, company_id: str) -> ReadWriteLock:
        with self._guard:
            lock = self._locks.get(company_id)
            if lock is None:
                lock = ReadWriteLock()
                self._locks[company_id] = lock
            return lock

    @contextmanager
    def read(self, company_id: str) -> Iterator[None]:
        with self.for_entity(company_id).read():
            yield

    @contextmanager
    def write(self, company_id: str) -> Iterator[None]:
        with self.for_entity(company_id).write():
            yield
