from __future__ import annotations

import gc
import threading
import time
from typing import TYPE_CHECKING

from contextgraph.domain.locking import EntityLocks

if TYPE_CHECKING:
    from collections.abc import Callable
    from contextlib import AbstractContextManager


def _in_thread(
    target: threading.Event, acquire: Callable[[], AbstractContextManager[None]]
) -> threading.Thread:
    def run() -> None:
        with acquire():
            target.set()

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return thread


def test_readers_share_the_lock() -> None:
    locks = EntityLocks()
    acquired = threading.Event()

    with locks.read("acme"):
        thread = _in_thread(acquired, lambda: locks.read("acme"))
        assert acquired.wait(timeout=2)

    thread.join(timeout=2)


def test_writer_waits_for_readers() -> None:
    locks = EntityLocks()
    acquired = threading.Event()

    with locks.read("acme"):
        thread = _in_thread(acquired, lambda: locks.write("acme"))
        assert not acquired.wait(timeout=0.1)

    assert acquired.wait(timeout=2)
    thread.join(timeout=2)


def test_reader_waits_for_writer() -> None:
    locks = EntityLocks()
    acquired = threading.Event()

    with locks.write("acme"):
        thread = _in_thread(acquired, lambda: locks.read("acme"))
        assert not acquired.wait(timeout=0.1)

    assert acquired.wait(timeout=2)
    thread.join(timeout=2)


def test_companies_never_contend() -> None:
    locks = EntityLocks()
    acquired = threading.Event()

    with locks.write("acme"):
        thread = _in_thread(acquired, lambda: locks.write("globex"))
        assert acquired.wait(timeout=2)

    thread.join(timeout=2)
    assert locks.for_entity("acme") is locks.for_entity("acme")
    assert locks.for_entity("acme") is not locks.for_entity("globex")


def test_writes_are_serialised() -> None:
    locks = EntityLocks()
    counter = {"value": 0}

    def increment() -> None:
        for _ in range(50):
            with locks.write("acme"):
                current = counter["value"]
                time.sleep(0)
                counter["value"] = current + 1

    threads = [threading.Thread(target=increment) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert counter["value"] == 200


def test_idle_locks_are_released() -> None:
    locks = EntityLocks()

    with locks.write("acme"), locks.read("globex"):
        assert len(locks) == 2
        held = locks.for_entity("acme")

    gc.collect()
    assert len(locks) == 1
    assert locks.for_entity("acme") is held
    del held
    gc.collect()
    assert len(locks) == 0
