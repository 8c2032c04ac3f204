from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from contextgraph.adapters.sqlalchemy import start_mappers
from contextgraph.adapters.sqlalchemy.migrations import upgrade_head
from contextgraph.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyGraphUnitOfWork,
    shutdown,
    startup,
)
from contextgraph.domain.locking import EntityLocks
from tests.helpers.graph_store import FakeGraphStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyGraphUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyGraphUnitOfWork:
        return SqlAlchemyGraphUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def graph_store() -> FakeGraphStore:
    return FakeGraphStore()


@pytest.fixture
def entity_locks() -> EntityLocks:
    return EntityLocks()
