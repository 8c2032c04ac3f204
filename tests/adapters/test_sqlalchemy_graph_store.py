from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import OperationalError

from contextgraph.adapters.sqlalchemy import SqlAlchemyGraphRepository
from contextgraph.adapters.sqlalchemy.store import SqlAlchemyGraphStore
from contextgraph.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyGraphUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from contextgraph.domain.ports.persistence import GraphStoreError, StaleGraphError
from tests.helpers.graphs import NOW, complete_graph, make_graph

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session


@pytest.fixture
def sql_store(
    sqlite_unit_of_work: Callable[[], SqlAlchemyGraphUnitOfWork],
) -> SqlAlchemyGraphStore:
    return SqlAlchemyGraphStore(unit_of_work_factory=sqlite_unit_of_work)


def test_load_missing_graph_returns_none(sql_store: SqlAlchemyGraphStore) -> None:
    assert sql_store.load_graph("acme") is None


def test_save_then_load_round_trips(sql_store: SqlAlchemyGraphStore) -> None:
    graph = complete_graph()

    sql_store.save_graph(graph, "canonicalizer:brand_lab")
    loaded = sql_store.load_graph("acme")

    assert loaded is not None
    assert loaded.version == 1
    assert loaded.updated_at == NOW
    assert sorted(loaded.paths()) == sorted(graph.paths())


def test_stale_version_is_refused(sql_store: SqlAlchemyGraphStore) -> None:
    sql_store.save_graph(make_graph(version=2, company_name="Acme"), "operator:user")

    with pytest.raises(StaleGraphError, match="refusing to save version 2"):
        sql_store.save_graph(make_graph(version=2, company_name="Acme Payroll"), "operator:user")

    loaded = sql_store.load_graph("acme")
    assert loaded is not None
    assert loaded.company_name == "Acme"


def test_every_save_appends_a_revision(sqlite_session: Session) -> None:
    repository = SqlAlchemyGraphRepository(sqlite_session)

    repository.put(make_graph(version=1), writer_tag="canonicalizer:gap_heavy")
    sqlite_session.flush()
    repository.put(make_graph(version=2), writer_tag="operator:user")
    sqlite_session.commit()

    revisions = repository.revisions("acme")
    assert [(revision.version, revision.updated_by) for revision in revisions] == [
        (2, "operator:user"),
        (1, "canonicalizer:gap_heavy"),
    ]
    current = repository.get("acme")
    assert current is not None
    assert current.version == 2


def test_failed_unit_of_work_rolls_back(
    sqlite_unit_of_work: Callable[[], SqlAlchemyGraphUnitOfWork],
) -> None:
    with pytest.raises(RuntimeError, match="boom"), sqlite_unit_of_work() as uow:
        uow.repositories.graphs.put(make_graph(), writer_tag="operator:user")
        raise RuntimeError("boom")

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.graphs.get("acme") is None


def test_database_errors_become_store_errors() -> None:
    def broken() -> SqlAlchemyGraphUnitOfWork:
        raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    store = SqlAlchemyGraphStore(unit_of_work_factory=broken)

    with pytest.raises(GraphStoreError, match="Could not load"):
        store.load_graph("acme")
    with pytest.raises(GraphStoreError, match="Could not save"):
        store.save_graph(make_graph(), "operator:user")


def test_unit_of_work_requires_startup() -> None:
    shutdown()

    assert not is_started()
    with pytest.raises(StartupError, match="not initialised"):
        SqlAlchemyGraphUnitOfWork()


def test_startup_refuses_to_reinitialise(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    try:
        with pytest.raises(StartupError, match="already initialised"):
            startup(engine=sqlite_engine)
        assert is_started()
        assert configured_engine() is sqlite_engine
    finally:
        shutdown()
