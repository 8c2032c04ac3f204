"""``GraphStore`` implementation on top of the SQLAlchemy unit of work."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from contextgraph.adapters.sqlalchemy.unit_of_work import SqlAlchemyGraphUnitOfWork
from contextgraph.domain.ports.persistence import GraphStoreError

if TYPE_CHECKING:
    from collections.abc import Callable

    from contextgraph.domain.model import ContextGraph
    from contextgraph.domain.ports.unit_of_work import GraphUnitOfWork

log = logging.getLogger(__name__)


@dataclass(slots=True)
class SqlAlchemyGraphStore:
    """Each load and each save runs in its own unit of work."""

    unit_of_work_factory: Callable[[], GraphUnitOfWork] = SqlAlchemyGraphUnitOfWork

    def load_graph(self, company_id: str) -> ContextGraph | None:
        try:
            with self.unit_of_work_factory() as uow:
                return uow.repositories.graphs.get(company_id)
        except SQLAlchemyError as exc:
            log.exception("Loading graph for %s failed", company_id)
            raise GraphStoreError(f"Could not load graph for {company_id}") from exc

    def save_graph(self, graph: ContextGraph, writer_tag: str) -> None:
        try:
            with self.unit_of_work_factory() as uow:
                uow.repositories.graphs.put(graph, writer_tag=writer_tag)
                uow.commit()
        except SQLAlchemyError as exc:
            log.exception("Saving graph for %s failed", graph.company_id)
            raise GraphStoreError(f"Could not save graph for {graph.company_id}") from exc


if TYPE_CHECKING:
    from contextgraph.domain.ports.persistence import GraphStore

    _store_check: GraphStore = SqlAlchemyGraphStore()
