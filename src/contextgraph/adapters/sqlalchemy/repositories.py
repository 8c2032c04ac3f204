"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select

from contextgraph.adapters.document import dump_graph, parse_graph
from contextgraph.adapters.sqlalchemy.mappings import (
    GraphRecord,
    GraphRevision,
    context_graph_revision_table,
)
from contextgraph.domain.ports.persistence import StaleGraphError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from contextgraph.domain.model import ContextGraph

log = logging.getLogger(__name__)


class SqlAlchemyGraphRepository:
    """Stores each graph as one JSON document row plus a revision row per save."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, company_id: str) -> ContextGraph | None:
        record = self.session.get(GraphRecord, company_id)
        if record is None:
            return None
        return parse_graph(record.document, company_id=company_id)

    def put(self, graph: ContextGraph, *, writer_tag: str) -> None:
        """Insert or replace the stored document.

        The incoming graph must carry a version newer than the stored one;
        anything else means another writer saved in between.
        """

        document = dump_graph(graph)
        saved_at = datetime.now(UTC)
        record = self.session.get(GraphRecord, graph.company_id)
        if record is None:
            record = GraphRecord(
                company_id=graph.company_id,
                document=document,
                version=graph.version,
                updated_by=writer_tag,
                updated_at=saved_at,
            )
            self.session.add(record)
        else:
            if graph.version <= record.version:
                raise StaleGraphError(
                    f"Graph for {graph.company_id} is at version {record.version}; "
                    f"refusing to save version {graph.version}"
                )
            record.document = document
            record.version = graph.version
            record.updated_by = writer_tag
            record.updated_at = saved_at

        self.session.add(
            GraphRevision(
                company_id=graph.company_id,
                version=graph.version,
                document=document,
                updated_by=writer_tag,
                updated_at=saved_at,
            )
        )
        log.debug("Stored %s version %d (%s)", graph.company_id, graph.version, writer_tag)

    def revisions(self, company_id: str) -> list[GraphRevision]:
        stmt = (
            select(GraphRevision)
            .where(context_graph_revision_table.c.company_id == company_id)
            .order_by(context_graph_revision_table.c.version.desc())
        )
        return list(self.session.execute(stmt).scalars())
