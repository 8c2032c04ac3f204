"""SQLAlchemy mapping metadata for stored context graphs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import cache

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    orm,
)

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


@dataclass(kw_only=True)
class GraphRecord:
    """Current stored document for one company."""

    company_id: str
    document: str
    version: int
    updated_by: str
    updated_at: datetime


@dataclass(kw_only=True)
class GraphRevision:
    """Append-only history of every saved document version."""

    company_id: str
    version: int
    document: str
    updated_by: str
    updated_at: datetime
    id: int | None = None


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

context_graph_table = Table(
    "context_graph",
    mapper_registry.metadata,
    Column("company_id", String(128), primary_key=True),
    Column("document", Text, nullable=False),
    Column("version", Integer, nullable=False),
    Column("updated_by", String(255), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
)

context_graph_revision_table = Table(
    "context_graph_revision",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "company_id",
        String(128),
        ForeignKey("context_graph.company_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("version", Integer, nullable=False),
    Column("document", Text, nullable=False),
    Column("updated_by", String(255), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    Index("ix_context_graph_revision_company_version", "company_id", "version", unique=True),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the stored graph records."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(GraphRecord, context_graph_table)
    mapper_registry.map_imperatively(GraphRevision, context_graph_revision_table)
    return mapper_registry
