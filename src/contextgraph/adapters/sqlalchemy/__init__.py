"""SQLAlchemy adapter package for contextgraph."""

from __future__ import annotations

from .mappings import (
    GraphRecord,
    GraphRevision,
    mapper_registry,
    start_mappers,
)
from .repositories import SqlAlchemyGraphRepository
from .unit_of_work import SqlAlchemyGraphUnitOfWork, startup

__all__ = [
    "GraphRecord",
    "GraphRevision",
    "SqlAlchemyGraphRepository",
    "SqlAlchemyGraphUnitOfWork",
    "mapper_registry",
    "start_mappers",
    "startup",
]
