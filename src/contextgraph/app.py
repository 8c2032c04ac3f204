"""Application orchestration entry points.

Every service resolves its store from configuration unless one is passed in,
and serialises access per company through a process-wide ``EntityLocks``:
writes hold the write side across load and save, reads hold the read side.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from contextgraph.adapters.airtable import AirtableGraphStore
from contextgraph.adapters.sqlalchemy.store import SqlAlchemyGraphStore
from contextgraph.adapters.sqlalchemy.unit_of_work import is_started, startup
from contextgraph.config import StoreBackend, get_engine_config, get_store_config
from contextgraph.domain import operator
from contextgraph.domain.canonicalization import canonicalize
from contextgraph.domain.coverage import audit_required_keys, evaluate_readiness
from contextgraph.domain.health import graph_health
from contextgraph.domain.locking import EntityLocks
from contextgraph.domain.model import Source

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from contextgraph.config import EngineConfig, StoreConfig
    from contextgraph.domain.canonicalization import CanonicalizationResult, Finding
    from contextgraph.domain.conflicts import Conflict
    from contextgraph.domain.coverage import BlockerResult, ReadinessResult
    from contextgraph.domain.health import HealthSummary
    from contextgraph.domain.model import ContextGraph, Workflow
    from contextgraph.domain.operator import OperatorUpdate
    from contextgraph.domain.ports.persistence import GraphStore

log = getLogger(__name__)

ENTITY_LOCKS = EntityLocks()


def build_graph_store(config: StoreConfig | None = None) -> GraphStore:
    """Return the configured ``GraphStore``, starting the SQL adapter on first use."""

    backend = (config or get_store_config()).backend
    if backend is StoreBackend.AIRTABLE:
        log.info("Using Airtable graph store")
        return AirtableGraphStore()
    if not is_started():
        startup()
    log.info("Using SQLAlchemy graph store")
    return SqlAlchemyGraphStore()


def canonicalize_findings(
    company_id: str,
    findings: Iterable[Finding],
    *,
    source: Source,
    source_run_id: str | None = None,
    force_overwrite: bool = False,
    dry_run: bool = False,
    baseline: bool = False,
    store: GraphStore | None = None,
    locks: EntityLocks = ENTITY_LOCKS,
    engine: EngineConfig | None = None,
    now: datetime | None = None,
) -> CanonicalizationResult:
    """Validate and persist producer findings using the configured adapters."""

    settings = engine or get_engine_config()
    return canonicalize(
        company_id,
        findings,
        store=store or build_graph_store(),
        source=source,
        source_run_id=source_run_id,
        force_overwrite=force_overwrite,
        dry_run=dry_run,
        baseline=baseline,
        locks=locks,
        provenance_limit=settings.provenance_limit,
        max_sentences=settings.max_sentences,
        now=now,
    )


def _read_graph(
    company_id: str, store: GraphStore | None, locks: EntityLocks
) -> ContextGraph | None:
    effective_store = store or build_graph_store()
    with locks.read(company_id):
        return effective_store.load_graph(company_id)


def get_blockers(
    company_id: str,
    workflow: Workflow,
    *,
    store: GraphStore | None = None,
    locks: EntityLocks = ENTITY_LOCKS,
    engine: EngineConfig | None = None,
) -> BlockerResult:
    settings = engine or get_engine_config()
    graph = _read_graph(company_id, store, locks)
    return audit_required_keys(
        graph, workflow, similarity_threshold=settings.similarity_threshold
    )


def get_readiness(
    company_id: str,
    *,
    store: GraphStore | None = None,
    locks: EntityLocks = ENTITY_LOCKS,
) -> ReadinessResult:
    return evaluate_readiness(_read_graph(company_id, store, locks))


def get_health(
    company_id: str,
    *,
    conflicts: Sequence[Conflict] = (),
    as_of: datetime | None = None,
    store: GraphStore | None = None,
    locks: EntityLocks = ENTITY_LOCKS,
    engine: EngineConfig | None = None,
) -> HealthSummary:
    """Health of the stored graph; pass conflicts from a recent batch to score consistency."""

    settings = engine or get_engine_config()
    graph = _read_graph(company_id, store, locks)
    return graph_health(graph, conflicts=conflicts, as_of=as_of, weights=settings.health_weights)


def set_field(
    company_id: str,
    path_or_key: str,
    value: object,
    *,
    source: Source = Source.USER,
    lock: bool = False,
    lock_reason: str | None = None,
    store: GraphStore | None = None,
    locks: EntityLocks = ENTITY_LOCKS,
    engine: EngineConfig | None = None,
) -> OperatorUpdate:
    settings = engine or get_engine_config()
    return operator.set_field_by_operator(
        company_id,
        path_or_key,
        value,
        store=store or build_graph_store(),
        source=source,
        lock=lock,
        lock_reason=lock_reason,
        locks=locks,
        provenance_limit=settings.provenance_limit,
    )


def confirm_field(
    company_id: str,
    path_or_key: str,
    *,
    source: Source = Source.USER,
    store: GraphStore | None = None,
    locks: EntityLocks = ENTITY_LOCKS,
    engine: EngineConfig | None = None,
) -> OperatorUpdate:
    settings = engine or get_engine_config()
    return operator.confirm_field(
        company_id,
        path_or_key,
        store=store or build_graph_store(),
        source=source,
        locks=locks,
        provenance_limit=settings.provenance_limit,
    )


def lock_field(
    company_id: str,
    path_or_key: str,
    *,
    reason: str | None = None,
    source: Source = Source.USER,
    store: GraphStore | None = None,
    locks: EntityLocks = ENTITY_LOCKS,
) -> OperatorUpdate:
    return operator.lock_field(
        company_id,
        path_or_key,
        store=store or build_graph_store(),
        reason=reason,
        source=source,
        locks=locks,
    )


def unlock_field(
    company_id: str,
    path_or_key: str,
    *,
    source: Source = Source.USER,
    store: GraphStore | None = None,
    locks: EntityLocks = ENTITY_LOCKS,
) -> OperatorUpdate:
    return operator.unlock_field(
        company_id,
        path_or_key,
        store=store or build_graph_store(),
        source=source,
        locks=locks,
    )
