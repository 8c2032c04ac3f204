"""Human-operator updates: direct writes, confirmations and field locks.

Operator writes bypass the producer gates. They still respect the domain
authority (``user_can_override``) and schema typing, always produce a
``confirmed`` field and hold the company's write lock across load and save.
"""

from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from contextgraph.domain.authority import validate_write
from contextgraph.domain.model import (
    PROVENANCE_LIMIT,
    ContextGraph,
    FieldStatus,
    ProvenanceEntry,
    Source,
    is_human,
    prepend_provenance,
)
from contextgraph.domain.quality import is_meaningful, normalize_items
from contextgraph.domain.schema import FIELD_REGISTRY, validate_value

if TYPE_CHECKING:
    from collections.abc import Callable

    from contextgraph.domain.locking import EntityLocks
    from contextgraph.domain.model import FieldNode, FieldValue
    from contextgraph.domain.ports.persistence import GraphStore
    from contextgraph.domain.schema import FieldDefinition, FieldRegistry

log = logging.getLogger(__name__)


class UnknownFieldError(LookupError):
    """Raised when an operator addresses a key or path the registry does not know."""


class OperatorUpdateError(ValueError):
    """Raised when an operator update is not permitted or the value is invalid."""


@dataclass(frozen=True, slots=True, kw_only=True)
class OperatorUpdate:
    company_id: str
    key: str
    path: str
    value: FieldValue
    status: FieldStatus
    locked: bool
    version: int


def _definition(registry: FieldRegistry, path_or_key: str) -> FieldDefinition:
    definition = registry.get(path_or_key)
    if definition is None:
        raise UnknownFieldError(f"Unknown field: {path_or_key}")
    return definition


def _operator_value(definition: FieldDefinition, value: object) -> FieldValue:
    if not is_meaningful(value):
        raise OperatorUpdateError(f"Refusing to write an empty value to {definition.path}")
    # operators may write terse or generic text, only the type is enforced
    failure = validate_value(definition, value)
    if failure is not None and failure.startswith("expected"):
        raise OperatorUpdateError(f"{definition.path}: {failure}")
    if isinstance(value, list | tuple):
        return normalize_items(str(item) for item in value)
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, int | float):
        return value
    raise OperatorUpdateError(f"{definition.path}: unsupported value {type(value).__name__}")


def _update(
    company_id: str,
    definition: FieldDefinition,
    mutate: Callable[[FieldNode, datetime], None],
    *,
    store: GraphStore,
    source: Source,
    locks: EntityLocks | None,
    now: datetime | None,
    create: bool,
) -> OperatorUpdate:
    timestamp = now or datetime.now(UTC)
    guard = locks.write(company_id) if locks is not None else nullcontext()
    with guard:
        stored = store.load_graph(company_id)
        if stored is None and not create:
            raise OperatorUpdateError(f"No context graph stored for {company_id}")
        base = stored if stored is not None else ContextGraph.empty(company_id, now=timestamp)
        if not create and base.get(definition.path) is None:
            raise OperatorUpdateError(f"{definition.path} has no value for {company_id}")

        working = base.clone()
        node = working.resolve(definition.path).ensure()
        mutate(node, timestamp)
        working.version += 1
        working.updated_at = timestamp
        store.save_graph(working, f"operator:{source}")

    log.info("Operator %s updated %s for %s", source, definition.path, company_id)
    return OperatorUpdate(
        company_id=company_id,
        key=definition.key,
        path=definition.path,
        value=node.value,
        status=node.status,
        locked=node.locked,
        version=working.version,
    )


def _require_human(source: Source) -> None:
    if not is_human(source):
        raise OperatorUpdateError(f"{source} is not a human operator source")


def set_field_by_operator(
    company_id: str,
    path_or_key: str,
    value: object,
    *,
    store: GraphStore,
    source: Source = Source.USER,
    lock: bool = False,
    lock_reason: str | None = None,
    locks: EntityLocks | None = None,
    registry: FieldRegistry = FIELD_REGISTRY,
    provenance_limit: int = PROVENANCE_LIMIT,
    now: datetime | None = None,
) -> OperatorUpdate:
    """Write ``value`` as a confirmed fact, optionally locking the field.

    Exclusive domains are writable here; domains that disable user overrides
    are not.
    """

    _require_human(source)
    definition = _definition(registry, path_or_key)
    verdict = validate_write(definition.path, source)
    if not verdict.allowed:
        raise OperatorUpdateError(f"{source} may not write {definition.path}: {verdict.reason}")
    normalized = _operator_value(definition, value)

    def mutate(node: FieldNode, timestamp: datetime) -> None:
        entry = ProvenanceEntry(
            source=source, confidence=1.0, updated_at=timestamp, verified_at=timestamp
        )
        node.value = normalized
        node.status = FieldStatus.CONFIRMED
        node.confidence = 1.0
        node.provenance = prepend_provenance(node.provenance, entry, limit=provenance_limit)
        if lock:
            node.locked = True
            node.lock_reason = lock_reason

    return _update(
        company_id,
        definition,
        mutate,
        store=store,
        source=source,
        locks=locks,
        now=now,
        create=True,
    )


def confirm_field(
    company_id: str,
    path_or_key: str,
    *,
    store: GraphStore,
    source: Source = Source.USER,
    locks: EntityLocks | None = None,
    registry: FieldRegistry = FIELD_REGISTRY,
    provenance_limit: int = PROVENANCE_LIMIT,
    now: datetime | None = None,
) -> OperatorUpdate:
    """Promote the current value to ``confirmed`` without changing it."""

    _require_human(source)
    definition = _definition(registry, path_or_key)

    def mutate(node: FieldNode, timestamp: datetime) -> None:
        if node.value is None:
            raise OperatorUpdateError(f"{definition.path} has no value to confirm")
        head = node.current
        entry = ProvenanceEntry(
            source=source,
            confidence=1.0,
            updated_at=timestamp,
            verified_at=timestamp,
            evidence=f"confirmed value from {head.source}" if head else None,
        )
        node.status = FieldStatus.CONFIRMED
        node.confidence = 1.0
        node.provenance = prepend_provenance(node.provenance, entry, limit=provenance_limit)

    return _update(
        company_id,
        definition,
        mutate,
        store=store,
        source=source,
        locks=locks,
        now=now,
        create=False,
    )


def lock_field(
    company_id: str,
    path_or_key: str,
    *,
    store: GraphStore,
    reason: str | None = None,
    source: Source = Source.USER,
    locks: EntityLocks | None = None,
    registry: FieldRegistry = FIELD_REGISTRY,
    now: datetime | None = None,
) -> OperatorUpdate:
    _require_human(source)
    definition = _definition(registry, path_or_key)

    def mutate(node: FieldNode, _: datetime) -> None:
        node.locked = True
        node.lock_reason = reason

    return _update(
        company_id,
        definition,
        mutate,
        store=store,
        source=source,
        locks=locks,
        now=now,
        create=True,
    )


def unlock_field(
    company_id: str,
    path_or_key: str,
    *,
    store: GraphStore,
    source: Source = Source.USER,
    locks: EntityLocks | None = None,
    registry: FieldRegistry = FIELD_REGISTRY,
    now: datetime | None = None,
) -> OperatorUpdate:
    _require_human(source)
    definition = _definition(registry, path_or_key)

    def mutate(node: FieldNode, _: datetime) -> None:
        node.locked = False
        node.lock_reason = None

    return _update(
        company_id,
        definition,
        mutate,
        store=store,
        source=source,
        locks=locks,
        now=now,
        create=False,
    )
