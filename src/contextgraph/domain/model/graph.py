"""The per-company context graph and typed access to its fields.

Fields live in a ``domain -> field name -> FieldNode`` map. A field path is
``domain.fieldName`` with an optional ``.subpath``; everything after the first
dot is the field name within its domain. Callers reach fields through
``ContextGraph.resolve`` rather than walking nested objects.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from contextgraph.domain.model.enums import FieldStatus
from contextgraph.domain.model.provenance import as_utc

if TYPE_CHECKING:
    from collections.abc import Iterator

    from contextgraph.domain.model.provenance import ProvenanceEntry

type FieldValue = str | int | float | list[str] | None


class FieldPathError(ValueError):
    """Raised when a field path is not of the form ``domain.field``."""


def split_path(path: str) -> tuple[str, str]:
    domain, sep, name = path.strip().partition(".")
    if not sep or not domain or not name:
        raise FieldPathError(f"Invalid field path: {path!r}")
    return domain, name


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldSnapshot:
    """Read-only view of a field handed to validation gates."""

    path: str
    value: FieldValue = None
    status: FieldStatus = FieldStatus.MISSING
    confidence: float = 0.0
    provenance: tuple[ProvenanceEntry, ...] = ()
    locked: bool = False
    lock_reason: str | None = None

    @property
    def current(self) -> ProvenanceEntry | None:
        return self.provenance[0] if self.provenance else None


@dataclass(slots=True, kw_only=True)
class FieldNode:
    value: FieldValue = None
    status: FieldStatus = FieldStatus.MISSING
    confidence: float = 0.0
    provenance: tuple[ProvenanceEntry, ...] = ()
    locked: bool = False
    lock_reason: str | None = None

    @property
    def current(self) -> ProvenanceEntry | None:
        return self.provenance[0] if self.provenance else None

    @property
    def set_at(self) -> datetime | None:
        current = self.current
        return current.updated_at if current else None

    @property
    def verified_at(self) -> datetime | None:
        current = self.current
        return current.verified_at if current else None

    def snapshot(self, path: str) -> FieldSnapshot:
        return FieldSnapshot(
            path=path,
            value=copy.deepcopy(self.value),
            status=self.status,
            confidence=self.confidence,
            provenance=self.provenance,
            locked=self.locked,
            lock_reason=self.lock_reason,
        )


@dataclass(slots=True)
class FieldHandle:
    """Typed accessor for one field path within a graph."""

    graph: ContextGraph
    domain: str
    name: str

    @property
    def path(self) -> str:
        return f"{self.domain}.{self.name}"

    def get(self) -> FieldNode | None:
        return self.graph.domains.get(self.domain, {}).get(self.name)

    def exists(self) -> bool:
        return self.get() is not None

    def ensure(self) -> FieldNode:
        fields = self.graph.domains.setdefault(self.domain, {})
        node = fields.get(self.name)
        if node is None:
            node = FieldNode()
            fields[self.name] = node
        return node

    def snapshot(self) -> FieldSnapshot:
        node = self.get()
        if node is None:
            return FieldSnapshot(path=self.path)
        return node.snapshot(self.path)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, kw_only=True)
class ContextGraph:
    company_id: str
    company_name: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    version: int = 0
    domains: dict[str, dict[str, FieldNode]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.created_at = as_utc(self.created_at)
        self.updated_at = as_utc(self.updated_at)

    @classmethod
    def empty(
        cls,
        company_id: str,
        *,
        company_name: str | None = None,
        now: datetime | None = None,
    ) -> ContextGraph:
        timestamp = now or _utcnow()
        return cls(
            company_id=company_id,
            company_name=company_name,
            created_at=timestamp,
            updated_at=timestamp,
        )

    def resolve(self, path: str) -> FieldHandle:
        domain, name = split_path(path)
        return FieldHandle(self, domain, name)

    def get(self, path: str) -> FieldNode | None:
        return self.resolve(path).get()

    def snapshot(self, path: str) -> FieldSnapshot:
        return self.resolve(path).snapshot()

    def iter_fields(self) -> Iterator[tuple[str, FieldNode]]:
        for domain, fields in self.domains.items():
            for name, node in fields.items():
                yield f"{domain}.{name}", node

    def paths(self) -> list[str]:
        return [path for path, _ in self.iter_fields()]

    def provenance_map(self) -> dict[str, tuple[ProvenanceEntry, ...]]:
        return {path: node.provenance for path, node in self.iter_fields() if node.provenance}

    def clone(self) -> ContextGraph:
        """Return an independent copy; mutating it never touches this graph."""

        return ContextGraph(
            company_id=self.company_id,
            company_name=self.company_name,
            created_at=self.created_at,
            updated_at=self.updated_at,
            version=self.version,
            domains=copy.deepcopy(self.domains),
        )
