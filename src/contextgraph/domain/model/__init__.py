"""Public domain model surface."""

from __future__ import annotations

from contextgraph.domain.model.enums import (
    FieldStatus,
    FreshnessStatus,
    GateReason,
    ProducerKind,
    RefreshMethod,
    ResolutionStrategy,
    ResolvedBy,
    Source,
    SpecificityKind,
    ValueType,
    Workflow,
)
from contextgraph.domain.model.graph import (
    ContextGraph,
    FieldHandle,
    FieldNode,
    FieldPathError,
    FieldSnapshot,
    FieldValue,
    split_path,
)
from contextgraph.domain.model.provenance import (
    PROVENANCE_LIMIT,
    ProvenanceEntry,
    as_utc,
    prepend_provenance,
)
from contextgraph.domain.model.sources import (
    HUMAN_SOURCES,
    default_confidence,
    display_name,
    is_human,
    producer_kind,
)

__all__ = [
    "HUMAN_SOURCES",
    "PROVENANCE_LIMIT",
    "ContextGraph",
    "FieldHandle",
    "FieldNode",
    "FieldPathError",
    "FieldSnapshot",
    "FieldStatus",
    "FieldValue",
    "FreshnessStatus",
    "GateReason",
    "ProducerKind",
    "ProvenanceEntry",
    "RefreshMethod",
    "ResolutionStrategy",
    "ResolvedBy",
    "Source",
    "SpecificityKind",
    "ValueType",
    "Workflow",
    "as_utc",
    "default_confidence",
    "display_name",
    "is_human",
    "prepend_provenance",
    "producer_kind",
    "split_path",
]
