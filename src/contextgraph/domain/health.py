"""Health aggregation for dashboards.

Four sub-scores, each 0-100:

- completeness: filled required fields over all required fields
- freshness: mean freshness score of the fields that have one
- consistency: ``max(0, 100 - 20 * unresolved conflicts)``
- confidence: mean confidence of each field's current provenance entry

``overall`` is their weighted sum (0.30/0.25/0.25/0.20 by default), rounded half
up. A missing graph yields an ``unavailable`` summary with every score at zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from contextgraph.domain.conflicts import count_unresolved
from contextgraph.domain.freshness import score_freshness
from contextgraph.domain.quality import is_meaningful
from contextgraph.domain.schema import FIELD_REGISTRY

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from contextgraph.domain.conflicts import Conflict
    from contextgraph.domain.freshness import FreshnessScore
    from contextgraph.domain.model import ContextGraph, ProvenanceEntry
    from contextgraph.domain.schema import FieldRegistry

CORE_DOMAINS: Final[tuple[str, ...]] = ("identity", "objectives", "audience")
CONFLICT_PENALTY: Final[int] = 20


@dataclass(frozen=True, slots=True)
class HealthWeights:
    completeness: float = 0.30
    freshness: float = 0.25
    consistency: float = 0.25
    confidence: float = 0.20

    def __post_init__(self) -> None:
        parts = (self.completeness, self.freshness, self.consistency, self.confidence)
        if any(part < 0 for part in parts):
            raise ValueError("Health weights must not be negative")
        if not math.isclose(sum(parts), 1.0, abs_tol=1e-6):
            raise ValueError(f"Health weights must sum to 1, got {sum(parts):.4f}")


DEFAULT_HEALTH_WEIGHTS: Final[HealthWeights] = HealthWeights()


class HealthStatus(StrEnum):
    HEALTHY = "healthy"
    PARTIAL = "partial"
    EMPTY = "empty"
    UNAVAILABLE = "unavailable"


class HealthSeverity(StrEnum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True, slots=True, kw_only=True)
class HealthSummary:
    overall: int
    completeness: float
    freshness: float
    consistency: float
    confidence: float
    status: HealthStatus
    severity: HealthSeverity
    missing_fields: tuple[str, ...] = ()
    unresolved_conflicts: int = 0


def severity_for(overall: float) -> HealthSeverity:
    if overall >= 80:
        return HealthSeverity.HEALTHY
    if overall >= 50:
        return HealthSeverity.DEGRADED
    return HealthSeverity.UNHEALTHY


def _mean(values: Iterable[float]) -> float:
    collected = list(values)
    return sum(collected) / len(collected) if collected else 0.0


def compute_health(
    provenance_map: Mapping[str, Sequence[ProvenanceEntry]],
    conflicts: Sequence[Conflict],
    freshness_scores: Iterable[float],
    missing_fields: Sequence[str],
    *,
    total_required: int,
    weights: HealthWeights = DEFAULT_HEALTH_WEIGHTS,
    missing_core_domains: Sequence[str] = (),
) -> HealthSummary:
    filled = max(0, total_required - len(missing_fields))
    completeness = filled / total_required * 100 if total_required else 0.0
    freshness = _mean(freshness_scores)
    unresolved = count_unresolved(conflicts)
    consistency = float(max(0, 100 - CONFLICT_PENALTY * unresolved))
    confidence = (
        _mean(history[0].confidence for history in provenance_map.values() if history) * 100
    )

    raw = (
        weights.completeness * completeness
        + weights.freshness * freshness
        + weights.consistency * consistency
        + weights.confidence * confidence
    )
    overall = math.floor(raw + 0.5)

    if not provenance_map:
        status = HealthStatus.EMPTY
    elif missing_fields or missing_core_domains:
        status = HealthStatus.PARTIAL
    else:
        status = HealthStatus.HEALTHY

    return HealthSummary(
        overall=overall,
        completeness=completeness,
        freshness=freshness,
        consistency=consistency,
        confidence=confidence,
        status=status,
        severity=severity_for(overall),
        missing_fields=tuple(missing_fields),
        unresolved_conflicts=unresolved,
    )


def unavailable_health() -> HealthSummary:
    return HealthSummary(
        overall=0,
        completeness=0.0,
        freshness=0.0,
        consistency=0.0,
        confidence=0.0,
        status=HealthStatus.UNAVAILABLE,
        severity=HealthSeverity.UNHEALTHY,
    )


def freshness_scores(graph: ContextGraph, *, as_of: datetime) -> dict[str, FreshnessScore]:
    scores: dict[str, FreshnessScore] = {}
    for path, node in graph.iter_fields():
        if node.set_at is None or not is_meaningful(node.value):
            continue
        scores[path] = score_freshness(path, node.set_at, node.verified_at, as_of=as_of)
    return scores


def graph_health(
    graph: ContextGraph | None,
    *,
    conflicts: Sequence[Conflict] = (),
    as_of: datetime | None = None,
    registry: FieldRegistry = FIELD_REGISTRY,
    weights: HealthWeights = DEFAULT_HEALTH_WEIGHTS,
) -> HealthSummary:
    """Derive every health input from ``graph``; critical fields are the required set."""

    if graph is None:
        return unavailable_health()

    moment = as_of or datetime.now(UTC)
    required = [definition.path for definition in registry if definition.critical]
    missing = [
        path
        for path in required
        if (node := graph.get(path)) is None or not is_meaningful(node.value)
    ]
    missing_core = [
        domain
        for domain in CORE_DOMAINS
        if not any(
            is_meaningful(node.value) for node in graph.domains.get(domain, {}).values()
        )
    ]
    return compute_health(
        graph.provenance_map(),
        conflicts,
        [score.score for score in freshness_scores(graph, as_of=moment).values()],
        missing,
        total_required=len(required),
        weights=weights,
        missing_core_domains=missing_core,
    )
