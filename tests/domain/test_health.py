from __future__ import annotations

from datetime import timedelta

import pytest

from contextgraph.domain.conflicts import Conflict, detect_conflict
from contextgraph.domain.health import (
    HealthSeverity,
    HealthStatus,
    HealthWeights,
    compute_health,
    graph_health,
    severity_for,
)
from contextgraph.domain.model import ProvenanceEntry, Source
from tests.helpers.graphs import NOW, complete_graph, field_node, make_graph

EQUAL_WEIGHTS = HealthWeights(0.25, 0.25, 0.25, 0.25)


def _conflict(index: int) -> Conflict:
    snapshot = field_node(f"Old text {index}", source=Source.GAP_IA).snapshot("brand.positioning")
    conflict = detect_conflict("brand.positioning", snapshot, "New text", Source.BRAND_LAB)
    assert conflict is not None
    return conflict


def _history(confidence: float) -> tuple[ProvenanceEntry, ...]:
    return (ProvenanceEntry(source=Source.GAP_HEAVY, confidence=confidence, updated_at=NOW),)


def test_compute_health_combines_the_four_scores() -> None:
    summary = compute_health(
        {"brand.positioning": _history(0.5), "identity.industry": _history(1.0)},
        [_conflict(1), _conflict(2)],
        [80.0, 40.0],
        ["competitive.competitors"],
        total_required=4,
        weights=EQUAL_WEIGHTS,
    )

    assert summary.completeness == 75.0
    assert summary.freshness == 60.0
    assert summary.consistency == 60.0
    assert summary.confidence == 75.0
    assert summary.overall == 68
    assert summary.severity is HealthSeverity.DEGRADED
    assert summary.status is HealthStatus.PARTIAL
    assert summary.unresolved_conflicts == 2


def test_consistency_never_goes_negative() -> None:
    summary = compute_health(
        {"brand.positioning": _history(1.0)},
        [_conflict(index) for index in range(6)],
        [100.0],
        [],
        total_required=1,
    )

    assert summary.consistency == 0.0
    assert summary.status is HealthStatus.HEALTHY


@pytest.mark.parametrize(
    ("overall", "severity"),
    [
        (100, HealthSeverity.HEALTHY),
        (80, HealthSeverity.HEALTHY),
        (79.9, HealthSeverity.DEGRADED),
        (50, HealthSeverity.DEGRADED),
        (49, HealthSeverity.UNHEALTHY),
    ],
)
def test_severity_thresholds(overall: float, severity: HealthSeverity) -> None:
    assert severity_for(overall) is severity


def test_weights_must_sum_to_one() -> None:
    with pytest.raises(ValueError, match="sum to 1"):
        HealthWeights(0.5, 0.5, 0.5, 0.5)
    with pytest.raises(ValueError, match="negative"):
        HealthWeights(1.2, -0.2, 0.0, 0.0)


def test_missing_graph_is_unavailable() -> None:
    summary = graph_health(None)

    assert summary.status is HealthStatus.UNAVAILABLE
    assert summary.overall == 0
    assert summary.severity is HealthSeverity.UNHEALTHY


def test_empty_graph_has_only_consistency() -> None:
    summary = graph_health(make_graph(), as_of=NOW, weights=EQUAL_WEIGHTS)

    assert summary.status is HealthStatus.EMPTY
    assert summary.completeness == 0.0
    assert summary.consistency == 100.0
    assert summary.overall == 25
    assert len(summary.missing_fields) == 7


def test_complete_fresh_confirmed_graph_is_healthy() -> None:
    summary = graph_health(complete_graph(), as_of=NOW)

    assert summary.status is HealthStatus.HEALTHY
    assert summary.overall == 100
    assert summary.missing_fields == ()


def test_missing_core_domain_makes_health_partial() -> None:
    graph = complete_graph(
        overrides={"objectives.primaryObjective": None, "brand.positioning": None}
    )

    summary = graph_health(graph, as_of=NOW + timedelta(days=60))

    assert summary.status is HealthStatus.PARTIAL
    assert summary.missing_fields == ("brand.positioning", "objectives.primaryObjective")
    assert summary.freshness < 100.0


def test_unresolved_conflicts_lower_health() -> None:
    graph = complete_graph()

    clean = graph_health(graph, as_of=NOW)
    conflicted = graph_health(graph, conflicts=[_conflict(1)], as_of=NOW)

    assert conflicted.consistency == 80.0
    assert conflicted.overall == clean.overall - 5
