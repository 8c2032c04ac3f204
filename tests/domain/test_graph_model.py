from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from contextgraph.domain.model import (
    ContextGraph,
    FieldPathError,
    FieldStatus,
    ProvenanceEntry,
    Source,
    as_utc,
    prepend_provenance,
    split_path,
)
from tests.helpers.graphs import NOW, field_node, make_graph


def _entry(day: int) -> ProvenanceEntry:
    return ProvenanceEntry(
        source=Source.GAP_IA, confidence=0.5, updated_at=NOW - timedelta(days=day)
    )


def test_split_path_keeps_subpaths_in_the_field_name() -> None:
    assert split_path("brand.positioning") == ("brand", "positioning")
    assert split_path(" seo.primaryKeywords.branded ") == ("seo", "primaryKeywords.branded")


@pytest.mark.parametrize("path", ["brand", "brand.", ".positioning", ""])
def test_split_path_rejects_malformed_paths(path: str) -> None:
    with pytest.raises(FieldPathError):
        split_path(path)


def test_resolve_reads_and_creates_fields() -> None:
    graph = make_graph(fields={"brand.positioning": field_node("Payroll for restaurants")})

    existing = graph.resolve("brand.positioning")
    missing = graph.resolve("audience.icpDescription")

    assert existing.exists()
    assert not missing.exists()
    assert missing.snapshot().status is FieldStatus.MISSING
    node = missing.ensure()
    assert graph.get("audience.icpDescription") is node
    assert sorted(graph.paths()) == ["audience.icpDescription", "brand.positioning"]


def test_snapshot_is_detached_from_the_node() -> None:
    graph = make_graph(fields={"competitive.competitors": field_node(["Globex"])})

    snapshot = graph.snapshot("competitive.competitors")
    assert isinstance(snapshot.value, list)
    snapshot.value.append("Initech")

    node = graph.get("competitive.competitors")
    assert node is not None
    assert node.value == ["Globex"]
    assert snapshot.current is not None
    assert snapshot.current.source is Source.GAP_HEAVY


def test_clone_is_independent() -> None:
    graph = make_graph(fields={"competitive.competitors": field_node(["Globex"])})

    working = graph.clone()
    working.version += 1
    node = working.resolve("competitive.competitors").ensure()
    node.value = ["Initech"]
    working.resolve("brand.positioning").ensure()

    original = graph.get("competitive.competitors")
    assert original is not None
    assert original.value == ["Globex"]
    assert graph.get("brand.positioning") is None
    assert graph.version == 1


def test_provenance_map_skips_fields_without_history() -> None:
    graph = make_graph(fields={"identity.industry": field_node("Payroll software")})
    graph.resolve("brand.positioning").ensure()

    provenance = graph.provenance_map()

    assert list(provenance) == ["identity.industry"]
    assert provenance["identity.industry"][0].confidence == 0.8


def test_empty_graph_timestamps_are_utc() -> None:
    naive = datetime(2025, 6, 1, 12)  # noqa: DTZ001
    graph = ContextGraph.empty("acme", now=naive)

    assert graph.version == 0
    assert graph.created_at == datetime(2025, 6, 1, 12, tzinfo=UTC)
    assert graph.updated_at.tzinfo is UTC


def test_field_node_exposes_head_timestamps() -> None:
    node = field_node("Payroll software", verified_at=NOW + timedelta(hours=1))

    assert node.set_at == NOW
    assert node.verified_at == NOW + timedelta(hours=1)


def test_prepend_provenance_keeps_newest_first_up_to_limit() -> None:
    history = tuple(_entry(day) for day in range(1, 6))

    updated = prepend_provenance(history, _entry(0), limit=5)

    assert len(updated) == 5
    assert updated[0] == _entry(0)
    assert updated[-1] == _entry(4)
    with pytest.raises(ValueError, match="at least 1"):
        prepend_provenance(history, _entry(0), limit=0)


@pytest.mark.parametrize("confidence", [-0.1, 1.01])
def test_provenance_confidence_must_be_within_bounds(confidence: float) -> None:
    with pytest.raises(ValueError, match="Confidence"):
        ProvenanceEntry(source=Source.USER, confidence=confidence, updated_at=NOW)


def test_as_utc_normalises_offsets() -> None:
    eastern = datetime(2025, 6, 1, 8, tzinfo=timezone(timedelta(hours=-4)))

    assert as_utc(eastern) == datetime(2025, 6, 1, 12, tzinfo=UTC)
    assert as_utc(eastern).tzinfo is UTC
