from __future__ import annotations

import pytest

from contextgraph.domain.canonicalization import canonicalize
from contextgraph.domain.model import FieldStatus, GateReason, Source
from contextgraph.domain.operator import (
    OperatorUpdateError,
    UnknownFieldError,
    confirm_field,
    lock_field,
    set_field_by_operator,
    unlock_field,
)
from tests.helpers.graph_store import FakeGraphStore
from tests.helpers.graphs import (
    ICP_TEXT,
    NOW,
    POSITIONING_TEXT,
    field_node,
    finding,
    make_graph,
)


def test_set_field_writes_a_confirmed_fact(graph_store: FakeGraphStore) -> None:
    graph_store.seed(make_graph(fields={"audience.icpDescription": field_node(ICP_TEXT)}))

    update = set_field_by_operator(
        "acme",
        "audience_icp_primary",
        "  Finance leads at regional restaurant chains  ",
        store=graph_store,
        now=NOW,
    )

    assert update.path == "audience.icpDescription"
    assert update.status is FieldStatus.CONFIRMED
    assert update.version == 2
    assert graph_store.saves[-1].writer_tag == "operator:user"
    node = graph_store.stored("acme").get("audience.icpDescription")
    assert node is not None
    assert node.value == "Finance leads at regional restaurant chains"
    assert node.confidence == 1.0
    assert node.verified_at == NOW
    assert [entry.source for entry in node.provenance] == [Source.USER, Source.GAP_HEAVY]


def test_set_field_accepts_paths_and_creates_the_graph(graph_store: FakeGraphStore) -> None:
    update = set_field_by_operator(
        "acme",
        "brand.positioning",
        POSITIONING_TEXT,
        store=graph_store,
        source=Source.STRATEGY,
        lock=True,
        lock_reason="Agreed with CMO",
        now=NOW,
    )

    assert update.locked
    assert update.version == 1
    node = graph_store.stored("acme").get("brand.positioning")
    assert node is not None
    assert node.locked
    assert node.lock_reason == "Agreed with CMO"
    assert graph_store.saves[-1].writer_tag == "operator:strategy"


def test_operator_may_write_terse_text(graph_store: FakeGraphStore) -> None:
    update = set_field_by_operator("acme", "positioning", "Best payroll", store=graph_store)

    assert update.value == "Best payroll"


def test_operator_may_write_exclusive_domains(graph_store: FakeGraphStore) -> None:
    update = set_field_by_operator(
        "acme", "competitors", ["Globex", " globex ", "Initech"], store=graph_store
    )

    assert update.value == ["Globex", "Initech"]


@pytest.mark.parametrize(
    ("key", "value", "message"),
    [
        ("industry", "   ", "empty value"),
        ("target_cpa", "abc", "expected a number"),
        ("target_cpa", float("inf"), "expected a finite number"),
        ("competitors", "Globex", "expected a list of text"),
        ("conversion_rate", 0.031, "user_override_disabled"),
    ],
)
def test_set_field_rejects_invalid_updates(
    graph_store: FakeGraphStore, key: str, value: object, message: str
) -> None:
    with pytest.raises(OperatorUpdateError, match=message):
        set_field_by_operator("acme", key, value, store=graph_store)

    assert graph_store.saves == []


def test_set_field_requires_a_human_source(graph_store: FakeGraphStore) -> None:
    with pytest.raises(OperatorUpdateError, match="not a human operator source"):
        set_field_by_operator("acme", "industry", "Payroll", store=graph_store, source=Source.FCB)


def test_unknown_field_raises_lookup_error(graph_store: FakeGraphStore) -> None:
    with pytest.raises(UnknownFieldError):
        set_field_by_operator("acme", "mystery", "Value", store=graph_store)
    with pytest.raises(LookupError):
        lock_field("acme", "brand.mystery", store=graph_store)


def test_confirm_promotes_the_proposed_value(graph_store: FakeGraphStore) -> None:
    graph_store.seed(make_graph(fields={"audience.icpDescription": field_node(ICP_TEXT)}))

    update = confirm_field("acme", "audience_icp_primary", store=graph_store, now=NOW)

    assert update.status is FieldStatus.CONFIRMED
    node = graph_store.stored("acme").get("audience.icpDescription")
    assert node is not None
    assert node.value == ICP_TEXT
    assert node.confidence == 1.0
    assert node.provenance[0].evidence == "confirmed value from gap_heavy"


def test_confirm_requires_an_existing_value(graph_store: FakeGraphStore) -> None:
    with pytest.raises(OperatorUpdateError, match="No context graph"):
        confirm_field("acme", "industry", store=graph_store)

    graph_store.seed(make_graph())
    with pytest.raises(OperatorUpdateError, match="has no value"):
        confirm_field("acme", "industry", store=graph_store)


def test_lock_and_unlock_toggle_the_field(graph_store: FakeGraphStore) -> None:
    graph_store.seed(make_graph(fields={"brand.positioning": field_node(POSITIONING_TEXT)}))

    locked = lock_field("acme", "positioning", store=graph_store, reason="Legal review")
    skipped = canonicalize(
        "acme",
        [finding("positioning", f"{POSITIONING_TEXT} and bars", confidence=0.99)],
        store=graph_store,
        source=Source.BRAND_LAB,
        now=NOW,
    )
    unlocked = unlock_field("acme", "positioning", store=graph_store)

    assert locked.locked
    assert [outcome.reason for outcome in skipped.skipped] == [GateReason.LOCKED]
    assert not unlocked.locked
    node = graph_store.stored("acme").get("brand.positioning")
    assert node is not None
    assert node.lock_reason is None
    assert node.status is FieldStatus.PROPOSED


def test_unlock_on_missing_graph_raises(graph_store: FakeGraphStore) -> None:
    with pytest.raises(OperatorUpdateError):
        unlock_field("acme", "positioning", store=graph_store)
