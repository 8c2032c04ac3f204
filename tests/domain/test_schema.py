from __future__ import annotations

import pytest

from contextgraph.domain.model import FieldPathError, ValueType, Workflow
from contextgraph.domain.schema import (
    FIELD_REGISTRY,
    FieldDefinition,
    FieldRegistry,
    validate_value,
)


def _definition(key: str) -> FieldDefinition:
    definition = FIELD_REGISTRY.get(key)
    assert definition is not None
    return definition


def test_registry_resolves_keys_and_paths() -> None:
    by_key = FIELD_REGISTRY.get("audience_icp_primary")
    by_path = FIELD_REGISTRY.get("audience.icpDescription")

    assert by_key is not None
    assert by_key is by_path
    assert by_key.domain == "audience"
    assert "competitors" in FIELD_REGISTRY
    assert "competitive.competitors" in FIELD_REGISTRY
    assert "not_a_field" not in FIELD_REGISTRY
    assert FIELD_REGISTRY.get("not_a_field") is None


def test_registry_lists_fields_per_domain() -> None:
    competitive = [definition.key for definition in FIELD_REGISTRY.in_domain("competitive")]

    assert competitive == ["competitors", "market_position", "competitive_threats"]
    assert FIELD_REGISTRY.in_domain("unknown") == []


def test_registry_rejects_duplicates() -> None:
    first = FieldDefinition(key="a", path="brand.a", label="A")

    with pytest.raises(ValueError, match="Duplicate field key"):
        FieldRegistry([first, FieldDefinition(key="a", path="brand.b", label="B")])
    with pytest.raises(ValueError, match="Duplicate field path"):
        FieldRegistry([first, FieldDefinition(key="b", path="brand.a", label="B")])


def test_definition_requires_dotted_path() -> None:
    with pytest.raises(FieldPathError):
        FieldDefinition(key="bad", path="nodomain", label="Bad")


def test_required_for_workflow() -> None:
    media_keys = {definition.key for definition in FIELD_REGISTRY.required_for(Workflow.MEDIA)}

    assert media_keys == {
        "audience_icp_primary",
        "primary_objective",
        "active_channels",
        "monthly_media_budget",
    }


def test_critical_fields() -> None:
    critical = {definition.key for definition in FIELD_REGISTRY if definition.critical}

    assert {"company_name", "positioning", "value_proposition", "primary_objective"} <= critical
    assert "competitors" in critical


def test_validate_number_fields() -> None:
    target_cpa = _definition("target_cpa")

    assert target_cpa.value_type is ValueType.NUMBER
    assert validate_value(target_cpa, 12.5) is None
    assert validate_value(target_cpa, 0) is None
    assert validate_value(target_cpa, "12") == "expected a number, got str"
    assert validate_value(target_cpa, True) == "expected a number, got bool"
    assert validate_value(target_cpa, float("nan")) == "expected a finite number, got nan"
    assert validate_value(target_cpa, float("-inf")) == "expected a finite number, got -inf"
    assert validate_value(target_cpa, 10**400) is None


def test_validate_text_length_bounds() -> None:
    positioning = _definition("positioning")

    assert validate_value(positioning, "Too short") == "too short: 9 < 25 characters"
    assert validate_value(positioning, "x" * 2001) == "too long: 2001 > 2000 characters"
    assert validate_value(positioning, 42) == "expected text, got int"


def test_validate_text_rejects_generic_unless_allowed() -> None:
    industry = _definition("industry")
    company_name = _definition("company_name")

    reason = validate_value(industry, "The company offers consulting")
    assert reason is not None
    assert reason.startswith("templated_opener")
    assert validate_value(company_name, "Innovation and Quality") is None


def test_validate_text_lists() -> None:
    competitors = _definition("competitors")

    assert validate_value(competitors, ["Globex", "Initech"]) is None
    assert validate_value(competitors, ["Globex", 3]) == "expected a list of text"
    assert validate_value(competitors, "Globex") == "expected a list of text"
    too_many = [f"Competitor {index}" for index in range(26)]
    assert validate_value(competitors, too_many) == "too many items: 26 > 25"


def test_validate_text_list_checks_each_item() -> None:
    competitors = _definition("competitors")

    reason = validate_value(competitors, ["Globex", "IB", "tbd"])

    assert reason == "item 'IB': too short: 2 < 3 characters"
