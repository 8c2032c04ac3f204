from __future__ import annotations

import logging

import pytest

from contextgraph.domain.authority import (
    DOMAIN_AUTHORITIES,
    DomainAuthority,
    exclusive_source,
    resolve_domain,
    validate_write,
)
from contextgraph.domain.model import Source


def test_resolve_domain_applies_field_overrides() -> None:
    override = resolve_domain("brand.competitivePosition")
    partition = resolve_domain("brand.positioning")

    assert override is not None
    assert override.name == "competitive"
    assert partition is not None
    assert partition.name == "brand"
    assert resolve_domain("mystery.field") is None


def test_validate_write_reasons() -> None:
    canonical = validate_write("brand.positioning", Source.BRAND_LAB)
    allowed = validate_write("brand.positioning", Source.GAP_HEAVY)
    denied = validate_write("brand.positioning", Source.ANALYTICS_GA4)
    human = validate_write("brand.positioning", Source.USER)

    assert (canonical.allowed, canonical.is_canonical, canonical.reason) == (
        True,
        True,
        "canonical_source",
    )
    assert (allowed.allowed, allowed.reason) == (True, "allowed_source")
    assert (denied.allowed, denied.reason) == (False, "source_not_allowed")
    assert (human.allowed, human.reason) == (True, "human_override")


def test_validate_write_respects_disabled_user_override() -> None:
    verdict = validate_write("historical.conversionRate", Source.USER)

    assert not verdict.allowed
    assert verdict.reason == "user_override_disabled"


def test_validate_write_allows_unknown_domain_with_warning(
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING, logger="contextgraph.domain.authority"):
        verdict = validate_write("mystery.field", Source.BRAIN)

    assert verdict.allowed
    assert verdict.reason == "unknown_domain"
    assert "No domain authority for mystery.field" in caplog.text


def test_human_write_depends_on_user_override() -> None:
    open_domain = DomainAuthority(
        name="custom",
        canonical_source=Source.BRAND_LAB,
        priority=(Source.BRAND_LAB, Source.FCB),
    )
    closed_domain = DomainAuthority(
        name="closed",
        canonical_source=Source.ANALYTICS_GA4,
        priority=(Source.ANALYTICS_GA4,),
        user_can_override=False,
    )

    assert open_domain.is_write_allowed(Source.USER)
    assert open_domain.is_write_allowed(Source.FCB)
    assert not open_domain.is_write_allowed(Source.INFERRED)
    assert not closed_domain.is_write_allowed(Source.MANUAL)
    assert closed_domain.is_write_allowed(Source.ANALYTICS_GA4)


def test_canonical_and_priority_sources_are_allowed() -> None:
    brand = DOMAIN_AUTHORITIES["brand"]

    assert brand.canonical_source is Source.BRAND_LAB
    assert brand.priority[0] is Source.BRAND_LAB
    assert Source.BRAND_LAB in brand.allowed_sources
    assert Source.GAP_PLAN in brand.allowed_sources


def test_exclusive_source() -> None:
    assert exclusive_source(resolve_domain("competitive.competitors")) is Source.COMPETITION_V4
    assert exclusive_source(resolve_domain("brand.competitivePosition")) is Source.COMPETITION_V4
    assert exclusive_source(resolve_domain("brand.positioning")) is None
    assert exclusive_source(None) is None
