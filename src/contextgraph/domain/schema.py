"""Field schema registry: the canonical keys the write path accepts.

Each definition maps a canonical key (``audience_icp_primary``) to its graph
path (``audience.icpDescription``), declares its value type, the workflows that
need it confirmed, which producers may propose it, and per-field validation
overrides. The registry is locked configuration; adding or renaming a field is a
schema migration, not a runtime operation.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Final

from contextgraph.domain.model import Source, SpecificityKind, ValueType, Workflow, split_path
from contextgraph.domain.quality import is_generic, is_meaningful

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

DEFAULT_MIN_TEXT_LENGTH: Final[int] = 3
DEFAULT_MAX_TEXT_LENGTH: Final[int] = 2000
DEFAULT_MAX_ITEMS: Final[int] = 50


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldValidation:
    """Per-field overrides on top of the defaults for the value type."""

    min_length: int | None = None
    max_length: int | None = None
    max_items: int | None = None
    reject_patterns: tuple[re.Pattern[str], ...] = ()
    allow_generic: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldDefinition:
    key: str
    path: str
    label: str
    value_type: ValueType = ValueType.TEXT
    required_for: frozenset[Workflow] = field(default_factory=frozenset[Workflow])
    proposable_by: frozenset[Source] | None = None
    validation: FieldValidation = field(default_factory=FieldValidation)
    specificity: SpecificityKind = SpecificityKind.NONE
    critical: bool = False

    def __post_init__(self) -> None:
        split_path(self.path)

    @property
    def domain(self) -> str:
        """Partition the field is stored in (authority may be overridden per path)."""

        return split_path(self.path)[0]


class FieldRegistry:
    """Lookup of field definitions by canonical key or by graph path."""

    def __init__(self, definitions: Iterable[FieldDefinition]) -> None:
        self._by_key: dict[str, FieldDefinition] = {}
        self._by_path: dict[str, FieldDefinition] = {}
        for definition in definitions:
            if definition.key in self._by_key:
                raise ValueError(f"Duplicate field key: {definition.key}")
            if definition.path in self._by_path:
                raise ValueError(f"Duplicate field path: {definition.path}")
            self._by_key[definition.key] = definition
            self._by_path[definition.path] = definition

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(self._by_key.values())

    def __len__(self) -> int:
        return len(self._by_key)

    def __contains__(self, key_or_path: object) -> bool:
        return isinstance(key_or_path, str) and self.get(key_or_path) is not None

    def get(self, key_or_path: str) -> FieldDefinition | None:
        return self._by_key.get(key_or_path) or self._by_path.get(key_or_path)

    def keys(self) -> list[str]:
        return list(self._by_key)

    def paths(self) -> list[str]:
        return list(self._by_path)

    def in_domain(self, domain: str) -> list[FieldDefinition]:
        return [definition for definition in self if definition.domain == domain]

    def required_for(self, workflow: Workflow) -> list[FieldDefinition]:
        return [definition for definition in self if workflow in definition.required_for]


def _text(
    key: str,
    path: str,
    label: str,
    *,
    required_for: Iterable[Workflow] = (),
    proposable_by: Iterable[Source] | None = None,
    validation: FieldValidation | None = None,
    specificity: SpecificityKind = SpecificityKind.NONE,
    critical: bool = False,
    value_type: ValueType = ValueType.TEXT,
) -> FieldDefinition:
    return FieldDefinition(
        key=key,
        path=path,
        label=label,
        value_type=value_type,
        required_for=frozenset(required_for),
        proposable_by=frozenset(proposable_by) if proposable_by is not None else None,
        validation=validation or FieldValidation(),
        specificity=specificity,
        critical=critical,
    )


_list = partial(_text, value_type=ValueType.TEXT_LIST)
_number = partial(_text, value_type=ValueType.NUMBER)


_STRATEGY = (Workflow.STRATEGY,)
_STRATEGY_AND_BRIEF = (Workflow.STRATEGY, Workflow.BRIEF)
_LAB_PROPOSERS = (
    Source.BRAND_LAB,
    Source.GAP_HEAVY,
    Source.GAP_FULL,
    Source.GAP_IA,
    Source.GAP_PLAN,
)

FIELD_DEFINITIONS: Final[tuple[FieldDefinition, ...]] = (
    # identity
    _text(
        "company_name",
        "identity.businessName",
        "Business name",
        required_for=_STRATEGY_AND_BRIEF,
        validation=FieldValidation(min_length=2, max_length=120, allow_generic=True),
        critical=True,
    ),
    _text("industry", "identity.industry", "Industry", required_for=_STRATEGY, critical=True),
    _text("business_model", "identity.businessModel", "Business model"),
    _text("geographic_footprint", "identity.geographicFootprint", "Geographic footprint"),
    # brand
    _text(
        "positioning",
        "brand.positioning",
        "Positioning",
        required_for=_STRATEGY_AND_BRIEF,
        proposable_by=(*_LAB_PROPOSERS, Source.FCB),
        validation=FieldValidation(min_length=25),
        specificity=SpecificityKind.POSITIONING,
        critical=True,
    ),
    _text(
        "value_proposition",
        "brand.valueProposition",
        "Value proposition",
        required_for=_STRATEGY_AND_BRIEF,
        proposable_by=(*_LAB_PROPOSERS, Source.FCB),
        validation=FieldValidation(min_length=15),
        critical=True,
    ),
    _list("brand_differentiators", "brand.differentiators", "Differentiators"),
    _text(
        "tone_of_voice",
        "brand.toneOfVoice",
        "Tone of voice",
        validation=FieldValidation(max_length=400),
    ),
    _text(
        "competitive_position",
        "brand.competitivePosition",
        "Competitive position",
        specificity=SpecificityKind.POSITIONING,
    ),
    # audience
    _text(
        "audience_icp_primary",
        "audience.icpDescription",
        "Ideal customer profile",
        required_for=(Workflow.STRATEGY, Workflow.MEDIA, Workflow.BRIEF),
        proposable_by=(
            Source.AUDIENCE_LAB,
            Source.GAP_HEAVY,
            Source.GAP_FULL,
            Source.GAP_IA,
            Source.GAP_PLAN,
        ),
        validation=FieldValidation(min_length=20),
        specificity=SpecificityKind.AUDIENCE,
        critical=True,
    ),
    _text(
        "audience_primary",
        "audience.primaryAudience",
        "Primary audience",
        validation=FieldValidation(min_length=10),
        specificity=SpecificityKind.AUDIENCE,
    ),
    _list("audience_segments", "audience.segments", "Audience segments"),
    _list("audience_pain_points", "audience.painPoints", "Audience pain points"),
    # product / offer
    _list(
        "primary_products",
        "productOffer.primaryProducts",
        "Primary products",
        required_for=(Workflow.STRATEGY, Workflow.PROGRAMS),
    ),
    _list("hero_products", "productOffer.heroProducts", "Hero products"),
    _text("pricing_model", "productOffer.pricingModel", "Pricing model"),
    # objectives
    _text(
        "primary_objective",
        "objectives.primaryObjective",
        "Primary objective",
        required_for=(Workflow.STRATEGY, Workflow.MEDIA, Workflow.PROGRAMS),
        critical=True,
    ),
    _list("kpis", "objectives.kpis", "KPIs"),
    # competitive
    _list(
        "competitors",
        "competitive.competitors",
        "Competitors",
        required_for=_STRATEGY,
        validation=FieldValidation(max_items=25, allow_generic=True),
        critical=True,
    ),
    _text("market_position", "competitive.marketPosition", "Market position"),
    _list("competitive_threats", "competitive.primaryThreats", "Competitive threats"),
    # website / content / seo
    _text("website_summary", "website.executiveSummary", "Website summary"),
    _list("website_conversion_blockers", "website.conversionBlocks", "Conversion blockers"),
    _list("content_pillars", "content.contentPillars", "Content pillars"),
    _list(
        "seo_keywords",
        "seo.primaryKeywords",
        "Primary keywords",
        validation=FieldValidation(min_length=2, allow_generic=True),
    ),
    # media / budget
    _list(
        "active_channels",
        "performanceMedia.activeChannels",
        "Active channels",
        required_for=(Workflow.MEDIA,),
        validation=FieldValidation(min_length=2, allow_generic=True),
    ),
    _number("target_cpa", "performanceMedia.targetCpa", "Target CPA"),
    _text("attribution_model", "performanceMedia.attributionModel", "Attribution model"),
    _number(
        "monthly_media_budget",
        "budgetOps.mediaSpendBudget",
        "Monthly media budget",
        required_for=(Workflow.MEDIA,),
    ),
    # historical (API-sourced)
    _number(
        "conversion_rate",
        "historical.conversionRate",
        "Conversion rate",
        proposable_by=(Source.ANALYTICS_GA4, Source.ANALYTICS_GADS),
    ),
)

FIELD_REGISTRY: Final[FieldRegistry] = FieldRegistry(FIELD_DEFINITIONS)


def _validate_text(definition: FieldDefinition, text: str) -> str | None:
    rules = definition.validation
    trimmed = text.strip()
    min_length = rules.min_length if rules.min_length is not None else DEFAULT_MIN_TEXT_LENGTH
    max_length = rules.max_length if rules.max_length is not None else DEFAULT_MAX_TEXT_LENGTH
    if len(trimmed) < min_length:
        return f"too short: {len(trimmed)} < {min_length} characters"
    if len(trimmed) > max_length:
        return f"too long: {len(trimmed)} > {max_length} characters"
    for pattern in rules.reject_patterns:
        if pattern.search(trimmed):
            return f"reject pattern: matched {pattern.pattern!r}"
    if not rules.allow_generic:
        return is_generic(trimmed)
    return None


def validate_value(definition: FieldDefinition, value: object) -> str | None:
    """Schema quality validation; return the failed rule or ``None`` when the value passes."""

    match definition.value_type:
        case ValueType.NUMBER:
            if isinstance(value, bool) or not isinstance(value, int | float):
                return f"expected a number, got {type(value).__name__}"
            if isinstance(value, float) and not math.isfinite(value):
                return f"expected a finite number, got {value}"
            return None
        case ValueType.TEXT:
            if not isinstance(value, str):
                return f"expected text, got {type(value).__name__}"
            return _validate_text(definition, value)
        case ValueType.TEXT_LIST:
            if not isinstance(value, list | tuple) or not all(
                isinstance(item, str) for item in value
            ):
                return "expected a list of text"
            items = [item for item in value if is_meaningful(item)]
            max_items = definition.validation.max_items or DEFAULT_MAX_ITEMS
            if len(items) > max_items:
                return f"too many items: {len(items)} > {max_items}"
            for item in items:
                reason = _validate_text(definition, item)
                if reason is not None:
                    return f"item {item!r}: {reason}"
            return None
