"""Static metadata about producers: kind, display name, default confidence."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from contextgraph.domain.model.enums import ProducerKind, Source

if TYPE_CHECKING:
    from collections.abc import Mapping

HUMAN_SOURCES: Final[frozenset[Source]] = frozenset(
    {Source.USER, Source.MANUAL, Source.STRATEGY, Source.QBR}
)

# Sources whose values are guesses rather than observations.
LOW_TRUST_SOURCES: Final[frozenset[Source]] = frozenset({Source.BRAIN, Source.INFERRED})

# Sources that read the company's public web presence.
SCRAPE_SOURCES: Final[frozenset[Source]] = frozenset(
    {
        Source.WEBSITE_LAB,
        Source.UX_LAB,
        Source.SEO_LAB,
        Source.CONTENT_LAB,
        Source.FCB,
    }
)

_KINDS: Final[Mapping[Source, ProducerKind]] = {
    **dict.fromkeys(HUMAN_SOURCES, ProducerKind.HUMAN),
    **dict.fromkeys(
        (
            Source.BRAND_LAB,
            Source.AUDIENCE_LAB,
            Source.WEBSITE_LAB,
            Source.UX_LAB,
            Source.CONTENT_LAB,
            Source.SEO_LAB,
            Source.DEMAND_LAB,
            Source.MEDIA_LAB,
            Source.OPS_LAB,
            Source.COMPETITION_V4,
            Source.COMPETITION_LAB,
            Source.GAP_IA,
            Source.GAP_FULL,
            Source.GAP_HEAVY,
        ),
        ProducerKind.ANALYSIS_MODULE,
    ),
    Source.GAP_PLAN: ProducerKind.PLANNING_MODULE,
    **dict.fromkeys((Source.FCB, Source.BRAIN, Source.INFERRED), ProducerKind.INFERENCE),
    **dict.fromkeys(
        (
            Source.ANALYTICS_GA4,
            Source.ANALYTICS_GSC,
            Source.ANALYTICS_GADS,
            Source.MEDIA_COCKPIT,
            Source.MEDIA_MEMORY,
        ),
        ProducerKind.API,
    ),
    **dict.fromkeys((Source.IMPORT, Source.AIRTABLE, Source.SETUP_WIZARD), ProducerKind.IMPORT),
}

DISPLAY_NAMES: Final[Mapping[Source, str]] = {
    Source.USER: "User Edit",
    Source.MANUAL: "Manual Entry",
    Source.STRATEGY: "Strategy Editor",
    Source.QBR: "QBR",
    Source.BRAND_LAB: "Brand Lab",
    Source.AUDIENCE_LAB: "Audience Lab",
    Source.WEBSITE_LAB: "Website Lab",
    Source.UX_LAB: "UX Lab",
    Source.CONTENT_LAB: "Content Lab",
    Source.SEO_LAB: "SEO Lab",
    Source.DEMAND_LAB: "Demand Lab",
    Source.MEDIA_LAB: "Media Lab",
    Source.OPS_LAB: "Ops Lab",
    Source.COMPETITION_V4: "Competition Analysis",
    Source.COMPETITION_LAB: "Competition Lab (legacy)",
    Source.GAP_IA: "GAP Initial Assessment",
    Source.GAP_FULL: "GAP Full",
    Source.GAP_HEAVY: "GAP Heavy",
    Source.GAP_PLAN: "GAP Plan",
    Source.FCB: "Foundational Context Builder",
    Source.BRAIN: "AI Brain",
    Source.INFERRED: "Inferred",
    Source.ANALYTICS_GA4: "Google Analytics 4",
    Source.ANALYTICS_GSC: "Google Search Console",
    Source.ANALYTICS_GADS: "Google Ads",
    Source.MEDIA_COCKPIT: "Media Cockpit",
    Source.MEDIA_MEMORY: "Media Memory",
    Source.IMPORT: "Import",
    Source.AIRTABLE: "Airtable Import",
    Source.SETUP_WIZARD: "Setup Wizard",
}

_DEFAULT_CONFIDENCE: Final[Mapping[ProducerKind, float]] = {
    ProducerKind.HUMAN: 0.95,
    ProducerKind.ANALYSIS_MODULE: 0.85,
    ProducerKind.PLANNING_MODULE: 0.6,
    ProducerKind.INFERENCE: 0.5,
    ProducerKind.API: 0.9,
    ProducerKind.IMPORT: 0.7,
}

_CONFIDENCE_OVERRIDES: Final[Mapping[Source, float]] = {
    Source.USER: 1.0,
    Source.MANUAL: 1.0,
    Source.GAP_HEAVY: 0.8,
    Source.GAP_IA: 0.7,
    Source.GAP_FULL: 0.6,
    Source.FCB: 0.65,
    Source.INFERRED: 0.4,
}


def is_human(source: Source) -> bool:
    return source in HUMAN_SOURCES


def producer_kind(source: Source) -> ProducerKind:
    return _KINDS[source]


def display_name(source: Source) -> str:
    return DISPLAY_NAMES.get(source, source.value)


def default_confidence(source: Source) -> float:
    """Confidence assumed for a finding that does not report its own."""

    override = _CONFIDENCE_OVERRIDES.get(source)
    if override is not None:
        return override
    return _DEFAULT_CONFIDENCE[producer_kind(source)]
