"""Domain authority registry: which producers may write which partition.

Each graph partition ("domain") carries the set of sources allowed to write it,
its single canonical source, whether the human operator may override it, and an
ordered source priority that seeds the default conflict-resolution rules.

Lookups are pure. Unknown domains are allowed with a warning so new fields can
ship before their authority entry does.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from contextgraph.domain.model import Source, is_human, split_path

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class DomainAuthority:
    name: str
    canonical_source: Source
    priority: tuple[Source, ...]
    allowed_sources: frozenset[Source] = field(default_factory=frozenset[Source])
    user_can_override: bool = True
    exclusive: bool = False

    def __post_init__(self) -> None:
        allowed = self.allowed_sources | {self.canonical_source, *self.priority}
        object.__setattr__(self, "allowed_sources", frozenset(allowed))

    def is_write_allowed(self, source: Source) -> bool:
        if is_human(source) and self.user_can_override:
            return True
        return source in self.allowed_sources


@dataclass(frozen=True, slots=True, kw_only=True)
class WriteValidation:
    allowed: bool
    is_canonical: bool
    reason: str
    domain: DomainAuthority | None = None


def _authority(
    name: str,
    *priority: Source,
    extra: Iterable[Source] = (),
    user_can_override: bool = True,
    exclusive: bool = False,
) -> DomainAuthority:
    return DomainAuthority(
        name=name,
        canonical_source=priority[0],
        priority=priority,
        allowed_sources=frozenset(extra),
        user_can_override=user_can_override,
        exclusive=exclusive,
    )


DOMAIN_AUTHORITIES: Final[Mapping[str, DomainAuthority]] = {
    authority.name: authority
    for authority in (
        _authority(
            "identity",
            Source.GAP_HEAVY,
            Source.GAP_FULL,
            Source.GAP_IA,
            Source.SETUP_WIZARD,
            Source.FCB,
            Source.AIRTABLE,
            Source.BRAIN,
            Source.INFERRED,
            extra=(Source.IMPORT,),
        ),
        _authority(
            "brand",
            Source.BRAND_LAB,
            Source.GAP_HEAVY,
            Source.GAP_FULL,
            Source.GAP_IA,
            Source.FCB,
            Source.BRAIN,
            Source.INFERRED,
            extra=(Source.GAP_PLAN,),
        ),
        _authority(
            "audience",
            Source.AUDIENCE_LAB,
            Source.GAP_HEAVY,
            Source.GAP_FULL,
            Source.GAP_IA,
            Source.FCB,
            Source.BRAIN,
            Source.INFERRED,
            extra=(Source.GAP_PLAN,),
        ),
        _authority(
            "website",
            Source.WEBSITE_LAB,
            Source.UX_LAB,
            Source.GAP_HEAVY,
            Source.GAP_FULL,
            Source.GAP_IA,
            Source.FCB,
            Source.BRAIN,
            Source.INFERRED,
        ),
        _authority(
            "content",
            Source.CONTENT_LAB,
            Source.GAP_HEAVY,
            Source.SEO_LAB,
            Source.GAP_FULL,
            Source.GAP_IA,
            Source.FCB,
            Source.BRAIN,
            Source.INFERRED,
        ),
        _authority(
            "seo",
            Source.SEO_LAB,
            Source.GAP_HEAVY,
            Source.CONTENT_LAB,
            Source.GAP_FULL,
            Source.GAP_IA,
            Source.FCB,
            Source.BRAIN,
            Source.INFERRED,
            extra=(Source.ANALYTICS_GSC,),
        ),
        _authority(
            "performanceMedia",
            Source.MEDIA_LAB,
            Source.MEDIA_COCKPIT,
            Source.MEDIA_MEMORY,
            Source.DEMAND_LAB,
            Source.GAP_HEAVY,
            Source.GAP_FULL,
            Source.ANALYTICS_GADS,
            Source.BRAIN,
            Source.INFERRED,
            extra=(Source.GAP_PLAN,),
        ),
        _authority(
            "budgetOps",
            Source.MEDIA_LAB,
            Source.MEDIA_COCKPIT,
            Source.OPS_LAB,
            Source.MEDIA_MEMORY,
            Source.AIRTABLE,
            Source.BRAIN,
            Source.INFERRED,
            extra=(Source.GAP_PLAN,),
        ),
        _authority(
            "objectives",
            Source.GAP_HEAVY,
            Source.GAP_FULL,
            Source.GAP_IA,
            Source.SETUP_WIZARD,
            Source.FCB,
            Source.BRAIN,
            Source.INFERRED,
            extra=(Source.GAP_PLAN,),
        ),
        _authority(
            "productOffer",
            Source.GAP_HEAVY,
            Source.GAP_FULL,
            Source.GAP_IA,
            Source.FCB,
            Source.BRAIN,
            Source.INFERRED,
            extra=(Source.GAP_PLAN, Source.WEBSITE_LAB),
        ),
        _authority(
            "ops",
            Source.OPS_LAB,
            Source.GAP_HEAVY,
            Source.AIRTABLE,
            Source.BRAIN,
            Source.INFERRED,
        ),
        _authority(
            "historical",
            Source.ANALYTICS_GA4,
            Source.ANALYTICS_GADS,
            Source.ANALYTICS_GSC,
            Source.MEDIA_LAB,
            Source.MEDIA_COCKPIT,
            Source.MEDIA_MEMORY,
            user_can_override=False,
        ),
        _authority(
            "creative",
            Source.GAP_HEAVY,
            Source.BRAND_LAB,
            Source.CONTENT_LAB,
            Source.GAP_FULL,
            Source.GAP_IA,
            Source.FCB,
            Source.BRAIN,
            Source.INFERRED,
        ),
        _authority(
            "social",
            Source.GAP_IA,
            Source.GAP_HEAVY,
            Source.GAP_FULL,
            Source.FCB,
            Source.BRAIN,
            Source.INFERRED,
        ),
        _authority(
            "competitive",
            Source.COMPETITION_V4,
            Source.COMPETITION_LAB,
            Source.GAP_HEAVY,
            Source.GAP_FULL,
            Source.GAP_IA,
            Source.BRAND_LAB,
            Source.FCB,
            Source.BRAIN,
            Source.INFERRED,
            exclusive=True,
        ),
    )
}

# Paths whose authority differs from the partition they are stored in.
FIELD_DOMAIN_OVERRIDES: Final[Mapping[str, str]] = {
    "brand.competitivePosition": "competitive",
}


def resolve_domain(
    field_path: str,
    *,
    authorities: Mapping[str, DomainAuthority] = DOMAIN_AUTHORITIES,
    overrides: Mapping[str, str] = FIELD_DOMAIN_OVERRIDES,
) -> DomainAuthority | None:
    override = overrides.get(field_path)
    if override is not None:
        return authorities.get(override)
    partition, _ = split_path(field_path)
    return authorities.get(partition)


def is_write_allowed(source: Source, domain: DomainAuthority) -> bool:
    return domain.is_write_allowed(source)


def exclusive_source(domain: DomainAuthority | None) -> Source | None:
    """The only producer the write path accepts for an exclusive domain."""

    if domain is None or not domain.exclusive:
        return None
    return domain.canonical_source


def validate_write(
    field_path: str,
    source: Source,
    *,
    authorities: Mapping[str, DomainAuthority] = DOMAIN_AUTHORITIES,
    overrides: Mapping[str, str] = FIELD_DOMAIN_OVERRIDES,
) -> WriteValidation:
    domain = resolve_domain(field_path, authorities=authorities, overrides=overrides)
    if domain is None:
        log.warning("No domain authority for %s; allowing write from %s", field_path, source)
        return WriteValidation(allowed=True, is_canonical=False, reason="unknown_domain")

    is_canonical = source == domain.canonical_source
    if is_human(source):
        if domain.user_can_override:
            return WriteValidation(
                allowed=True, is_canonical=is_canonical, reason="human_override", domain=domain
            )
        if source not in domain.allowed_sources:
            return WriteValidation(
                allowed=False,
                is_canonical=False,
                reason="user_override_disabled",
                domain=domain,
            )
    if source not in domain.allowed_sources:
        return WriteValidation(
            allowed=False, is_canonical=False, reason="source_not_allowed", domain=domain
        )
    reason = "canonical_source" if is_canonical else "allowed_source"
    return WriteValidation(allowed=True, is_canonical=is_canonical, reason=reason, domain=domain)
