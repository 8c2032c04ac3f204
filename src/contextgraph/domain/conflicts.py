"""Conflict detection and rule-based auto-resolution.

A conflict exists when an incoming value disagrees with a field's current
value. Conflicts are derived on demand, never stored. ``auto_resolve`` walks an
ordered rule list: the first enabled rule whose pattern matches the field path
decides, and within it the side whose source appears earlier in the priority
list wins. When neither side is listed the conflict stays unresolved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from contextgraph.domain.authority import DOMAIN_AUTHORITIES
from contextgraph.domain.model import (
    ProducerKind,
    ResolutionStrategy,
    ResolvedBy,
    Source,
    is_human,
    producer_kind,
)
from contextgraph.domain.model.sources import LOW_TRUST_SOURCES, SCRAPE_SOURCES
from contextgraph.domain.patterns import match_pattern

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import datetime

    from contextgraph.domain.authority import DomainAuthority
    from contextgraph.domain.model import FieldSnapshot, FieldValue

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class Conflict:
    field_path: str
    current_value: FieldValue
    current_source: Source | None
    current_updated_at: datetime | None
    new_value: object
    new_source: Source
    recommended: ResolutionStrategy
    resolved_value: object | None = None
    resolved_source: Source | None = None
    resolved_by: ResolvedBy | None = None
    rule: str | None = None

    @property
    def resolved(self) -> bool:
        return self.resolved_by is not None


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolutionRule:
    pattern: str
    priority: tuple[Source, ...]
    enabled: bool = True
    name: str | None = None


def _comparable(value: object) -> object:
    if isinstance(value, tuple | list):
        return [_comparable(item) for item in value]
    if isinstance(value, dict):
        return {key: _comparable(item) for key, item in value.items()}
    return value


def values_equal(left: object, right: object) -> bool:
    return _comparable(left) == _comparable(right)


def recommend_strategy(current_source: Source | None, new_source: Source) -> ResolutionStrategy:
    sides = {new_source} if current_source is None else {current_source, new_source}
    if any(is_human(source) for source in sides):
        return ResolutionStrategy.USER_WINS
    if sides & LOW_TRUST_SOURCES:
        return ResolutionStrategy.NEWER_WINS
    kinds = {producer_kind(source) for source in sides}
    if ProducerKind.API in kinds and sides & SCRAPE_SOURCES:
        return ResolutionStrategy.SOURCE_WINS
    return ResolutionStrategy.MANUAL


def detect_conflict(
    field_path: str,
    current: FieldSnapshot,
    new_value: object,
    new_source: Source,
) -> Conflict | None:
    """Return a conflict when ``new_value`` disagrees with the current value.

    Unset fields, locked fields and deep-equal values never conflict.
    """

    if current.locked or current.value is None:
        return None
    if values_equal(current.value, new_value):
        return None

    head = current.current
    current_source = head.source if head else None
    return Conflict(
        field_path=field_path,
        current_value=current.value,
        current_source=current_source,
        current_updated_at=head.updated_at if head else None,
        new_value=new_value,
        new_source=new_source,
        recommended=recommend_strategy(current_source, new_source),
    )


def _rank(priority: Sequence[Source], source: Source | None) -> int | None:
    if source is None:
        return None
    try:
        return priority.index(source)
    except ValueError:
        return None


def auto_resolve(conflict: Conflict, rules: Sequence[ResolutionRule]) -> Conflict:
    if conflict.resolved:
        return conflict

    for rule in rules:
        if not rule.enabled or not match_pattern(conflict.field_path, rule.pattern):
            continue
        current_rank = _rank(rule.priority, conflict.current_source)
        new_rank = _rank(rule.priority, conflict.new_source)
        if current_rank is None and new_rank is None:
            log.debug(
                "Rule %s matched %s but lists neither %s nor %s",
                rule.name or rule.pattern,
                conflict.field_path,
                conflict.current_source,
                conflict.new_source,
            )
            return conflict
        new_wins = current_rank is None or (new_rank is not None and new_rank <= current_rank)
        return replace(
            conflict,
            resolved_value=conflict.new_value if new_wins else conflict.current_value,
            resolved_source=conflict.new_source if new_wins else conflict.current_source,
            resolved_by=ResolvedBy.AUTO,
            rule=rule.name or rule.pattern,
        )
    return conflict


def resolve_manually(conflict: Conflict, *, value: object, source: Source) -> Conflict:
    return replace(
        conflict,
        resolved_value=value,
        resolved_source=source,
        resolved_by=ResolvedBy.MANUAL,
        rule=None,
    )


def default_resolution_rules(
    authorities: Mapping[str, DomainAuthority] = DOMAIN_AUTHORITIES,
) -> tuple[ResolutionRule, ...]:
    """One rule per domain: human sources first, then the domain's priority list."""

    human_first = (Source.USER, Source.MANUAL, Source.STRATEGY, Source.QBR)
    return tuple(
        ResolutionRule(
            pattern=f"{name}.*",
            priority=(*human_first, *authority.priority),
            name=f"{name}-priority",
        )
        for name, authority in authorities.items()
    )


def count_unresolved(conflicts: Sequence[Conflict]) -> int:
    return sum(1 for conflict in conflicts if not conflict.resolved)
