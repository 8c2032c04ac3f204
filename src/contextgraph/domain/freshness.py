"""Freshness scoring: how far a field's value has decayed since it was set or verified.

The score is piecewise linear in age: 100 -> 80 across the fresh window,
80 -> 40 until the stale boundary, 40 -> 10 until the expired boundary, then
``10 * expired / age`` towards zero. Status changes exactly at each boundary.
The result is a pure function of its inputs; ``as_of`` is always explicit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Final

from contextgraph.domain.model import FreshnessStatus, RefreshMethod, as_utc, split_path
from contextgraph.domain.patterns import PatternTable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

_SECONDS_PER_DAY: Final[float] = 86400.0


@dataclass(frozen=True, slots=True)
class FreshnessThresholds:
    fresh_days: float
    stale_days: float
    expired_days: float

    def __post_init__(self) -> None:
        if not 0 < self.fresh_days < self.stale_days < self.expired_days:
            raise ValueError(
                "Thresholds must satisfy 0 < fresh < stale < expired, got "
                f"{self.fresh_days}/{self.stale_days}/{self.expired_days}"
            )


DEFAULT_THRESHOLDS: Final[FreshnessThresholds] = FreshnessThresholds(60, 120, 240)

FRESHNESS_THRESHOLDS: Final[PatternTable[FreshnessThresholds]] = PatternTable(
    entries=(
        ("competitive.competitors", FreshnessThresholds(30, 60, 120)),
        ("performanceMedia.*", FreshnessThresholds(7, 30, 90)),
        ("historical.*", FreshnessThresholds(7, 30, 90)),
        ("budgetOps.*", FreshnessThresholds(30, 60, 120)),
        ("website.*", FreshnessThresholds(30, 60, 120)),
        ("seo.*", FreshnessThresholds(30, 60, 120)),
        ("content.*", FreshnessThresholds(30, 90, 180)),
        ("competitive.*", FreshnessThresholds(30, 90, 180)),
        ("objectives.*", FreshnessThresholds(60, 120, 240)),
        ("audience.*", FreshnessThresholds(90, 180, 365)),
        ("brand.*", FreshnessThresholds(90, 180, 365)),
        ("productOffer.*", FreshnessThresholds(90, 180, 365)),
        ("identity.*", FreshnessThresholds(180, 365, 730)),
    ),
    default=DEFAULT_THRESHOLDS,
)

REFRESH_METHODS: Final[Mapping[str, RefreshMethod]] = {
    "website": RefreshMethod.SCRAPE,
    "seo": RefreshMethod.SCRAPE,
    "content": RefreshMethod.SCRAPE,
    "digitalInfra": RefreshMethod.SCRAPE,
    "social": RefreshMethod.SCRAPE,
    "competitive": RefreshMethod.SCRAPE,
    "performanceMedia": RefreshMethod.API,
    "historical": RefreshMethod.API,
}


@dataclass(frozen=True, slots=True, kw_only=True)
class FreshnessScore:
    age_in_days: float
    status: FreshnessStatus
    score: float
    refresh_by: datetime
    refresh_method: RefreshMethod


def decay_score(age_in_days: float, thresholds: FreshnessThresholds) -> float:
    fresh, stale, expired = thresholds.fresh_days, thresholds.stale_days, thresholds.expired_days
    age = max(0.0, age_in_days)
    if age <= fresh:
        score = 100.0 - 20.0 * age / fresh
    elif age <= stale:
        score = 80.0 - 40.0 * (age - fresh) / (stale - fresh)
    elif age <= expired:
        score = 40.0 - 30.0 * (age - stale) / (expired - stale)
    else:
        score = 10.0 * expired / age
    return round(score, 2)


def classify(age_in_days: float, thresholds: FreshnessThresholds) -> FreshnessStatus:
    if age_in_days <= thresholds.fresh_days:
        return FreshnessStatus.FRESH
    if age_in_days <= thresholds.stale_days:
        return FreshnessStatus.AGING
    if age_in_days <= thresholds.expired_days:
        return FreshnessStatus.STALE
    return FreshnessStatus.EXPIRED


def refresh_method_for(field_path: str) -> RefreshMethod:
    domain, _ = split_path(field_path)
    return REFRESH_METHODS.get(domain, RefreshMethod.MANUAL)


def score_freshness(
    field_path: str,
    set_at: datetime,
    verified_at: datetime | None = None,
    *,
    as_of: datetime,
    thresholds: PatternTable[FreshnessThresholds] = FRESHNESS_THRESHOLDS,
) -> FreshnessScore:
    reference = as_utc(verified_at or set_at)
    config = thresholds.lookup(field_path) or DEFAULT_THRESHOLDS
    age_in_days = max(0.0, (as_utc(as_of) - reference).total_seconds() / _SECONDS_PER_DAY)
    return FreshnessScore(
        age_in_days=age_in_days,
        status=classify(age_in_days, config),
        score=decay_score(age_in_days, config),
        refresh_by=reference + timedelta(days=config.stale_days),
        refresh_method=refresh_method_for(field_path),
    )
