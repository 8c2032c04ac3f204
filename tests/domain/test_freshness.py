from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from contextgraph.domain.freshness import (
    DEFAULT_THRESHOLDS,
    FRESHNESS_THRESHOLDS,
    FreshnessThresholds,
    classify,
    decay_score,
    score_freshness,
)
from contextgraph.domain.model import FreshnessStatus, RefreshMethod

AS_OF = datetime(2025, 6, 1, tzinfo=UTC)


@pytest.mark.parametrize(
    ("age", "expected"),
    [
        (0, 100.0),
        (30, 90.0),
        (60, 80.0),
        (90, 60.0),
        (120, 40.0),
        (240, 10.0),
        (480, 5.0),
    ],
)
def test_decay_score_is_piecewise_linear(age: float, expected: float) -> None:
    assert decay_score(age, DEFAULT_THRESHOLDS) == expected


@pytest.mark.parametrize(
    ("age", "status"),
    [
        (60, FreshnessStatus.FRESH),
        (60.5, FreshnessStatus.AGING),
        (120, FreshnessStatus.AGING),
        (240, FreshnessStatus.STALE),
        (241, FreshnessStatus.EXPIRED),
    ],
)
def test_classify_switches_exactly_at_boundaries(age: float, status: FreshnessStatus) -> None:
    assert classify(age, DEFAULT_THRESHOLDS) is status


def test_thresholds_must_be_ordered() -> None:
    with pytest.raises(ValueError, match="fresh < stale < expired"):
        FreshnessThresholds(10, 5, 20)


def test_score_freshness_uses_exact_path_thresholds() -> None:
    set_at = AS_OF - timedelta(days=45)

    result = score_freshness("competitive.competitors", set_at, as_of=AS_OF)

    assert result.age_in_days == pytest.approx(45.0)
    assert result.status is FreshnessStatus.AGING
    assert result.score == 60.0
    assert result.refresh_by == set_at + timedelta(days=60)
    assert result.refresh_method is RefreshMethod.SCRAPE


def test_score_freshness_prefers_verified_at() -> None:
    set_at = AS_OF - timedelta(days=400)
    verified_at = AS_OF - timedelta(days=1)

    result = score_freshness("brand.positioning", set_at, verified_at, as_of=AS_OF)

    assert result.status is FreshnessStatus.FRESH
    assert result.age_in_days == pytest.approx(1.0)


def test_score_freshness_defaults_for_unknown_paths() -> None:
    result = score_freshness("mystery.field", AS_OF - timedelta(days=60), as_of=AS_OF)

    assert result.score == 80.0
    assert result.refresh_method is RefreshMethod.MANUAL


def test_score_freshness_treats_naive_timestamps_as_utc() -> None:
    naive = datetime(2025, 5, 31)  # noqa: DTZ001

    result = score_freshness("performanceMedia.targetCpa", naive, as_of=AS_OF)

    assert result.age_in_days == pytest.approx(1.0)
    assert result.refresh_method is RefreshMethod.API


def test_score_freshness_is_reproducible() -> None:
    set_at = AS_OF - timedelta(days=17, hours=5)

    first = score_freshness("seo.primaryKeywords", set_at, as_of=AS_OF)
    second = score_freshness("seo.primaryKeywords", set_at, as_of=AS_OF)

    assert first == second


STATUS_ORDER = (
    FreshnessStatus.FRESH,
    FreshnessStatus.AGING,
    FreshnessStatus.STALE,
    FreshnessStatus.EXPIRED,
)


@pytest.mark.parametrize(
    "field_path",
    [
        "competitive.competitors",
        "competitive.marketPosition",
        "performanceMedia.targetCpa",
        "audience.icpDescription",
        "identity.industry",
        "mystery.field",
    ],
)
def test_score_never_increases_with_age(field_path: str) -> None:
    thresholds = FRESHNESS_THRESHOLDS.lookup(field_path) or DEFAULT_THRESHOLDS
    boundaries = (thresholds.fresh_days, thresholds.stale_days, thresholds.expired_days)
    hours = range(0, int(thresholds.expired_days * 2 * 24) + 1, 6)

    results = [
        score_freshness(field_path, AS_OF - timedelta(hours=hour), as_of=AS_OF) for hour in hours
    ]

    scores = [result.score for result in results]
    assert all(later <= earlier for earlier, later in zip(scores, scores[1:], strict=False))
    ranks = [STATUS_ORDER.index(result.status) for result in results]
    assert ranks == sorted(ranks)
    assert set(ranks) == {0, 1, 2, 3}
    for index, boundary in enumerate(boundaries):
        at = score_freshness(field_path, AS_OF - timedelta(days=boundary), as_of=AS_OF)
        past = score_freshness(field_path, AS_OF - timedelta(days=boundary, hours=1), as_of=AS_OF)
        assert at.status is STATUS_ORDER[index]
        assert past.status is STATUS_ORDER[index + 1]
