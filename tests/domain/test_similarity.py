from __future__ import annotations

import pytest

from contextgraph.domain.similarity import closest_match, levenshtein, similarity


def test_levenshtein() -> None:
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3
    assert levenshtein("abc", "abc") == 0


def test_similarity_is_case_insensitive() -> None:
    assert similarity("ICP", "icp") == 1.0
    assert similarity("", "") == 1.0
    assert similarity("abcd", "abcx") == pytest.approx(0.75)


def test_closest_match_honours_threshold() -> None:
    candidates = ["brand.positioning", "audience.icpDescriptions"]

    match = closest_match("audience.icpDescription", candidates, threshold=0.7)

    assert match is not None
    assert match[0] == "audience.icpDescriptions"
    assert closest_match("objectives.kpis", candidates, threshold=0.7) is None


def test_closest_match_ties_go_to_first_candidate() -> None:
    match = closest_match("abc", ["abx", "axc"], threshold=0.5)

    assert match == ("abx", pytest.approx(2 / 3))
