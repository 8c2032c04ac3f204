"""Edit-distance similarity used to suggest likely renamed field keys."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def levenshtein(left: str, right: str) -> int:
    if left == right:
        return 0
    if not left:
        return len(right)
    if not right:
        return len(left)
    if len(left) < len(right):
        left, right = right, left

    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            cost = 0 if left_char == right_char else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def similarity(left: str, right: str) -> float:
    """Case-insensitive similarity in [0, 1]; 1.0 means identical."""

    a, b = left.lower(), right.lower()
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein(a, b) / longest


def closest_match(
    target: str,
    candidates: Iterable[str],
    *,
    threshold: float,
) -> tuple[str, float] | None:
    """Best candidate at or above ``threshold``; ties go to the first seen."""

    best: tuple[str, float] | None = None
    for candidate in candidates:
        score = similarity(target, candidate)
        if score >= threshold and (best is None or score > best[1]):
            best = (candidate, score)
    return best
