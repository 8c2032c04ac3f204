"""Field-path wildcard matching shared by every pattern-keyed table.

Patterns are an exact path (``website.executiveSummary``), a prefix wildcard
(``website.*``) or the catch-all ``*``.
"""

from __future__ import annotations

from dataclasses import dataclass


def is_wildcard(pattern: str) -> bool:
    return pattern == "*" or pattern.endswith(".*")


def match_pattern(path: str, pattern: str) -> bool:
    if pattern == "*":
        return True
    if pattern.endswith(".*"):
        return path.startswith(pattern[:-1])
    return path == pattern


@dataclass(frozen=True, slots=True)
class PatternTable[T]:
    """Ordered ``(pattern, config)`` pairs with an optional default."""

    entries: tuple[tuple[str, T], ...]
    default: T | None = None

    def lookup(self, path: str) -> T | None:
        """Exact entry first, then the first matching wildcard, then the default."""

        for pattern, config in self.entries:
            if not is_wildcard(pattern) and pattern == path:
                return config
        for pattern, config in self.entries:
            if is_wildcard(pattern) and match_pattern(path, pattern):
                return config
        return self.default

    def first_match(self, path: str) -> T | None:
        """First entry in table order whose pattern matches; order decides."""

        for pattern, config in self.entries:
            if match_pattern(path, pattern):
                return config
        return self.default
