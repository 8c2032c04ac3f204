from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Sequence

    from contextgraph.domain.model.enums import Source

PROVENANCE_LIMIT: Final[int] = 5


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC and normalise aware ones to UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class ProvenanceEntry:
    """One write to a field: who, when, and how sure they were."""

    source: Source
    confidence: float
    updated_at: datetime
    source_run_id: str | None = None
    evidence: str | None = None
    verified_at: datetime | None = None
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be within [0, 1], got {self.confidence}")
        object.__setattr__(self, "updated_at", as_utc(self.updated_at))
        if self.verified_at is not None:
            object.__setattr__(self, "verified_at", as_utc(self.verified_at))


def prepend_provenance(
    history: Sequence[ProvenanceEntry],
    entry: ProvenanceEntry,
    *,
    limit: int = PROVENANCE_LIMIT,
) -> tuple[ProvenanceEntry, ...]:
    """Return ``history`` with ``entry`` first, dropping the oldest entries beyond ``limit``."""

    if limit < 1:
        raise ValueError("Provenance limit must be at least 1")
    return (entry, *history[: limit - 1])
