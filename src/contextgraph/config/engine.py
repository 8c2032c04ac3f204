"""Tunables for the canonicalization and scoring engine."""

from __future__ import annotations

from dataclasses import dataclass

from contextgraph.domain.coverage import DEFAULT_SIMILARITY_THRESHOLD
from contextgraph.domain.health import DEFAULT_HEALTH_WEIGHTS, HealthWeights
from contextgraph.domain.model import PROVENANCE_LIMIT
from contextgraph.domain.quality import DEFAULT_MAX_SENTENCES

from .env import float_env_var, optional_env_var
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class EngineConfig:
    provenance_limit: int = PROVENANCE_LIMIT
    max_sentences: int = DEFAULT_MAX_SENTENCES
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    health_weights: HealthWeights = DEFAULT_HEALTH_WEIGHTS


def parse_health_weights(raw: str) -> HealthWeights:
    """Parse ``completeness,freshness,consistency,confidence`` into weights."""

    parts = [part.strip() for part in raw.split(",")]
    if len(parts) != 4:
        raise ConfigurationError(
            f"CONTEXTGRAPH_HEALTH_WEIGHTS needs four comma-separated numbers, got {raw!r}"
        )
    try:
        completeness, freshness, consistency, confidence = (float(part) for part in parts)
        return HealthWeights(
            completeness=completeness,
            freshness=freshness,
            consistency=consistency,
            confidence=confidence,
        )
    except ValueError as exc:
        raise ConfigurationError(f"Invalid CONTEXTGRAPH_HEALTH_WEIGHTS: {exc}") from exc


def get_engine_config() -> EngineConfig:
    raw_weights = optional_env_var("CONTEXTGRAPH_HEALTH_WEIGHTS")
    threshold = float_env_var("CONTEXTGRAPH_SIMILARITY_THRESHOLD", DEFAULT_SIMILARITY_THRESHOLD)
    if not 0.0 < threshold <= 1.0:
        raise ConfigurationError(
            f"CONTEXTGRAPH_SIMILARITY_THRESHOLD must be within (0, 1], got {threshold}"
        )
    return EngineConfig(
        similarity_threshold=threshold,
        health_weights=(
            parse_health_weights(raw_weights) if raw_weights is not None else DEFAULT_HEALTH_WEIGHTS
        ),
    )
