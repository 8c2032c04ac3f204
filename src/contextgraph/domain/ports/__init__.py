"""Ports the domain depends on; adapters implement them."""

from __future__ import annotations

from contextgraph.domain.ports.persistence import (
    GraphRepository,
    GraphStore,
    GraphStoreError,
    MalformedGraphError,
    StaleGraphError,
)

__all__ = [
    "GraphRepository",
    "GraphStore",
    "GraphStoreError",
    "MalformedGraphError",
    "StaleGraphError",
]
