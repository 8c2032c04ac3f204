"""Ports for persisting context graphs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contextgraph.domain.model import ContextGraph


class GraphStoreError(RuntimeError):
    """Raised when the graph store cannot load or save a graph."""


class MalformedGraphError(GraphStoreError):
    """Raised when a stored graph document cannot be decoded."""


class StaleGraphError(GraphStoreError):
    """Raised when a save would overwrite a newer stored version."""


@runtime_checkable
class GraphStore(Protocol):
    """Opaque load/save of one JSON graph document per company."""

    def load_graph(self, company_id: str) -> ContextGraph | None: ...

    def save_graph(self, graph: ContextGraph, writer_tag: str) -> None: ...


@runtime_checkable
class GraphRepository(Protocol):
    """Session-scoped access to stored graphs, used inside a unit of work."""

    def get(self, company_id: str) -> ContextGraph | None: ...

    def put(self, graph: ContextGraph, *, writer_tag: str) -> None: ...
