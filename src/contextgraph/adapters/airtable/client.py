"""Airtable-backed ``GraphStore``: one record per company in a graph table."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from contextgraph.adapters.document import dump_graph, parse_graph
from contextgraph.adapters.http_resilience import ResilientClient
from contextgraph.config import AirtableConfig, get_airtable_config
from contextgraph.domain.ports.persistence import GraphStoreError, StaleGraphError

from .schema import ErrorResponse, GraphRecordPayload, ListRecordsResponse

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

    from contextgraph.config import ResilienceConfig
    from contextgraph.domain.model import ContextGraph

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _formula_literal(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class AirtableAPIError(RuntimeError):
    """Raised when the Airtable API returns an application-level error."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class AirtableGraphStore:
    config: AirtableConfig = field(default_factory=get_airtable_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    @property
    def table_path(self) -> str:
        return f"{self.config.base_id}/{quote(self.config.table_name, safe='')}"

    def load_graph(self, company_id: str) -> ContextGraph | None:
        record = self._run(self._find_record(company_id), company_id)
        if record is None or not record.fields.graph_json:
            return None
        return parse_graph(record.fields.graph_json, company_id=company_id)

    def save_graph(self, graph: ContextGraph, writer_tag: str) -> None:
        self._run(self._save(graph, writer_tag), graph.company_id)

    def _run[T](self, operation: Coroutine[object, object, T], company_id: str) -> T:
        try:
            return asyncio.run(operation)
        except (AirtableAPIError, httpx.HTTPError, ValidationError) as exc:
            log.exception("Airtable graph store failed for %s", company_id)
            raise GraphStoreError(f"Airtable request failed for {company_id}: {exc}") from exc

    async def _find_record(self, company_id: str) -> GraphRecordPayload | None:
        async with self.client_factory(self.config.resilience) as client:
            return await self._lookup(client, company_id)

    async def _lookup(
        self, client: ResilientClient, company_id: str
    ) -> GraphRecordPayload | None:
        params = {
            "filterByFormula": f"{{Company ID}} = {_formula_literal(company_id)}",
            "maxRecords": 1,
        }
        response = await client.get(self.table_path, params=params)
        payload = self._checked_payload(response)
        listing = ListRecordsResponse.model_validate(payload)
        return listing.records[0] if listing.records else None

    async def _save(self, graph: ContextGraph, writer_tag: str) -> None:
        fields: dict[str, object] = {
            "Company ID": graph.company_id,
            "Graph JSON": dump_graph(graph),
            "Version": graph.version,
            "Updated By": writer_tag,
            "Updated At": datetime.now(UTC).isoformat(),
        }
        async with self.client_factory(self.config.resilience) as client:
            existing = await self._lookup(client, graph.company_id)
            if existing is None:
                response = await client.post(
                    self.table_path, json={"records": [{"fields": fields}], "typecast": True}
                )
            else:
                stored_version = existing.fields.version or 0
                if graph.version <= stored_version:
                    raise StaleGraphError(
                        f"Graph for {graph.company_id} is at version {stored_version}; "
                        f"refusing to save version {graph.version}"
                    )
                response = await client.patch(
                    self.table_path,
                    json={"records": [{"id": existing.id, "fields": fields}], "typecast": True},
                )
            self._checked_payload(response)
        log.info(
            "Saved graph for %s version %d to Airtable (%s)",
            graph.company_id,
            graph.version,
            writer_tag,
        )

    @staticmethod
    def _checked_payload(response: httpx.Response) -> object:
        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = None
        if isinstance(payload, dict) and "error" in payload:
            error = ErrorResponse.model_validate(payload).error
            message = error if isinstance(error, str) else (error.message or error.type)
            log.error("Airtable API error %s: %s", response.status_code, message)
            raise AirtableAPIError(message, status_code=response.status_code)
        response.raise_for_status()
        return payload


if TYPE_CHECKING:
    from contextgraph.domain.ports.persistence import GraphStore

    _store_check: GraphStore = AirtableGraphStore()
