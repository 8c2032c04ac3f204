"""Pydantic models for the stored JSON graph document.

Every store keeps one document per company. The camelCase aliases are the
persisted wire names; unknown keys are ignored so older documents keep
loading.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from contextgraph.domain.canonicalization import Finding
from contextgraph.domain.model import (
    ContextGraph,
    FieldNode,
    FieldStatus,
    ProvenanceEntry,
    Source,
    as_utc,
)
from contextgraph.domain.ports.persistence import MalformedGraphError

DOCUMENT_SCHEMA_VERSION = 1


class DocumentModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ProvenanceDocument(DocumentModel):
    source: Source
    confidence: float = Field(ge=0.0, le=1.0)
    updated_at: datetime = Field(alias="updatedAt")
    source_run_id: str | None = Field(default=None, alias="sourceRunId")
    evidence: str | None = None
    verified_at: datetime | None = Field(default=None, alias="verifiedAt")
    tags: list[str] = Field(default_factory=list)


class FieldDocument(DocumentModel):
    value: str | int | float | list[str] | None = None
    status: FieldStatus = FieldStatus.MISSING
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    provenance: list[ProvenanceDocument] = Field(default_factory=list)
    locked: bool = False
    lock_reason: str | None = Field(default=None, alias="lockReason")

    @field_validator("value", mode="before")
    @classmethod
    def _reject_booleans(cls, value: object) -> object:
        if isinstance(value, bool):
            raise ValueError("boolean field values are not supported")
        return value


class GraphDocument(DocumentModel):
    schema_version: int = Field(default=DOCUMENT_SCHEMA_VERSION, alias="schemaVersion")
    company_id: str = Field(alias="companyId", min_length=1)
    company_name: str | None = Field(default=None, alias="companyName")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    version: int = Field(default=0, ge=0)
    domains: dict[str, dict[str, FieldDocument]] = Field(default_factory=dict)


def _entry_to_document(entry: ProvenanceEntry) -> ProvenanceDocument:
    return ProvenanceDocument(
        source=entry.source,
        confidence=entry.confidence,
        updated_at=entry.updated_at,
        source_run_id=entry.source_run_id,
        evidence=entry.evidence,
        verified_at=entry.verified_at,
        tags=list(entry.tags),
    )


def _document_to_entry(document: ProvenanceDocument) -> ProvenanceEntry:
    return ProvenanceEntry(
        source=document.source,
        confidence=document.confidence,
        updated_at=as_utc(document.updated_at),
        source_run_id=document.source_run_id,
        evidence=document.evidence,
        verified_at=as_utc(document.verified_at) if document.verified_at else None,
        tags=tuple(document.tags),
    )


def graph_to_document(graph: ContextGraph) -> GraphDocument:
    return GraphDocument(
        company_id=graph.company_id,
        company_name=graph.company_name,
        created_at=graph.created_at,
        updated_at=graph.updated_at,
        version=graph.version,
        domains={
            domain: {
                name: FieldDocument(
                    value=node.value,
                    status=node.status,
                    confidence=node.confidence,
                    provenance=[_entry_to_document(entry) for entry in node.provenance],
                    locked=node.locked,
                    lock_reason=node.lock_reason,
                )
                for name, node in fields.items()
            }
            for domain, fields in graph.domains.items()
        },
    )


def document_to_graph(document: GraphDocument) -> ContextGraph:
    return ContextGraph(
        company_id=document.company_id,
        company_name=document.company_name,
        created_at=as_utc(document.created_at),
        updated_at=as_utc(document.updated_at),
        version=document.version,
        domains={
            domain: {
                name: FieldNode(
                    value=field.value,
                    status=field.status,
                    confidence=field.confidence,
                    provenance=tuple(_document_to_entry(entry) for entry in field.provenance),
                    locked=field.locked,
                    lock_reason=field.lock_reason,
                )
                for name, field in fields.items()
            }
            for domain, fields in document.domains.items()
        },
    )


def dump_graph(graph: ContextGraph) -> str:
    """Serialise ``graph`` to its stored JSON form."""

    return graph_to_document(graph).model_dump_json(by_alias=True)


def parse_graph(payload: str | bytes, *, company_id: str | None = None) -> ContextGraph:
    """Decode a stored document; raise ``MalformedGraphError`` when it is invalid."""

    try:
        document = GraphDocument.model_validate_json(payload)
    except ValidationError as exc:
        label = company_id or "unknown company"
        raise MalformedGraphError(f"Stored graph for {label} is malformed: {exc}") from exc
    if company_id is not None and document.company_id != company_id:
        raise MalformedGraphError(
            f"Stored graph belongs to {document.company_id}, expected {company_id}"
        )
    return document_to_graph(document)


class FindingPayload(DocumentModel):
    """One producer finding as supplied on the command line or over an API."""

    key: str = Field(min_length=1)
    value: object = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    sources: list[str] = Field(default_factory=list)
    evidence: str | None = None

    def to_finding(self) -> Finding:
        return Finding(
            key=self.key,
            value=self.value,
            confidence=self.confidence,
            sources=tuple(self.sources),
            evidence=self.evidence,
        )


class FindingBatch(DocumentModel):
    findings: list[FindingPayload]


_FINDINGS_ADAPTER: TypeAdapter[FindingBatch | list[FindingPayload]] = TypeAdapter(
    FindingBatch | list[FindingPayload]
)


def parse_findings(payload: str | bytes) -> list[Finding]:
    """Accept either ``{"findings": [...]}`` or a bare JSON list of findings."""

    parsed = _FINDINGS_ADAPTER.validate_json(payload)
    items = parsed.findings if isinstance(parsed, FindingBatch) else parsed
    return [item.to_finding() for item in items]
