"""Public interface for the Airtable adapter."""

from __future__ import annotations

from .client import AirtableAPIError, AirtableGraphStore
from .schema import GraphFields, GraphRecordPayload, ListRecordsResponse

__all__ = [
    "AirtableAPIError",
    "AirtableGraphStore",
    "GraphFields",
    "GraphRecordPayload",
    "ListRecordsResponse",
]
