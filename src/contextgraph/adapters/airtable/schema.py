"""Pydantic models describing the Airtable REST payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AirtableBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class GraphFields(AirtableBaseModel):
    company_id: str = Field(alias="Company ID")
    graph_json: str | None = Field(default=None, alias="Graph JSON")
    version: int | None = Field(default=None, alias="Version")
    updated_by: str | None = Field(default=None, alias="Updated By")
    updated_at: datetime | None = Field(default=None, alias="Updated At")


class GraphRecordPayload(AirtableBaseModel):
    id: str
    created_time: datetime | None = Field(default=None, alias="createdTime")
    fields: GraphFields


class ListRecordsResponse(AirtableBaseModel):
    records: list[GraphRecordPayload]
    offset: str | None = None


class ErrorDetail(AirtableBaseModel):
    type: str
    message: str | None = None


class ErrorResponse(AirtableBaseModel):
    error: ErrorDetail | str
