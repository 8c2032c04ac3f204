"""Airtable configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

AIRTABLE_BASE_URL = "https://api.airtable.com/v0/"
AIRTABLE_TIMEOUT_SECONDS = 15.0
DEFAULT_CONTEXT_TABLE = "Context Graphs"


@dataclass(frozen=True, slots=True)
class AirtableConfig:
    """Holds Airtable API configuration values."""

    api_key: str
    base_id: str
    table_name: str
    resilience: ResilienceConfig


def get_airtable_config(*, resilience: ResilienceConfig | None = None) -> AirtableConfig:
    values = require_env_vars(("AIRTABLE_API_KEY", "AIRTABLE_BASE_ID"))
    api_key = values["AIRTABLE_API_KEY"]
    return AirtableConfig(
        api_key=api_key,
        base_id=values["AIRTABLE_BASE_ID"],
        table_name=optional_env_var("AIRTABLE_CONTEXT_TABLE") or DEFAULT_CONTEXT_TABLE,
        resilience=resilience
        or ResilienceConfig(
            name="airtable",
            base_url=AIRTABLE_BASE_URL,
            timeout_seconds=AIRTABLE_TIMEOUT_SECONDS,
            # Airtable allows five requests per second per base
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            default_headers={"Authorization": f"Bearer {api_key}"},
        ),
    )
