"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Source(StrEnum):
    """Producer classification recorded on every provenance entry."""

    # human operator
    USER = "user"
    MANUAL = "manual"
    STRATEGY = "strategy"
    QBR = "qbr"

    # automated analysis modules (labs)
    BRAND_LAB = "brand_lab"
    AUDIENCE_LAB = "audience_lab"
    WEBSITE_LAB = "website_lab"
    UX_LAB = "ux_lab"
    CONTENT_LAB = "content_lab"
    SEO_LAB = "seo_lab"
    DEMAND_LAB = "demand_lab"
    MEDIA_LAB = "media_lab"
    OPS_LAB = "ops_lab"
    COMPETITION_V4 = "competition_v4"
    COMPETITION_LAB = "competition_lab"
    GAP_IA = "gap_ia"
    GAP_FULL = "gap_full"
    GAP_HEAVY = "gap_heavy"

    # planning module
    GAP_PLAN = "gap_plan"

    # low-trust inference
    FCB = "fcb"
    BRAIN = "brain"
    INFERRED = "inferred"

    # API pulls
    ANALYTICS_GA4 = "analytics_ga4"
    ANALYTICS_GSC = "analytics_gsc"
    ANALYTICS_GADS = "analytics_gads"
    MEDIA_COCKPIT = "media_cockpit"
    MEDIA_MEMORY = "media_memory"

    # imports
    IMPORT = "import"
    AIRTABLE = "airtable"
    SETUP_WIZARD = "setup_wizard"


class ProducerKind(StrEnum):
    HUMAN = "human"
    ANALYSIS_MODULE = "analysis_module"
    PLANNING_MODULE = "planning_module"
    INFERENCE = "inference"
    API = "api"
    IMPORT = "import"


class FieldStatus(StrEnum):
    MISSING = "missing"
    PROPOSED = "proposed"
    CONFIRMED = "confirmed"


class ValueType(StrEnum):
    TEXT = "text"
    TEXT_LIST = "text_list"
    NUMBER = "number"


class SpecificityKind(StrEnum):
    """Which specialised specificity check a text field is held to."""

    NONE = "none"
    AUDIENCE = "audience"
    POSITIONING = "positioning"


class Workflow(StrEnum):
    """Downstream workflows that gate on confirmed context."""

    STRATEGY = "strategy"
    PROGRAMS = "programs"
    MEDIA = "media"
    BRIEF = "brief"


class FreshnessStatus(StrEnum):
    FRESH = "fresh"
    AGING = "aging"
    STALE = "stale"
    EXPIRED = "expired"


class RefreshMethod(StrEnum):
    SCRAPE = "scrape"
    API = "api"
    MANUAL = "manual"


class ResolutionStrategy(StrEnum):
    USER_WINS = "user_wins"
    NEWER_WINS = "newer_wins"
    SOURCE_WINS = "source_wins"
    MANUAL = "manual"


class ResolvedBy(StrEnum):
    AUTO = "auto"
    MANUAL = "manual"


class GateReason(StrEnum):
    """Reason codes attached to skipped and rejected findings."""

    # skipped
    EMPTY_VALUE = "empty_value"
    NOT_AUTHORIZED = "not_authorized"
    HUMAN_CONFIRMED = "human_confirmed"
    LOCKED = "locked"
    LOWER_CONFIDENCE = "lower_confidence"

    # rejected
    UNKNOWN_FIELD = "unknown_field"
    DOMAIN_EXCLUSIVE = "domain_exclusive"
    VALIDATION_FAILED = "validation_failed"
    SPECIFICITY_FAILED = "specificity_failed"
    INVALID_CONFIDENCE = "invalid_confidence"
