"""Quality gate: field-independent checks on candidate values.

Responsibilities of this module:
- tell meaningful values apart from placeholders and empties
- flag generic text (evaluative commentary, buzzword-only phrases, templated
  openers, LLM hedges)
- hold audience and positioning text to a specificity bar
- score specificity on a 0-100 scale for diagnostics
- normalise surviving text to a bounded number of sentences

Every function here is pure; the same input always yields the same verdict.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable

MIN_MEANINGFUL_LENGTH: Final[int] = 2
DEFAULT_MAX_SENTENCES: Final[int] = 3
MIN_POSITIONING_WORDS: Final[int] = 5

PLACEHOLDER_TOKENS: Final[frozenset[str]] = frozenset(
    {
        "n/a",
        "na",
        "tbd",
        "tba",
        "todo",
        "unknown",
        "none",
        "null",
        "nil",
        "(empty)",
        "empty",
        "-",
        "--",
        "...",
        "not specified",
        "not available",
    }
)


def _compile(*patterns: str, flags: int = re.IGNORECASE) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(pattern, flags) for pattern in patterns)


# (a) evaluative or meta-commentary about quality rather than a business fact
EVALUATIVE_PATTERNS: Final = _compile(
    r"is present but",
    r"could be (sharper|clearer|stronger|better|more)",
    r"is (partially|somewhat|fairly|moderately) (defined|clear|developed)",
    r"is not (immediately |clearly )?(clear|defined|obvious)",
    r"has gaps in",
    r"could better align",
    r"\bneeds? (more|to be|improvement)",
    r"\bshould (be|have|include)\b",
    r"differentiation is not",
    r"\b(messaging|positioning|audience|brand) (is|could|should) ",
    r"\(score:",
    r"\bstatus:",
    r"serviceable but",
    r"^(some|partial|moderate|weak|strong)\s+(brand|messaging|positioning|audience)",
)

# (b) buzzword combinations with nothing concrete behind them
_BUZZWORDS = (
    r"(innovation|innovative|quality|excellence|trust|integrity|customer|client|people"
    r"|centricity|centric|focus|focused|service|value|values|growth|impact|passion"
    r"|commitment|reliability|transparency|sustainability|collaboration|results|first|driven)"
)
_BUZZWORD_PHRASE = rf"{_BUZZWORDS}([- ]{_BUZZWORDS})*"

BUZZWORD_ONLY_PATTERNS: Final = (
    *_compile(
        r"^(innovation|quality|excellence|trust|integrity|customer)[- ]?(and|&)[- ]?"
        r"(innovation|quality|excellence|customer|centricity|focus|service)$",
        r"^(innovation|quality|excellence|customer.?centric|customer.?first|people.?first"
        r"|results.?driven)$",
    ),
    *_compile(rf"^{_BUZZWORD_PHRASE}\s+(and|&)\s+{_BUZZWORD_PHRASE}$"),
)

# (c) templated generic openers
TEMPLATED_OPENER_PATTERNS: Final = _compile(
    r"^the company (offers|provides|is|delivers)\b",
    r"^(we|they) (are|offer|provide) (a |an |the )?(leading|premier|trusted|full-service)\b",
    r"^(professional|friendly|warm|approachable)\s+(and|yet)\s+\w+$",
    r"^focus on (innovation|quality|customer)",
    r"^(customer|client)-centric approach$",
    r"^(innovative|cutting-edge|industry-leading)\b",
    r"^differentiators?:",
    r"^(primary|core|key)\s+(focus|value|offering)\b",
)

# (d) placeholder hedges produced by language models
LLM_HEDGE_PATTERNS: Final = _compile(
    r"^website does not specify",
    r"^not specified",
    r"^unable to determine",
    r"^no (clear|specific|explicit)\b",
    r"^cannot (determine|identify|find)",
    r"^information not (available|found|provided)",
    r"^(as an ai|i (cannot|can't|don't have))",
)

GENERIC_FAMILIES: Final[tuple[tuple[str, tuple[re.Pattern[str], ...]], ...]] = (
    ("llm_hedge", LLM_HEDGE_PATTERNS),
    ("evaluative", EVALUATIVE_PATTERNS),
    ("buzzword_only", BUZZWORD_ONLY_PATTERNS),
    ("templated_opener", TEMPLATED_OPENER_PATTERNS),
)

GENERIC_AUDIENCE_PATTERNS: Final = _compile(
    r"^(organizations?|businesses?|companies?|clients?|customers?)\s+"
    r"(seeking|looking for|wanting|needing)",
    r"^(tech-savvy|forward-thinking|growth-minded|innovative)\s+"
    r"(organizations?|businesses?|companies?|teams?)",
    r"^(people|professionals?|leaders?|teams?)\s+(who|that)\s+(want|need|seek|are looking)",
    r"^(small|medium|large|enterprise)\s+(businesses?|companies?|organizations?)$",
)

AUDIENCE_SPECIFICITY_MARKERS: Final = _compile(
    r"\d",
    r"\b(saas|b2b|b2c|d2c|fintech|healthtech|edtech|healthcare|retail|ecommerce|e-commerce"
    r"|manufacturing|logistics|hospitality|real estate|legal|software|tech)\b",
    r"\b(ceo|cmo|cfo|cto|coo|founders?|directors?|managers?|vp|head of|chief|owners?"
    r"|marketers?|engineers?|developers?)\b",
    r"\b(startups?|enterprise|smb|mid-market|series [a-d]|seed|growth stage|early stage)\b",
)

BASELINE_AUDIENCE_MARKERS: Final = _compile(
    r"\b(owners?|buyers?|customers?|consumers?|family|families|residents?|locals?|local)\b",
    r"\b(who|that|with|seeking|looking|need)\b",
    r"\b(pets?|dogs?|cats?|home|car|food|health|fitness|beauty)\b",
)

GENERIC_POSITIONING_PATTERNS: Final = _compile(
    r"^(solutions?|services?|products?)\s+provider",
    r"focus(ed)? on\s+(innovation|quality|customer|excellence|service)",
    r"customer (needs|satisfaction|success|experience)\.?$",
    r"(delivering|providing)\s+(innovative|quality|best|excellent)?\s*"
    r"(solutions?|services?|products?)",
    r"committed to\s+(excellence|quality|innovation|customer)",
    r"^(a |the )?(leading|premier|top)\s+(provider|company|firm|agency)",
)

GENERIC_CLICHES: Final[tuple[str, ...]] = (
    "innovative",
    "seamless",
    "future-ready",
    "all-in-one",
    "growth",
    "streamline",
    "cutting-edge",
    "best-in-class",
    "world-class",
    "next-generation",
    "game-changing",
    "revolutionary",
    "transform",
    "empower",
    "leverage",
    "synergy",
    "holistic",
    "scalable",
    "robust",
    "comprehensive",
    "state-of-the-art",
    "leading",
    "trusted",
    "premier",
    "solutions",
    "drive results",
    "maximize",
    "optimize",
    "unlock",
    "reimagine",
    "thrive",
    "dynamic",
    "agile",
    "disrupt",
    "paradigm",
    "best practices",
    "turnkey",
    "end-to-end",
    "one-stop",
    "frictionless",
    "supercharge",
    "digital transformation",
)

VAGUE_AUDIENCE_TERMS: Final[tuple[str, ...]] = (
    "businesses",
    "companies",
    "organizations",
    "enterprises",
    "teams",
    "professionals",
    "users",
    "customers",
    "clients",
    "stakeholders",
    "decision makers",
    "leaders",
)

CATEGORY_TERMS: Final[tuple[str, ...]] = (
    "customer support platform",
    "website builder",
    "payroll software",
    "crm",
    "email marketing",
    "marketing automation",
    "project management",
    "analytics platform",
    "data warehouse",
    "payment processing",
    "hr software",
    "accounting software",
    "inventory management",
    "e-commerce platform",
    "help desk",
    "scheduling software",
    "booking system",
    "no-code platform",
    "developer tools",
    "compliance software",
)

SEGMENT_TERMS: Final[tuple[str, ...]] = (
    "mid-market",
    "enterprise",
    "smb",
    "small business",
    "startup",
    "agency",
    "agencies",
    "freelancer",
    "ecommerce brand",
    "e-commerce brand",
    "d2c",
    "direct-to-consumer",
    "b2b saas",
    "healthcare",
    "fintech",
    "edtech",
    "real estate",
    "retail",
    "manufacturing",
    "logistics",
    "hospitality",
    "professional services",
    "marketing agency",
)

INDUSTRY_TERMS: Final[tuple[str, ...]] = (
    "saas",
    "b2b",
    "b2c",
    "ecommerce",
    "e-commerce",
    "fintech",
    "healthtech",
    "edtech",
    "martech",
)
ROLE_TERMS: Final[tuple[str, ...]] = (
    "cto",
    "cmo",
    "cfo",
    "developer",
    "marketer",
    "founder",
    "engineer",
    "designer",
)
PRICING_TERMS: Final[tuple[str, ...]] = (
    "free tier",
    "free plan",
    "starter",
    "pro plan",
    "enterprise plan",
    "pricing",
    "/month",
    "/year",
    "$",
)

_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")
_WHITESPACE = re.compile(r"\s+")


def is_meaningful(value: object) -> bool:
    """Return whether ``value`` carries information worth storing.

    Numbers (including zero) and booleans are meaningful. Strings must clear a
    minimum trimmed length and not be a placeholder token. Collections are
    meaningful when at least one member is.
    """

    if value is None:
        return False
    if isinstance(value, bool | int | float):
        return True
    if isinstance(value, str):
        trimmed = value.strip()
        if len(trimmed) < MIN_MEANINGFUL_LENGTH:
            return False
        return trimmed.lower() not in PLACEHOLDER_TOKENS
    if isinstance(value, dict):
        return any(is_meaningful(item) for item in value.values())
    if isinstance(value, list | tuple | set | frozenset):
        return any(is_meaningful(item) for item in value)
    return True


def _first_match(text: str, patterns: Iterable[re.Pattern[str]]) -> re.Pattern[str] | None:
    for pattern in patterns:
        if pattern.search(text):
            return pattern
    return None


def is_generic(text: str) -> str | None:
    """Return a reason naming the matched pattern family, or ``None`` for usable text."""

    trimmed = text.strip()
    for family, patterns in GENERIC_FAMILIES:
        matched = _first_match(trimmed, patterns)
        if matched is not None:
            return f"{family}: matched {matched.pattern!r}"
    return None


def check_audience_specificity(text: str, *, baseline: bool = False) -> str | None:
    """Audience/ICP text needs a number, industry, role or company-stage marker.

    In baseline mode (consumer and local businesses) any concrete descriptor of
    who the customer is will do.
    """

    trimmed = text.strip()
    if baseline:
        if _first_match(trimmed, BASELINE_AUDIENCE_MARKERS) is None:
            return "audience has no concrete descriptor"
        return None

    matched = _first_match(trimmed, GENERIC_AUDIENCE_PATTERNS)
    if matched is not None:
        return f"generic audience: matched {matched.pattern!r}"
    if _first_match(trimmed, AUDIENCE_SPECIFICITY_MARKERS) is None:
        return "audience lacks a numeric, industry, role or company-stage marker"
    return None


def check_positioning_specificity(text: str, *, baseline: bool = False) -> str | None:
    trimmed = text.strip()
    matched = _first_match(trimmed, BUZZWORD_ONLY_PATTERNS)
    if matched is not None:
        return f"buzzword positioning: matched {matched.pattern!r}"
    if baseline:
        return None

    matched = _first_match(trimmed, GENERIC_POSITIONING_PATTERNS)
    if matched is not None:
        return f"generic positioning: matched {matched.pattern!r}"
    word_count = len(trimmed.split())
    if word_count < MIN_POSITIONING_WORDS:
        return f"positioning too short ({word_count} words)"
    return None


@dataclass(frozen=True, slots=True)
class SpecificityResult:
    score: int
    reasons: tuple[str, ...]


def compute_specificity_score(text: str, *, company_name: str | None = None) -> SpecificityResult:
    """Heuristic 0-100 specificity score starting from a base of 70."""

    lower = text.lower()
    reasons: list[str] = []
    score = 70

    cliches = [cliche for cliche in GENERIC_CLICHES if cliche in lower]
    reasons.extend(f"contains cliche: {cliche!r}" for cliche in cliches[:3])
    score -= min(30, len(cliches) * 3)

    vague = [term for term in VAGUE_AUDIENCE_TERMS if term in lower]
    reasons.extend(f"vague audience term: {term!r}" for term in vague[:2])
    score -= min(20, len(vague) * 5)

    if len(text) < 50:
        score -= 15
        reasons.append("text too short (< 50 chars)")
    if len(text) > 500:
        score -= 5
        reasons.append("text too long (> 500 chars)")
    if not any(char.isdigit() for char in text):
        score -= 10
        reasons.append("no specific numbers or metrics")

    if company_name and company_name.lower() in lower:
        score += 10
    if any(term in lower for term in CATEGORY_TERMS):
        score += 10
    if any(term in lower for term in SEGMENT_TERMS):
        score += 10
    if any(term in lower for term in INDUSTRY_TERMS):
        score += 5
    if any(term in lower for term in ROLE_TERMS):
        score += 5
    if any(term in lower for term in PRICING_TERMS):
        score += 5

    return SpecificityResult(score=max(0, min(100, score)), reasons=tuple(reasons))


def normalize_sentences(text: str, max_sentences: int = DEFAULT_MAX_SENTENCES) -> str:
    """Collapse whitespace, keep at most ``max_sentences`` and end on punctuation."""

    collapsed = _WHITESPACE.sub(" ", text).strip()
    if not collapsed:
        return collapsed
    sentences = _SENTENCE_BREAK.split(collapsed)
    kept = " ".join(sentences[:max_sentences]).strip()
    if kept[-1] not in ".!?":
        kept = f"{kept}."
    return kept


def normalize_items(items: Iterable[str]) -> list[str]:
    """Trim list items, drop empties and placeholders, keep first occurrences."""

    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        trimmed = _WHITESPACE.sub(" ", item).strip()
        key = trimmed.lower()
        if not is_meaningful(trimmed) or key in seen:
            continue
        seen.add(key)
        result.append(trimmed)
    return result
