"""Coverage and blocker evaluation over a company graph.

Two views share one ``RequirementRule`` representation:

- the weighted per-domain readiness score (``evaluate_readiness``), where a
  proposed or confirmed value counts as present;
- the flat required-key audit for one workflow (``audit_required_keys``),
  where only confirmed values count and everything else blocks.

Both sort blockers by domain weight, highest first, and degrade to "everything
missing" for a ``None`` graph instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from contextgraph.domain.model import FieldStatus, Workflow
from contextgraph.domain.quality import is_meaningful
from contextgraph.domain.schema import FIELD_REGISTRY
from contextgraph.domain.similarity import closest_match

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from contextgraph.domain.model import ContextGraph
    from contextgraph.domain.schema import FieldRegistry

DEFAULT_SIMILARITY_THRESHOLD: Final[float] = 0.7


class RuleKind(StrEnum):
    REQUIRE_ALL = "require_all"
    REQUIRE_ANY_OF = "require_any_of"
    REQUIRE_AT_LEAST = "require_at_least"


@dataclass(frozen=True, slots=True, kw_only=True)
class RuleEvaluation:
    satisfied: bool
    passed: int
    total: int
    missing: tuple[str, ...]

    @property
    def coverage(self) -> float:
        return self.passed / self.total if self.total else 1.0


@dataclass(frozen=True, slots=True, kw_only=True)
class RequirementRule:
    """A requirement over field names.

    Names without a dot are relative to the owning domain. ``min_items`` makes a
    list field count only once it holds that many entries.
    """

    kind: RuleKind
    fields: tuple[str, ...]
    minimum: int = 1
    min_items: int = 1

    def __post_init__(self) -> None:
        if not self.fields:
            raise ValueError("A requirement rule needs at least one field")
        if self.kind is RuleKind.REQUIRE_AT_LEAST and not 1 <= self.minimum <= len(self.fields):
            raise ValueError(f"Minimum {self.minimum} outside 1..{len(self.fields)}")

    @classmethod
    def require_all(cls, *fields: str, min_items: int = 1) -> RequirementRule:
        return cls(kind=RuleKind.REQUIRE_ALL, fields=fields, min_items=min_items)

    @classmethod
    def any_of(cls, *fields: str, min_items: int = 1) -> RequirementRule:
        return cls(kind=RuleKind.REQUIRE_ANY_OF, fields=fields, min_items=min_items)

    @classmethod
    def at_least(cls, minimum: int, *fields: str) -> RequirementRule:
        return cls(kind=RuleKind.REQUIRE_AT_LEAST, fields=fields, minimum=minimum)

    def evaluate(self, present: Callable[[str], bool]) -> RuleEvaluation:
        found = [name for name in self.fields if present(name)]
        missing = tuple(name for name in self.fields if name not in found)
        match self.kind:
            case RuleKind.REQUIRE_ALL:
                return RuleEvaluation(
                    satisfied=not missing,
                    passed=len(found),
                    total=len(self.fields),
                    missing=missing,
                )
            case RuleKind.REQUIRE_ANY_OF:
                satisfied = bool(found)
                return RuleEvaluation(
                    satisfied=satisfied,
                    passed=1 if satisfied else 0,
                    total=1,
                    missing=() if satisfied else missing,
                )
            case RuleKind.REQUIRE_AT_LEAST:
                passed = min(len(found), self.minimum)
                satisfied = passed >= self.minimum
                return RuleEvaluation(
                    satisfied=satisfied,
                    passed=passed,
                    total=self.minimum,
                    missing=() if satisfied else missing,
                )


@dataclass(frozen=True, slots=True, kw_only=True)
class DomainRequirement:
    domain: str
    label: str
    weight: int
    rule: RequirementRule
    hard_blocker: bool = False

    def path_of(self, name: str) -> str:
        return name if "." in name else f"{self.domain}.{name}"


WEIGHTED_REQUIREMENTS: Final[tuple[DomainRequirement, ...]] = (
    DomainRequirement(
        domain="brand",
        label="Brand positioning",
        weight=10,
        rule=RequirementRule.require_all("positioning", "valueProposition"),
    ),
    DomainRequirement(
        domain="audience",
        label="Target audience",
        weight=10,
        rule=RequirementRule.any_of("primaryAudience", "icpDescription"),
    ),
    DomainRequirement(
        domain="identity",
        label="Business identity",
        weight=8,
        rule=RequirementRule.require_all("businessName", "industry"),
    ),
    DomainRequirement(
        domain="objectives",
        label="Objectives",
        weight=8,
        rule=RequirementRule.require_all("primaryObjective"),
    ),
    DomainRequirement(
        domain="competitive",
        label="Competitive landscape",
        weight=8,
        rule=RequirementRule.require_all("competitors", min_items=2),
        hard_blocker=True,
    ),
    DomainRequirement(
        domain="productOffer",
        label="Products and offers",
        weight=5,
        rule=RequirementRule.any_of("primaryProducts", "heroProducts"),
    ),
    DomainRequirement(
        domain="performanceMedia",
        label="Performance media",
        weight=4,
        rule=RequirementRule.at_least(2, "activeChannels", "targetCpa", "attributionModel"),
    ),
    DomainRequirement(
        domain="website",
        label="Website",
        weight=3,
        rule=RequirementRule.any_of("executiveSummary", "conversionBlocks"),
    ),
)


@dataclass(frozen=True, slots=True, kw_only=True)
class Blocker:
    domain: str
    label: str
    weight: int
    missing: tuple[str, ...]
    message: str
    hard: bool = False
    suggestion: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class DomainCoverage:
    domain: str
    label: str
    weight: int
    coverage: float
    satisfied: bool
    missing: tuple[str, ...]
    hard_blocker: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class ReadinessResult:
    completeness: float
    ready: bool
    domains: tuple[DomainCoverage, ...]
    blockers: tuple[Blocker, ...]
    message: str

    @property
    def hard_blocked(self) -> bool:
        return any(blocker.hard for blocker in self.blockers)


def _field_present(
    graph: ContextGraph | None,
    path: str,
    *,
    min_items: int = 1,
    confirmed_only: bool = False,
) -> bool:
    if graph is None:
        return False
    node = graph.get(path)
    if node is None or not is_meaningful(node.value):
        return False
    if node.status is FieldStatus.MISSING:
        return False
    if confirmed_only and node.status is not FieldStatus.CONFIRMED:
        return False
    if isinstance(node.value, list):
        return sum(1 for item in node.value if is_meaningful(item)) >= min_items
    return True


def _sorted_blockers(blockers: Iterable[Blocker]) -> tuple[Blocker, ...]:
    return tuple(sorted(blockers, key=lambda blocker: (-blocker.weight, not blocker.hard)))


def _readiness_message(completeness: float, blockers: Sequence[Blocker]) -> str:
    if not blockers:
        return f"Context complete ({completeness:.0f}%): all weighted requirements are met."
    hard = [blocker for blocker in blockers if blocker.hard]
    head = f"Context {completeness:.0f}% complete with {len(blockers)} blocker(s)"
    if hard:
        labels = ", ".join(blocker.label for blocker in hard)
        return f"{head}. BLOCKED: {labels} must be filled before any workflow can run."
    return f"{head}: " + ", ".join(blocker.label for blocker in blockers) + "."


def evaluate_readiness(
    graph: ContextGraph | None,
    *,
    requirements: Sequence[DomainRequirement] = WEIGHTED_REQUIREMENTS,
) -> ReadinessResult:
    """Weighted completeness: sum(coverage * weight) / sum(weight) * 100."""

    domains: list[DomainCoverage] = []
    blockers: list[Blocker] = []
    weighted = 0.0
    total_weight = 0

    for requirement in requirements:
        evaluation = requirement.rule.evaluate(
            lambda name: _field_present(
                graph, requirement.path_of(name), min_items=requirement.rule.min_items
            )
        )
        weighted += evaluation.coverage * requirement.weight
        total_weight += requirement.weight
        domains.append(
            DomainCoverage(
                domain=requirement.domain,
                label=requirement.label,
                weight=requirement.weight,
                coverage=evaluation.coverage,
                satisfied=evaluation.satisfied,
                missing=evaluation.missing,
                hard_blocker=requirement.hard_blocker,
            )
        )
        if evaluation.satisfied:
            continue
        if requirement.hard_blocker:
            message = (
                f"Hard blocker: {requirement.label} is missing "
                f"({', '.join(evaluation.missing)}); downstream workflows cannot start."
            )
        else:
            message = f"{requirement.label} incomplete: missing {', '.join(evaluation.missing)}."
        blockers.append(
            Blocker(
                domain=requirement.domain,
                label=requirement.label,
                weight=requirement.weight,
                missing=evaluation.missing,
                message=message,
                hard=requirement.hard_blocker,
            )
        )

    completeness = weighted / total_weight * 100 if total_weight else 0.0
    ordered = _sorted_blockers(blockers)
    return ReadinessResult(
        completeness=completeness,
        ready=not ordered,
        domains=tuple(domains),
        blockers=ordered,
        message=_readiness_message(completeness, ordered),
    )


@dataclass(frozen=True, slots=True, kw_only=True)
class RequiredKey:
    label: str
    primary: str
    alternatives: tuple[str, ...] = ()
    workflows: frozenset[Workflow] = field(default_factory=frozenset[Workflow])
    weight: int = 1

    @property
    def domain(self) -> str:
        return self.primary.partition(".")[0]

    @property
    def rule(self) -> RequirementRule:
        return RequirementRule.any_of(self.primary, *self.alternatives)


@dataclass(frozen=True, slots=True, kw_only=True)
class BlockerResult:
    workflow: Workflow
    can_proceed: bool
    completeness: float
    blockers: tuple[Blocker, ...]
    message: str


# alternatives that satisfy a required key when the primary path is empty
KEY_ALTERNATIVES: Final[dict[str, tuple[str, ...]]] = {
    "audience.icpDescription": ("audience.primaryAudience",),
    "audience.primaryAudience": ("audience.icpDescription",),
    "productOffer.primaryProducts": ("productOffer.heroProducts",),
    "productOffer.heroProducts": ("productOffer.primaryProducts",),
}


def required_keys_from_registry(
    registry: FieldRegistry = FIELD_REGISTRY,
) -> tuple[RequiredKey, ...]:
    weights = {requirement.domain: requirement.weight for requirement in WEIGHTED_REQUIREMENTS}
    return tuple(
        RequiredKey(
            label=definition.label,
            primary=definition.path,
            alternatives=KEY_ALTERNATIVES.get(definition.path, ()),
            workflows=definition.required_for,
            weight=weights.get(definition.domain, 1),
        )
        for definition in registry
        if definition.required_for
    )


def _existing_paths(graph: ContextGraph | None) -> list[str]:
    if graph is None:
        return []
    return [path for path, node in graph.iter_fields() if is_meaningful(node.value)]


def audit_required_keys(
    graph: ContextGraph | None,
    workflow: Workflow,
    *,
    required_keys: Sequence[RequiredKey] | None = None,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> BlockerResult:
    """Check every key ``workflow`` needs for a confirmed value.

    A proposed value is reported as awaiting confirmation. A key with no value
    anywhere gets the closest existing path as a rename suggestion.
    """

    keys = required_keys if required_keys is not None else required_keys_from_registry()
    relevant = [key for key in keys if workflow in key.workflows]
    existing = _existing_paths(graph)
    blockers: list[Blocker] = []

    for key in relevant:
        evaluation = key.rule.evaluate(
            lambda path: _field_present(graph, path, confirmed_only=True)
        )
        if evaluation.satisfied:
            continue
        unconfirmed = key.rule.evaluate(lambda path: _field_present(graph, path))
        if unconfirmed.satisfied:
            message = f"{key.label} is proposed but not confirmed."
            suggestion = None
        else:
            candidates = [path for path in existing if path not in key.rule.fields]
            match = closest_match(key.primary, candidates, threshold=similarity_threshold)
            suggestion = match[0] if match else None
            message = f"{key.label} is missing."
            if suggestion is not None:
                message = f"{key.label} is missing (did you mean {suggestion}?)."
        blockers.append(
            Blocker(
                domain=key.domain,
                label=key.label,
                weight=key.weight,
                missing=evaluation.missing,
                message=message,
                suggestion=suggestion,
            )
        )

    ordered = _sorted_blockers(blockers)
    satisfied = len(relevant) - len(ordered)
    completeness = satisfied / len(relevant) * 100 if relevant else 100.0
    if ordered:
        message = (
            f"{workflow} blocked by {len(ordered)} of {len(relevant)} required key(s): "
            + ", ".join(blocker.label for blocker in ordered)
            + "."
        )
    else:
        message = f"{workflow} has every required key confirmed."
    return BlockerResult(
        workflow=workflow,
        can_proceed=not ordered,
        completeness=completeness,
        blockers=ordered,
        message=message,
    )
