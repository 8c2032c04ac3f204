"""Canonicalization: the validated write path from producer findings to the graph.

Responsibilities of this stage:
- judge each finding independently through an ordered gate sequence
- classify every finding as written, rejected (a real data-quality failure) or
  skipped (routine noise)
- report value disagreements as derived conflicts
- clone the graph once per batch, mutate only the clone, persist it once

Gate order (first failure short-circuits):

1. meaningful value                         -> skipped
2. key known to the field registry          -> rejected
3. producer may propose the field           -> skipped
4. exclusive domain written by its producer -> rejected
5. not confirmed or locked (unless forced)  -> skipped
6. schema quality validation                -> rejected
7. specificity                              -> rejected
8. confidence within [0, 1]                 -> rejected
9. confidence beats a proposed value        -> skipped
10. normalise text, then write

Gates only ever see immutable ``FieldSnapshot`` values. The batch is persisted
with a single ``save_graph`` call when at least one finding was written and the
call is not a dry run; store faults propagate and nothing is written partially.
"""

from __future__ import annotations

import logging
import math
from contextlib import nullcontext
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from contextgraph.domain.authority import exclusive_source, resolve_domain, validate_write
from contextgraph.domain.conflicts import auto_resolve, default_resolution_rules, detect_conflict
from contextgraph.domain.model import (
    PROVENANCE_LIMIT,
    ContextGraph,
    FieldStatus,
    GateReason,
    ProvenanceEntry,
    SpecificityKind,
    ValueType,
    default_confidence,
    is_human,
    prepend_provenance,
)
from contextgraph.domain.quality import (
    DEFAULT_MAX_SENTENCES,
    check_audience_specificity,
    check_positioning_specificity,
    compute_specificity_score,
    is_meaningful,
    normalize_items,
    normalize_sentences,
)
from contextgraph.domain.schema import FIELD_REGISTRY, validate_value

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from contextgraph.domain.conflicts import Conflict, ResolutionRule
    from contextgraph.domain.locking import EntityLocks
    from contextgraph.domain.model import FieldSnapshot, FieldValue, Source
    from contextgraph.domain.ports.persistence import GraphStore
    from contextgraph.domain.schema import FieldDefinition, FieldRegistry

log = logging.getLogger(__name__)

REJECTION_REASONS: Final[frozenset[GateReason]] = frozenset(
    {
        GateReason.UNKNOWN_FIELD,
        GateReason.DOMAIN_EXCLUSIVE,
        GateReason.VALIDATION_FAILED,
        GateReason.SPECIFICITY_FAILED,
        GateReason.INVALID_CONFIDENCE,
    }
)


@dataclass(frozen=True, slots=True, kw_only=True)
class Finding:
    """A producer's proposed value for one field; never persisted directly."""

    key: str
    value: object
    confidence: float | None = None
    sources: tuple[str, ...] = ()
    evidence: str | None = None


@dataclass(frozen=True, slots=True)
class GateOutcome:
    key: str
    reason: GateReason
    detail: str | None = None

    @property
    def rejected(self) -> bool:
        return self.reason in REJECTION_REASONS


@dataclass(frozen=True, slots=True, kw_only=True)
class WrittenField:
    key: str
    path: str
    value: FieldValue
    status: FieldStatus
    confidence: float
    specificity_score: int | None = None


@dataclass(slots=True, kw_only=True)
class CanonicalizationResult:
    company_id: str
    written: list[WrittenField] = field(default_factory=list[WrittenField])
    rejected: list[GateOutcome] = field(default_factory=list[GateOutcome])
    skipped: list[GateOutcome] = field(default_factory=list[GateOutcome])
    conflicts: list[Conflict] = field(default_factory=list["Conflict"])
    persisted: bool = False
    dry_run: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class Accepted:
    """A finding that cleared every gate, with its normalised value."""

    definition: FieldDefinition
    current: FieldSnapshot
    value: FieldValue
    confidence: float


def _specificity_failure(
    definition: FieldDefinition, value: object, *, baseline: bool
) -> str | None:
    if definition.specificity is SpecificityKind.NONE or not isinstance(value, str):
        return None
    if definition.specificity is SpecificityKind.AUDIENCE:
        return check_audience_specificity(value, baseline=baseline)
    return check_positioning_specificity(value, baseline=baseline)


def _may_propose(definition: FieldDefinition, source: Source) -> bool:
    # exclusive domains are decided by the exclusivity gate alone
    if exclusive_source(resolve_domain(definition.path)) is not None:
        return True
    if definition.proposable_by is not None and not is_human(source):
        return source in definition.proposable_by
    return validate_write(definition.path, source).allowed


def _normalize(definition: FieldDefinition, value: object, *, max_sentences: int) -> FieldValue:
    if definition.value_type is ValueType.TEXT and isinstance(value, str):
        return normalize_sentences(value, max_sentences)
    if definition.value_type is ValueType.TEXT_LIST and isinstance(value, list | tuple):
        return normalize_items(str(item) for item in value)
    if isinstance(value, int | float):
        return value
    raise TypeError(f"Cannot normalise {type(value).__name__} for {definition.key}")


def evaluate_finding(
    finding: Finding,
    current: FieldSnapshot | None,
    *,
    definition: FieldDefinition | None,
    source: Source,
    force_overwrite: bool = False,
    baseline: bool = False,
    max_sentences: int = DEFAULT_MAX_SENTENCES,
) -> Accepted | GateOutcome:
    """Run one finding through gates 1-9 and normalise the survivor.

    ``current`` is the snapshot of the target field and is ``None`` only when
    the key is unknown.
    """

    key = finding.key
    if not is_meaningful(finding.value):
        return GateOutcome(key, GateReason.EMPTY_VALUE)
    if definition is None or current is None:
        return GateOutcome(key, GateReason.UNKNOWN_FIELD)
    if not _may_propose(definition, source):
        return GateOutcome(key, GateReason.NOT_AUTHORIZED, f"{source} may not propose")

    designated = exclusive_source(resolve_domain(definition.path))
    if designated is not None and source != designated:
        return GateOutcome(
            key, GateReason.DOMAIN_EXCLUSIVE, f"only {designated} writes {definition.path}"
        )

    forced = force_overwrite and is_human(source)
    if current.status is FieldStatus.CONFIRMED and not forced:
        return GateOutcome(key, GateReason.HUMAN_CONFIRMED)
    if current.locked and not forced:
        return GateOutcome(key, GateReason.LOCKED, current.lock_reason)

    failure = validate_value(definition, finding.value)
    if failure is not None:
        return GateOutcome(key, GateReason.VALIDATION_FAILED, failure)
    failure = _specificity_failure(definition, finding.value, baseline=baseline)
    if failure is not None:
        return GateOutcome(key, GateReason.SPECIFICITY_FAILED, failure)

    confidence = (
        finding.confidence if finding.confidence is not None else default_confidence(source)
    )
    if not (math.isfinite(confidence) and 0.0 <= confidence <= 1.0):
        return GateOutcome(
            key, GateReason.INVALID_CONFIDENCE, f"confidence {confidence} outside [0, 1]"
        )
    if (
        current.status is FieldStatus.PROPOSED
        and not is_human(source)
        and confidence <= current.confidence
    ):
        return GateOutcome(
            key,
            GateReason.LOWER_CONFIDENCE,
            f"{confidence:.2f} <= existing {current.confidence:.2f}",
        )

    return Accepted(
        definition=definition,
        current=current,
        value=_normalize(definition, finding.value, max_sentences=max_sentences),
        confidence=confidence,
    )


def _writer_tag(source: Source, source_run_id: str | None) -> str:
    return f"canonicalizer:{source}" + (f":{source_run_id}" if source_run_id else "")


def canonicalize(
    company_id: str,
    findings: Iterable[Finding],
    *,
    store: GraphStore,
    source: Source,
    source_run_id: str | None = None,
    force_overwrite: bool = False,
    dry_run: bool = False,
    baseline: bool = False,
    locks: EntityLocks | None = None,
    registry: FieldRegistry = FIELD_REGISTRY,
    rules: Sequence[ResolutionRule] | None = None,
    provenance_limit: int = PROVENANCE_LIMIT,
    max_sentences: int = DEFAULT_MAX_SENTENCES,
    now: datetime | None = None,
) -> CanonicalizationResult:
    """Validate ``findings`` from ``source`` and merge the survivors into the company graph.

    ``force_overwrite`` is honoured only for human sources. With ``locks`` the
    whole load-validate-save cycle holds the company's write lock.
    """

    batch = list(findings)
    timestamp = now or datetime.now(UTC)
    effective_rules = rules if rules is not None else default_resolution_rules()
    result = CanonicalizationResult(company_id=company_id, dry_run=dry_run)

    guard = locks.write(company_id) if locks is not None else nullcontext()
    with guard:
        stored = store.load_graph(company_id)
        base = stored if stored is not None else ContextGraph.empty(company_id, now=timestamp)
        working: ContextGraph | None = None

        log.info(
            "Canonicalizing %d finding(s) for %s from %s (run=%s, force=%s, dry_run=%s)",
            len(batch),
            company_id,
            source,
            source_run_id,
            force_overwrite,
            dry_run,
        )

        for finding in batch:
            view = working or base
            definition = registry.get(finding.key)
            current = view.snapshot(definition.path) if definition is not None else None
            verdict = evaluate_finding(
                finding,
                current,
                definition=definition,
                source=source,
                force_overwrite=force_overwrite,
                baseline=baseline,
                max_sentences=max_sentences,
            )
            if isinstance(verdict, GateOutcome):
                if verdict.rejected:
                    log.info("Rejected %s: %s (%s)", verdict.key, verdict.reason, verdict.detail)
                    result.rejected.append(verdict)
                else:
                    log.debug("Skipped %s: %s", verdict.key, verdict.reason)
                    result.skipped.append(verdict)
                continue

            conflict = detect_conflict(verdict.current.path, verdict.current, verdict.value, source)
            if conflict is not None:
                result.conflicts.append(auto_resolve(conflict, effective_rules))

            if working is None:
                working = base.clone()
            result.written.append(
                _write(
                    working,
                    verdict,
                    finding=finding,
                    source=source,
                    source_run_id=source_run_id,
                    provenance_limit=provenance_limit,
                    timestamp=timestamp,
                )
            )

        if working is not None and not dry_run:
            working.version += 1
            working.updated_at = timestamp
            store.save_graph(working, _writer_tag(source, source_run_id))
            result.persisted = True

    log.info(
        "Canonicalized %s: written=%d, rejected=%d, skipped=%d, conflicts=%d, persisted=%s",
        company_id,
        len(result.written),
        len(result.rejected),
        len(result.skipped),
        len(result.conflicts),
        result.persisted,
    )
    return result


def _write(
    graph: ContextGraph,
    accepted: Accepted,
    *,
    finding: Finding,
    source: Source,
    source_run_id: str | None,
    provenance_limit: int,
    timestamp: datetime,
) -> WrittenField:
    definition = accepted.definition
    node = graph.resolve(definition.path).ensure()
    entry = ProvenanceEntry(
        source=source,
        confidence=accepted.confidence,
        updated_at=timestamp,
        source_run_id=source_run_id,
        evidence=finding.evidence,
        tags=finding.sources,
    )
    node.value = accepted.value
    node.confidence = accepted.confidence
    node.status = FieldStatus.CONFIRMED if is_human(source) else FieldStatus.PROPOSED
    node.provenance = prepend_provenance(node.provenance, entry, limit=provenance_limit)

    score = (
        compute_specificity_score(accepted.value, company_name=graph.company_name).score
        if isinstance(accepted.value, str)
        else None
    )
    return WrittenField(
        key=definition.key,
        path=definition.path,
        value=accepted.value,
        status=node.status,
        confidence=node.confidence,
        specificity_score=score,
    )
