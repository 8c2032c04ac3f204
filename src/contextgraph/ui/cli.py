# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import UTC, datetime
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from contextgraph.adapters.document import parse_findings
from contextgraph.app import (
    canonicalize_findings,
    confirm_field,
    get_blockers,
    get_health,
    get_readiness,
    lock_field,
    set_field,
    unlock_field,
)
from contextgraph.config import configure_logging
from contextgraph.domain.model import HUMAN_SOURCES, Source, Workflow

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from _typeshed import DataclassInstance

    from contextgraph.domain.canonicalization import Finding

log = logging.getLogger(__name__)

_SOURCES = [source.value for source in Source]


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Maintain per-company context graphs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    canonicalize = subparsers.add_parser(
        "canonicalize", help="Validate producer findings and write accepted values"
    )
    canonicalize.add_argument("company", help="Company id")
    canonicalize.add_argument(
        "--source",
        required=True,
        choices=_SOURCES,
        metavar="SOURCE",
        help="Producer that emitted the findings",
    )
    canonicalize.add_argument(
        "--findings",
        default="-",
        help="JSON file with findings, or '-' for stdin (default: %(default)s)",
    )
    canonicalize.add_argument("--run-id", help="Producer run id recorded on provenance")
    canonicalize.add_argument(
        "--force",
        action="store_true",
        help="Overwrite confirmed values (human sources only)",
    )
    canonicalize.add_argument(
        "--dry-run",
        action="store_true",
        help="Evaluate every finding without saving",
    )
    canonicalize.add_argument(
        "--baseline",
        action="store_true",
        help="Relax specificity checks for a first pass",
    )

    blockers = subparsers.add_parser("blockers", help="Audit required keys for a workflow")
    blockers.add_argument("company", help="Company id")
    blockers.add_argument(
        "--workflow",
        required=True,
        choices=[workflow.value for workflow in Workflow],
        help="Downstream workflow to check",
    )

    readiness = subparsers.add_parser("readiness", help="Weighted domain completeness")
    readiness.add_argument("company", help="Company id")

    health = subparsers.add_parser("health", help="Graph health summary")
    health.add_argument("company", help="Company id")
    health.add_argument(
        "--as-of",
        type=str,
        help="ISO-8601 timestamp (UTC) to score freshness against",
    )

    set_cmd = subparsers.add_parser("set-field", help="Write a confirmed operator value")
    set_cmd.add_argument("company", help="Company id")
    set_cmd.add_argument("field", help="Field key or domain.field path")
    set_cmd.add_argument("value", help="New value")
    set_cmd.add_argument(
        "--json",
        action="store_true",
        help="Parse the value as JSON (use for lists and numbers)",
    )
    set_cmd.add_argument("--lock", action="store_true", help="Lock the field after writing")
    set_cmd.add_argument("--reason", help="Lock reason")
    _add_operator_source(set_cmd)

    confirm = subparsers.add_parser("confirm", help="Confirm the current proposed value")
    confirm.add_argument("company", help="Company id")
    confirm.add_argument("field", help="Field key or domain.field path")
    _add_operator_source(confirm)

    lock = subparsers.add_parser("lock", help="Lock a field against automated writes")
    lock.add_argument("company", help="Company id")
    lock.add_argument("field", help="Field key or domain.field path")
    lock.add_argument("--reason", help="Why the field is locked")
    _add_operator_source(lock)

    unlock = subparsers.add_parser("unlock", help="Release a field lock")
    unlock.add_argument("company", help="Company id")
    unlock.add_argument("field", help="Field key or domain.field path")
    _add_operator_source(unlock)

    return parser.parse_args(list(argv))


def _add_operator_source(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--source",
        default=Source.USER.value,
        choices=sorted(source.value for source in HUMAN_SOURCES),
        help="Human source recorded on provenance (default: %(default)s)",
    )


def _parse_iso_datetime(value: str) -> datetime:
    try:
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        dt = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _read_findings(location: str) -> list[Finding]:
    if location == "-":
        payload = sys.stdin.read()
    else:
        try:
            payload = Path(location).read_text(encoding="utf-8")
        except OSError as exc:
            raise ValueError(f"Cannot read findings from {location}: {exc}") from exc
    return parse_findings(payload)


def _parse_value(raw: str, *, as_json: bool) -> object:
    if not as_json:
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON value: {raw}") from exc


def _emit(result: DataclassInstance) -> None:
    print(json.dumps(asdict(result), indent=2, default=str))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    findings: list[Finding] = []
    value: object = None
    as_of: datetime | None = None
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "canonicalize":
            findings = _read_findings(parsed_args.findings)
        elif parsed_args.command == "set-field":
            value = _parse_value(parsed_args.value, as_json=parsed_args.json)
        elif parsed_args.command == "health" and parsed_args.as_of:
            as_of = _parse_iso_datetime(parsed_args.as_of)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        command = parsed_args.command
        if command == "canonicalize":
            result = canonicalize_findings(
                parsed_args.company,
                findings,
                source=Source(parsed_args.source),
                source_run_id=parsed_args.run_id,
                force_overwrite=parsed_args.force,
                dry_run=parsed_args.dry_run,
                baseline=parsed_args.baseline,
            )
            log.info(
                "Canonicalization finished: written=%s, rejected=%s, skipped=%s, conflicts=%s",
                len(result.written),
                len(result.rejected),
                len(result.skipped),
                len(result.conflicts),
            )
            _emit(result)
        elif command == "blockers":
            _emit(get_blockers(parsed_args.company, Workflow(parsed_args.workflow)))
        elif command == "readiness":
            _emit(get_readiness(parsed_args.company))
        elif command == "health":
            _emit(get_health(parsed_args.company, as_of=as_of))
        elif command == "set-field":
            _emit(
                set_field(
                    parsed_args.company,
                    parsed_args.field,
                    value,
                    source=Source(parsed_args.source),
                    lock=parsed_args.lock,
                    lock_reason=parsed_args.reason,
                )
            )
        elif command == "confirm":
            _emit(
                confirm_field(
                    parsed_args.company, parsed_args.field, source=Source(parsed_args.source)
                )
            )
        elif command == "lock":
            _emit(
                lock_field(
                    parsed_args.company,
                    parsed_args.field,
                    reason=parsed_args.reason,
                    source=Source(parsed_args.source),
                )
            )
        elif command == "unlock":
            _emit(
                unlock_field(
                    parsed_args.company, parsed_args.field, source=Source(parsed_args.source)
                )
            )
        else:
            raise ValueError(f"Unsupported command: {command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
