from __future__ import annotations

import io
import json
from typing import TYPE_CHECKING, Any

import pytest

from contextgraph import app
from contextgraph.config import EngineConfig
from contextgraph.domain.model import Source, Workflow
from contextgraph.ui import cli
from tests.helpers.graphs import NOW, complete_graph, field_node, make_graph

if TYPE_CHECKING:
    from pathlib import Path

    from contextgraph.domain.canonicalization import CanonicalizationResult, Finding
    from contextgraph.domain.coverage import BlockerResult
    from contextgraph.domain.operator import OperatorUpdate
    from tests.helpers.graph_store import FakeGraphStore

FINDINGS = json.dumps(
    {
        "findings": [
            {"key": "industry", "value": "Restaurant payroll software", "confidence": 0.7},
            {"key": "positioning", "value": "Solutions provider focused on innovation"},
        ]
    }
)


@pytest.fixture
def calls(monkeypatch: pytest.MonkeyPatch, graph_store: FakeGraphStore) -> list[dict[str, Any]]:
    recorded: list[dict[str, Any]] = []

    def fake_canonicalize(
        company_id: str, findings: list[Finding], **kwargs: Any
    ) -> CanonicalizationResult:
        recorded.append({"company_id": company_id, **kwargs})
        return app.canonicalize_findings(
            company_id, findings, store=graph_store, engine=EngineConfig(), now=NOW, **kwargs
        )

    def fake_blockers(company_id: str, workflow: Workflow) -> BlockerResult:
        recorded.append({"company_id": company_id, "workflow": workflow})
        return app.get_blockers(company_id, workflow, store=graph_store, engine=EngineConfig())

    def fake_set_field(
        company_id: str, path_or_key: str, value: object, **kwargs: Any
    ) -> OperatorUpdate:
        recorded.append({"company_id": company_id, "field": path_or_key, "value": value, **kwargs})
        return app.set_field(
            company_id, path_or_key, value, store=graph_store, engine=EngineConfig(), **kwargs
        )

    def fake_confirm(company_id: str, path_or_key: str, **kwargs: Any) -> OperatorUpdate:
        recorded.append({"company_id": company_id, "field": path_or_key, **kwargs})
        return app.confirm_field(
            company_id, path_or_key, store=graph_store, engine=EngineConfig(), **kwargs
        )

    monkeypatch.setattr(cli, "canonicalize_findings", fake_canonicalize)
    monkeypatch.setattr(cli, "get_blockers", fake_blockers)
    monkeypatch.setattr(cli, "set_field", fake_set_field)
    monkeypatch.setattr(cli, "confirm_field", fake_confirm)
    return recorded


def test_canonicalize_reads_findings_file(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    calls: list[dict[str, Any]],
    graph_store: FakeGraphStore,
) -> None:
    findings_path = tmp_path / "findings.json"
    findings_path.write_text(FINDINGS, encoding="utf-8")

    cli.main(
        [
            "canonicalize",
            "acme",
            "--source",
            "gap_heavy",
            "--findings",
            str(findings_path),
            "--run-id",
            "run-9",
        ]
    )

    output = json.loads(capsys.readouterr().out)
    assert output["persisted"] is True
    assert [written["path"] for written in output["written"]] == ["identity.industry"]
    assert output["rejected"][0]["reason"] == "specificity_failed"
    assert calls[0]["source"] is Source.GAP_HEAVY
    assert calls[0]["source_run_id"] == "run-9"
    assert calls[0]["dry_run"] is False
    assert graph_store.saves[0].writer_tag == "canonicalizer:gap_heavy:run-9"


def test_canonicalize_reads_stdin_for_dry_runs(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    calls: list[dict[str, Any]],
    graph_store: FakeGraphStore,
) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(FINDINGS))

    cli.main(["canonicalize", "acme", "--source", "gap_heavy", "--dry-run"])

    output = json.loads(capsys.readouterr().out)
    assert output["dry_run"] is True
    assert calls[0]["dry_run"] is True
    assert graph_store.saves == []


@pytest.mark.parametrize(
    "argv",
    [
        ["canonicalize", "acme", "--source", "gap_heavy", "--findings", "missing.json"],
        ["set-field", "acme", "competitors", "[not json", "--json"],
        ["health", "acme", "--as-of", "yesterday"],
        ["canonicalize", "acme", "--source", "not_a_source"],
    ],
)
def test_invalid_arguments_exit_with_two(
    argv: list[str], calls: list[dict[str, Any]], tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)

    assert excinfo.value.code == 2
    assert calls == []


def test_malformed_findings_exit_with_two(
    monkeypatch: pytest.MonkeyPatch, calls: list[dict[str, Any]]
) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO('[{"value": "no key"}]'))

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["canonicalize", "acme", "--source", "gap_heavy"])

    assert excinfo.value.code == 2
    assert calls == []


def test_store_failures_exit_with_one(
    calls: list[dict[str, Any]], graph_store: FakeGraphStore
) -> None:
    _ = calls
    graph_store.fail_on_load = True

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["blockers", "acme", "--workflow", "strategy"])

    assert excinfo.value.code == 1


def test_blockers_prints_the_audit(
    capsys: pytest.CaptureFixture[str],
    calls: list[dict[str, Any]],
    graph_store: FakeGraphStore,
) -> None:
    graph_store.seed(complete_graph())

    cli.main(["blockers", "acme", "--workflow", "media"])

    output = json.loads(capsys.readouterr().out)
    assert calls[0]["workflow"] is Workflow.MEDIA
    assert output["workflow"] == "media"
    assert output["can_proceed"] is False
    assert output["blockers"][0]["label"] == "Monthly media budget"


def test_set_field_parses_json_values(
    capsys: pytest.CaptureFixture[str],
    calls: list[dict[str, Any]],
    graph_store: FakeGraphStore,
) -> None:
    cli.main(
        [
            "set-field",
            "acme",
            "competitors",
            '["Globex", "Initech"]',
            "--json",
            "--lock",
            "--reason",
            "Agreed",
            "--source",
            "strategy",
        ]
    )

    output = json.loads(capsys.readouterr().out)
    assert calls[0]["value"] == ["Globex", "Initech"]
    assert calls[0]["source"] is Source.STRATEGY
    assert output["locked"] is True
    assert output["status"] == "confirmed"
    assert graph_store.saves[0].writer_tag == "operator:strategy"


def test_operator_errors_exit_with_one(
    calls: list[dict[str, Any]], graph_store: FakeGraphStore
) -> None:
    _ = calls
    graph_store.seed(make_graph(fields={"identity.industry": field_node("Payroll software")}))

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["confirm", "acme", "brand.positioning"])

    assert excinfo.value.code == 1


def test_parse_iso_datetime_normalises_to_utc() -> None:
    parsed = cli._parse_iso_datetime("2025-06-01T14:00:00+02:00")  # noqa: SLF001  # type: ignore[reportPrivateUsage]

    assert parsed == NOW
