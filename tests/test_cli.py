# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI tests for the review, agents, and config commands."""

from __future__ import annotations

import json
import signal
from pathlib import Path

import pytest
from typer.testing import CliRunner

from revpanel.cli import review as review_cli
from revpanel.cli.app import app
from revpanel.cli.review import ReviewOptions, cancellation_on_signals
from revpanel.cli.shared import split_ids
from revpanel.core.constants import CONFIG_FILENAME
from revpanel.core.models import ReviewRun
from revpanel.orchestration import CancellationToken, ReviewRequest
from revpanel.reporting import ReportFormat

QUIET = ["--quiet", "--no-emoji", "--no-color"]


def test_review_pick_emits_json_report(project: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["review", "app/server.go", "--root", str(project), "--pick", "networking", *QUIET])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert [finding["rule_ref"] for finding in payload["findings"]] == ["NET003"]
    assert payload["metadata"]["selected_agents"] == ["networking"]
    assert payload["metadata"]["scope"]["mode"] == "paths"


def test_review_fail_on_sets_exit_code(project: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["review", "app", "web", "--root", str(project), "--fail-on", "medium", *QUIET],
    )

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert {finding["category"] for finding in payload["findings"]} == {"accessibility", "networking"}


def test_review_threshold_flag_suppresses_findings(project: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["review", "app", "web", "--root", str(project), "--threshold", "high", *QUIET])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["findings"] == []
    assert payload["metadata"]["suppressed_count"] == 2


def test_shortcut_command_writes_output_file(project: Path) -> None:
    runner = CliRunner()
    report = project / "out" / "report.txt"

    result = runner.invoke(
        app,
        [
            "accessibility",
            "web",
            "--root",
            str(project),
            "--format",
            "text",
            "--output",
            str(report),
            "--rendered-at",
            "2025-06-01T00:00:00Z",
            *QUIET,
        ],
    )

    assert result.exit_code == 0
    text = report.read_text(encoding="utf-8")
    assert "[MEDIUM] accessibility web/index.html:1" in text
    assert "Agents run: accessibility" in text
    assert "Rendered at: 2025-06-01T00:00:00Z" in text


def test_invalid_config_exits_with_code_two(project: Path) -> None:
    (project / CONFIG_FILENAME).write_text('[review]\nfail-on = "sometimes"\n', encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(app, ["review", "app", "--root", str(project), "--no-emoji", "--no-color"])

    assert result.exit_code == 2
    assert "configuration error" in result.output


def test_unknown_pick_exits_with_code_two(project: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["review", "app", "--root", str(project), "--pick", "securty", "--no-emoji"])

    assert result.exit_code == 2
    assert "unknown agent id" in result.output


def test_scope_outside_root_exits_with_code_two(project: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["review", "../elsewhere", "--root", str(project), "--no-emoji"])

    assert result.exit_code == 2
    assert "scope error" in result.output


class _InterruptedOrchestrator:
    """Orchestrator that receives SIGINT half-way through the run."""

    def run(self, request: ReviewRequest, token: CancellationToken) -> ReviewRun:
        signal.raise_signal(signal.SIGINT)
        token.raise_if_cancelled()
        raise AssertionError("cancellation was not delivered")


def test_interrupted_review_exits_with_code_three(project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(review_cli, "ReviewOrchestrator", _InterruptedOrchestrator)
    runner = CliRunner()

    result = runner.invoke(app, ["review", "app", "--root", str(project), "--no-emoji", "--no-color"])

    assert result.exit_code == 3
    assert "review cancelled (received SIGINT)" in result.output
    assert '"findings"' not in result.output


def test_signal_handlers_cancel_token_and_are_restored() -> None:
    token = CancellationToken()
    before = signal.getsignal(signal.SIGTERM)

    with cancellation_on_signals(token):
        signal.raise_signal(signal.SIGTERM)

    assert token.cancelled
    assert token.reason == "received SIGTERM"
    assert signal.getsignal(signal.SIGTERM) == before


def test_agents_lists_catalog() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["agents", "--no-color"])

    assert result.exit_code == 0
    for agent_id in ("security", "networking", "accessibility", "documentation"):
        assert agent_id in result.stdout


def test_agents_explain_shows_selection(project: Path) -> None:
    (project / CONFIG_FILENAME).write_text('[agents]\ndisabled = ["accessibility"]\n', encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(app, ["agents", "--explain", "app", "web", "--root", str(project), "--no-color"])

    assert result.exit_code == 0
    assert "Selected: security, networking, performance" in result.stdout
    assert "Scope: paths, 3 file(s)" in result.stdout


def test_config_show_reports_provenance(project: Path) -> None:
    config_file = project / CONFIG_FILENAME
    config_file.write_text("[execution]\njobs = 3\n", encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(app, ["config", "show", "--root", str(project)])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["config"]["execution"]["jobs"] == 3
    assert payload["config"]["review"]["fail-on"] == "high"
    assert payload["provenance"]["execution.jobs"] == str(config_file.resolve())

    untraced = json.loads(runner.invoke(app, ["config", "show", "--root", str(project), "--no-trace"]).stdout)
    assert "provenance" not in untraced


def test_review_options_build_overrides(tmp_path: Path) -> None:
    options = ReviewOptions(
        targets=("full",),
        pick=split_ids(["Security,networking", "security"]),
        root=tmp_path,
        config_path=None,
        report_format=ReportFormat.JSON,
        output=None,
        threshold="medium",
        fail_on=None,
        jobs=2,
        timeout=9.5,
        base="main",
        rendered_at=None,
        verbose=False,
        quiet=True,
        no_color=True,
        no_emoji=True,
    )

    request = options.to_request()

    assert request.pick == ("security", "networking")
    assert request.overrides == {
        "review": {"severity-threshold": "medium", "base-branch": "main"},
        "execution": {"jobs": 2, "agent-timeout": 9.5},
    }
