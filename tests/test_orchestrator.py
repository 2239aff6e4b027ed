# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""End-to-end tests for the review pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from fakes import SlowAgent, StaticAgent, fake_registry, not_a_repository, repository

from revpanel.core.constants import CONFIG_FILENAME
from revpanel.core.models import AgentStatus, ScopeMode
from revpanel.core.severity import Severity
from revpanel.discovery import GitDiscovery
from revpanel.errors import AgentSelectionError, RunCancelledError
from revpanel.orchestration import CancellationToken, ReviewOrchestrator, ReviewRequest
from revpanel.reporting import ReportFormat, render_report


def _orchestrator(registry: Any = None, *, git: GitDiscovery | None = None) -> ReviewOrchestrator:
    return ReviewOrchestrator(
        registry,
        git=git or GitDiscovery(runner=not_a_repository()),
        poll_interval=0.01,
    )


def _finding(message: str, *, severity: str = "high", line: int = 42, **extra: Any) -> dict[str, Any]:
    return {
        "severity": severity,
        "category": "security",
        "message": message,
        "file": "app/server.go",
        "line": line,
        **extra,
    }


def test_full_scope_with_builtin_agents(project: Path) -> None:
    run = _orchestrator().run(ReviewRequest(root=project, targets=("full",)))

    assert run.scope.mode is ScopeMode.FULL
    assert run.selected_agents == ("security", "networking", "accessibility", "performance")
    assert [outcome.status for outcome in run.agent_outcomes] == [AgentStatus.SUCCESS] * 4
    assert [(finding.category, finding.rule_ref) for finding in run.findings] == [
        ("accessibility", "A11Y001"),
        ("networking", "NET003"),
    ]
    assert run.findings[1].location is not None
    assert run.findings[1].location.describe() == "app/server.go:4"
    assert not run.degraded
    assert run.exit_code == 0


def test_fail_on_override_turns_findings_into_failure(project: Path) -> None:
    request = ReviewRequest(root=project, targets=("full",), overrides={"review": {"fail-on": "medium"}})

    assert _orchestrator().run(request).exit_code == 1


def test_clean_full_scope_exits_zero(tmp_path: Path) -> None:
    (tmp_path / "util.py").write_text("def add(a, b):\n    return a + b\n", encoding="utf-8")

    run = _orchestrator().run(ReviewRequest(root=tmp_path, targets=("full",)))

    assert run.findings == ()
    assert run.exit_code == 0
    assert not run.degraded


def test_disabled_agent_contributes_nothing(project: Path) -> None:
    (project / CONFIG_FILENAME).write_text('[agents]\ndisabled = ["accessibility"]\n', encoding="utf-8")

    run = _orchestrator().run(ReviewRequest(root=project, targets=("full",)))

    assert "accessibility" not in run.selected_agents
    assert all(finding.category != "accessibility" for finding in run.findings)


def test_timed_out_agent_degrades_the_run(tmp_path: Path) -> None:
    (tmp_path / "main.py").write_text("pass\n", encoding="utf-8")
    slow = SlowAgent(seconds=5)
    registry = fake_registry({"hung": slow, "security": StaticAgent([_finding("Hardcoded password")])})
    overrides = {"execution": {"agent-timeout": 0.2, "jobs": 2}}
    request = ReviewRequest(root=tmp_path, targets=("full",), overrides=overrides)

    run = _orchestrator(registry).run(request)

    assert run.degraded
    assert [outcome.agent_id for outcome in run.agents_failed] == ["hung"]
    assert run.agents_failed[0].status is AgentStatus.TIMEOUT
    assert [finding.message for finding in run.findings] == ["Hardcoded password"]
    assert run.exit_code == 1
    assert slow.cancelled.wait(2)


def test_agents_reporting_the_same_issue_are_merged(tmp_path: Path) -> None:
    (tmp_path / "main.go").write_text("package main\n", encoding="utf-8")
    registry = fake_registry(
        {
            "security": StaticAgent([_finding("Server binds to 0.0.0.0 over plaintext HTTP", severity="medium")]),
            "networking": StaticAgent([_finding("Listener exposed on all interfaces without TLS")]),
        },
    )

    run = _orchestrator(registry).run(ReviewRequest(root=tmp_path, targets=("full",)))

    assert len(run.findings) == 1
    assert run.findings[0].source_agent_ids == ("networking", "security")
    assert run.findings[0].severity is Severity.HIGH


def test_invalid_entries_are_rejected_not_fatal(tmp_path: Path) -> None:
    (tmp_path / "main.py").write_text("pass\n", encoding="utf-8")
    registry = fake_registry(
        {"security": StaticAgent([{"severity": "whatever", "message": "bad"}, _finding("Use of eval")])},
    )

    run = _orchestrator(registry).run(ReviewRequest(root=tmp_path, targets=("full",)))

    assert [finding.message for finding in run.findings] == ["Use of eval"]
    assert [(entry.agent_id, entry.index) for entry in run.rejected] == [("security", 0)]
    assert not run.degraded


def test_per_agent_threshold_counts_as_suppressed(tmp_path: Path) -> None:
    (tmp_path / "main.py").write_text("pass\n", encoding="utf-8")
    registry = fake_registry(
        {"security": StaticAgent([_finding("Use of eval", severity="low"), _finding("Hardcoded password", line=1)])},
    )
    overrides = {"agents": {"config": {"security": {"severity-threshold": "medium"}}}}

    run = _orchestrator(registry).run(ReviewRequest(root=tmp_path, targets=("full",), overrides=overrides))

    assert [finding.message for finding in run.findings] == ["Hardcoded password"]
    assert run.suppressed_count == 1


def test_empty_diff_runs_no_agents(tmp_path: Path) -> None:
    agent = StaticAgent([_finding("Hardcoded password")])

    run = _orchestrator(fake_registry({"security": agent}), git=GitDiscovery(runner=repository())).run(
        ReviewRequest(root=tmp_path),
    )

    assert run.scope.is_empty
    assert run.agent_outcomes == ()
    assert agent.calls == 0
    assert run.exit_code == 0


def test_pick_of_disabled_agent_fails_before_running(project: Path) -> None:
    (project / CONFIG_FILENAME).write_text('[agents]\ndisabled = ["security"]\n', encoding="utf-8")

    with pytest.raises(AgentSelectionError):
        _orchestrator().run(ReviewRequest(root=project, targets=("full",), pick=("security",)))


def test_cancelled_token_aborts(project: Path) -> None:
    token = CancellationToken()
    token.cancel("received SIGTERM")

    with pytest.raises(RunCancelledError, match="SIGTERM"):
        _orchestrator().run(ReviewRequest(root=project, targets=("full",)), token)


def test_repeated_runs_are_identical(project: Path) -> None:
    request = ReviewRequest(root=project, targets=("full",))
    orchestrator = _orchestrator()

    first = orchestrator.run(request)
    second = orchestrator.run(request)

    assert first == second
    assert render_report(first, ReportFormat.JSON) == render_report(second, ReportFormat.JSON)
