# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for report renderers."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from revpanel import __version__
from revpanel.config.models import EffectiveConfig
from revpanel.core.models import (
    AgentOutcome,
    AgentStatus,
    Finding,
    Location,
    RejectedFinding,
    ReviewRun,
    Scope,
    ScopeMode,
)
from revpanel.core.severity import Severity
from revpanel.reporting import ReportFormat, render_report


def _run(tmp_path: Path, *, degraded: bool = False, findings: tuple[Finding, ...] | None = None) -> ReviewRun:
    default_findings = (
        Finding(
            severity=Severity.HIGH,
            category="security",
            location=Location(file_path="app/server.go", line_start=42, line_end=44),
            message="Server binds to every interface | over plaintext HTTP",
            evidence='ListenAndServe("0.0.0.0:80")\nlisten :80',
            recommendation="Bind to localhost",
            rule_refs=("NET003", "SEC-BIND"),
            source_agent_ids=("networking", "security"),
            fingerprint="a" * 16,
        ),
        Finding(
            severity=Severity.LOW,
            category="dependencies",
            message="Lockfile missing",
            source_agent_ids=("dependencies",),
            fingerprint="b" * 16,
        ),
    )
    outcomes = [AgentOutcome(agent_id="security", status=AgentStatus.SUCCESS, finding_count=1)]
    if degraded:
        outcomes.append(
            AgentOutcome(agent_id="networking", status=AgentStatus.TIMEOUT, detail="exceeded 5s time budget"),
        )
    return ReviewRun(
        scope=Scope(mode=ScopeMode.FULL, root=tmp_path, targets=("full",), files=(tmp_path / "app" / "server.go",)),
        effective_config=EffectiveConfig(),
        selected_agents=tuple(outcome.agent_id for outcome in outcomes),
        agent_outcomes=tuple(outcomes),
        findings=default_findings if findings is None else findings,
        rejected=(RejectedFinding(agent_id="security", index=3, reason="severity: unknown"),),
        suppressed_count=2,
        degraded=degraded,
        exit_code=1,
    )


def test_json_report_shape(tmp_path: Path) -> None:
    payload = json.loads(render_report(_run(tmp_path), ReportFormat.JSON))

    first = payload["findings"][0]
    assert first["severity"] == "high"
    assert first["location"] == {"file_path": "app/server.go", "line_start": 42, "line_end": 44}
    assert first["source_agent_ids"] == ["networking", "security"]
    assert first["rule_ref"] == "NET003"
    assert payload["findings"][1]["location"] is None
    metadata = payload["metadata"]
    assert metadata["scope"] == {"mode": "full", "root": tmp_path.as_posix(), "targets": ["full"], "file_count": 1}
    assert metadata["agents_failed"] == []
    assert metadata["degraded"] is False
    assert metadata["exit_code"] == 1
    assert (metadata["suppressed_count"], metadata["rejected_count"]) == (2, 1)
    assert "rendered_at" not in metadata


@pytest.mark.parametrize("report_format", list(ReportFormat))
def test_rendering_is_byte_identical(tmp_path: Path, report_format: ReportFormat) -> None:
    run = _run(tmp_path, degraded=True)

    assert render_report(run, report_format) == render_report(run.model_copy(), report_format)


@pytest.mark.parametrize("report_format", list(ReportFormat))
def test_rendered_at_is_only_included_when_supplied(tmp_path: Path, report_format: ReportFormat) -> None:
    run = _run(tmp_path)
    stamp = "2025-01-02T03:04:05Z"

    assert stamp not in render_report(run, report_format)
    assert stamp in render_report(run, report_format, rendered_at=stamp)


def test_text_report_lists_findings_and_degradation(tmp_path: Path) -> None:
    text = render_report(_run(tmp_path, degraded=True), "text")

    assert "[HIGH] security app/server.go:42-44: Server binds" in text
    assert "agents: networking, security; rules: NET003, SEC-BIND" in text
    assert '    > ListenAndServe("0.0.0.0:80")' in text
    assert "    fix: Bind to localhost" in text
    assert "[LOW] dependencies <project>: Lockfile missing" in text
    assert "DEGRADED: results may be incomplete" in text
    assert "networking (timeout): exceeded 5s time budget" in text
    assert text.endswith("Exit code: 1\n")


def test_markdown_report(tmp_path: Path) -> None:
    markdown = render_report(_run(tmp_path, degraded=True), ReportFormat.MARKDOWN)

    assert markdown.startswith("# Review Summary\n")
    assert "Degraded run" in markdown
    assert "every interface \\| over plaintext" in markdown
    assert "`app/server.go:42-44`" in markdown


def test_markdown_without_findings(tmp_path: Path) -> None:
    markdown = render_report(_run(tmp_path, findings=()), ReportFormat.MARKDOWN)

    assert "No findings at or above the configured threshold." in markdown
    assert "Degraded run" not in markdown


def test_sarif_document(tmp_path: Path) -> None:
    document = json.loads(render_report(_run(tmp_path, degraded=True), ReportFormat.SARIF, rendered_at="now"))

    assert document["version"] == "2.1.0"
    (run,) = document["runs"]
    driver = run["tool"]["driver"]
    assert driver["name"] == "revpanel"
    assert driver["version"] == __version__
    assert [rule["id"] for rule in driver["rules"]] == ["NET003", "SEC-BIND", "dependencies"]
    first, second = run["results"]
    assert first["level"] == "error"
    assert first["partialFingerprints"] == {"revpanel/v1": "a" * 16}
    assert first["locations"][0]["physicalLocation"]["region"] == {"startLine": 42, "endLine": 44}
    assert "locations" not in second
    assert second["level"] == "note"
    invocation = run["invocations"][0]
    assert invocation["executionSuccessful"] is False
    assert invocation["endTimeUtc"] == "now"
    assert len(invocation["toolExecutionNotifications"]) == 1


def test_unknown_format_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        render_report(_run(tmp_path), "yaml")
