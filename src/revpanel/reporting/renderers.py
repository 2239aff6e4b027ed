# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Serialise a :class:`ReviewRun` into report documents.

Renderers are pure: identical runs render identical text. Any timestamp is
supplied by the caller through ``rendered_at``.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from enum import Enum
from typing import Any, Final

from .. import __version__
from ..core.models import AgentOutcome, Finding, ReviewRun
from ..core.severity import severity_to_sarif

SARIF_VERSION: Final[str] = "2.1.0"
SARIF_SCHEMA: Final[str] = "https://schemastore.azurewebsites.net/schemas/json/sarif-2.1.0.json"
TOOL_NAME: Final[str] = "revpanel"
FINGERPRINT_KEY: Final[str] = "revpanel/v1"


class ReportFormat(str, Enum):
    """Supported report formats."""

    JSON = "json"
    TEXT = "text"
    SARIF = "sarif"
    MARKDOWN = "markdown"


def finding_to_dict(finding: Finding) -> dict[str, Any]:
    """Return the canonical JSON representation of ``finding``.

    Args:
        finding: Finding to serialise.

    Returns:
        dict[str, Any]: JSON-compatible mapping with a fixed key order.
    """

    location = finding.location
    return {
        "severity": finding.severity.value,
        "category": finding.category,
        "location": (
            None
            if location is None
            else {
                "file_path": location.file_path,
                "line_start": location.line_start,
                "line_end": location.line_end,
            }
        ),
        "message": finding.message,
        "evidence": finding.evidence,
        "recommendation": finding.recommendation,
        "rule_ref": finding.rule_ref,
        "rule_refs": list(finding.rule_refs),
        "source_agent_ids": list(finding.source_agent_ids),
        "fingerprint": finding.fingerprint,
    }


def run_metadata(run: ReviewRun, rendered_at: str | None = None) -> dict[str, Any]:
    """Return the run metadata block shared by structured reports.

    Args:
        run: Completed review run.
        rendered_at: Optional caller-supplied timestamp.

    Returns:
        dict[str, Any]: Metadata mapping.
    """

    metadata: dict[str, Any] = {
        "scope": {
            "mode": run.scope.mode.value,
            "root": run.scope.root.as_posix(),
            "targets": list(run.scope.targets),
            "file_count": len(run.scope.files),
        },
        "selected_agents": list(run.selected_agents),
        "agents_run": [outcome.agent_id for outcome in run.agent_outcomes],
        "agents_failed": [_outcome_to_dict(outcome) for outcome in run.agents_failed],
        "degraded": run.degraded,
        "exit_code": run.exit_code,
        "finding_count": len(run.findings),
        "suppressed_count": run.suppressed_count,
        "rejected_count": len(run.rejected),
    }
    if rendered_at is not None:
        metadata["rendered_at"] = rendered_at
    return metadata


def _outcome_to_dict(outcome: AgentOutcome) -> dict[str, Any]:
    return {"agent_id": outcome.agent_id, "status": outcome.status.value, "detail": outcome.detail}


def render_json(run: ReviewRun, *, rendered_at: str | None = None) -> str:
    """Render the canonical JSON report."""

    payload = {
        "findings": [finding_to_dict(finding) for finding in run.findings],
        "metadata": run_metadata(run, rendered_at),
    }
    return json.dumps(payload, indent=2) + "\n"


def render_text(run: ReviewRun, *, rendered_at: str | None = None) -> str:
    """Render a plain-text summary for terminals and logs.

    Args:
        run: Completed review run.
        rendered_at: Optional caller-supplied timestamp.

    Returns:
        str: Multi-line report.
    """

    lines: list[str] = []
    for finding in run.findings:
        location = finding.location.describe() if finding.location else "<project>"
        agents = ", ".join(finding.source_agent_ids)
        lines.append(f"[{finding.severity.value.upper()}] {finding.category} {location}: {finding.message}")
        rules = f"; rules: {', '.join(finding.rule_refs)}" if finding.rule_refs else ""
        lines.append(f"    agents: {agents}{rules}")
        if finding.evidence:
            lines.extend(f"    > {line}" for line in finding.evidence.splitlines())
        if finding.recommendation:
            lines.append(f"    fix: {finding.recommendation}")
    if lines:
        lines.append("")
    agents_run = ", ".join(outcome.agent_id for outcome in run.agent_outcomes) or "none"
    lines.append(f"Scope: {run.scope.mode.value} ({len(run.scope.files)} file(s))")
    lines.append(f"Agents run: {agents_run}")
    lines.append(
        f"Findings: {len(run.findings)} reported, {run.suppressed_count} below threshold, "
        f"{len(run.rejected)} rejected",
    )
    if run.degraded:
        lines.append("DEGRADED: results may be incomplete")
        lines.extend(
            f"  - {outcome.agent_id} ({outcome.status.value}): {outcome.detail or 'no detail'}"
            for outcome in run.agents_failed
        )
    lines.append(f"Exit code: {run.exit_code}")
    if rendered_at is not None:
        lines.append(f"Rendered at: {rendered_at}")
    return "\n".join(lines) + "\n"


def render_markdown(run: ReviewRun, *, rendered_at: str | None = None) -> str:
    """Render a pull-request friendly Markdown summary.

    Args:
        run: Completed review run.
        rendered_at: Optional caller-supplied timestamp.

    Returns:
        str: Markdown document.
    """

    lines = ["# Review Summary", ""]
    if run.degraded:
        lines.append("> **Degraded run:** some agents did not finish; results may be incomplete.")
        lines.append("")
    if run.findings:
        lines.append("| Severity | Category | Location | Message | Agents |")
        lines.append("| --- | --- | --- | --- | --- |")
        for finding in run.findings:
            location = f"`{finding.location.describe()}`" if finding.location else "-"
            lines.append(
                "| "
                + " | ".join(
                    (
                        f"**{finding.severity.value.upper()}**",
                        _md_cell(finding.category),
                        location,
                        _md_cell(finding.message),
                        _md_cell(", ".join(finding.source_agent_ids)),
                    ),
                )
                + " |",
            )
    else:
        lines.append("No findings at or above the configured threshold.")
    lines.append("")
    agents_run = ", ".join(f"`{outcome.agent_id}`" for outcome in run.agent_outcomes) or "none"
    lines.append(f"- Scope: {run.scope.mode.value} ({len(run.scope.files)} file(s))")
    lines.append(f"- Agents run: {agents_run}")
    for outcome in run.agents_failed:
        lines.append(f"- Agent `{outcome.agent_id}` {outcome.status.value}: {_md_cell(outcome.detail or 'no detail')}")
    lines.append(f"- Exit code: {run.exit_code}")
    if rendered_at is not None:
        lines.append(f"- Rendered at: {rendered_at}")
    return "\n".join(lines) + "\n"


def _md_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def render_sarif(run: ReviewRun, *, rendered_at: str | None = None) -> str:
    """Render a SARIF 2.1.0 document with a single run.

    Args:
        run: Completed review run.
        rendered_at: Optional caller-supplied timestamp.

    Returns:
        str: SARIF JSON document.
    """

    rules: dict[str, dict[str, Any]] = {}
    results: list[dict[str, Any]] = []
    for finding in run.findings:
        rule_id = finding.rule_ref or finding.category
        for candidate in finding.rule_refs or (rule_id,):
            rules.setdefault(
                candidate,
                {"id": candidate, "name": candidate, "shortDescription": {"text": finding.message[:120]}},
            )
        entry: dict[str, Any] = {
            "ruleId": rule_id,
            "level": severity_to_sarif(finding.severity),
            "message": {"text": finding.message},
            "partialFingerprints": {FINGERPRINT_KEY: finding.fingerprint},
            "properties": {
                "severity": finding.severity.value,
                "category": finding.category,
                "sourceAgents": list(finding.source_agent_ids),
            },
        }
        if finding.location is not None:
            physical: dict[str, Any] = {"artifactLocation": {"uri": finding.location.file_path}}
            if finding.location.line_start is not None:
                physical["region"] = {
                    "startLine": finding.location.line_start,
                    "endLine": finding.location.line_end or finding.location.line_start,
                }
            entry["locations"] = [{"physicalLocation": physical}]
        results.append(entry)
    invocation: dict[str, Any] = {
        "executionSuccessful": not run.degraded,
        "exitCode": run.exit_code,
        "toolExecutionNotifications": [
            {"level": "error", "message": {"text": f"{outcome.agent_id} {outcome.status.value}: {outcome.detail}"}}
            for outcome in run.agents_failed
        ],
    }
    if rendered_at is not None:
        invocation["endTimeUtc"] = rendered_at
    document = {
        "version": SARIF_VERSION,
        "$schema": SARIF_SCHEMA,
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": TOOL_NAME,
                        "version": __version__,
                        "rules": [rules[key] for key in sorted(rules)],
                    },
                },
                "invocations": [invocation],
                "results": results,
            },
        ],
    }
    return json.dumps(document, indent=2) + "\n"


_RENDERERS: Final[dict[ReportFormat, Callable[..., str]]] = {
    ReportFormat.JSON: render_json,
    ReportFormat.TEXT: render_text,
    ReportFormat.SARIF: render_sarif,
    ReportFormat.MARKDOWN: render_markdown,
}


def render_report(
    run: ReviewRun,
    report_format: ReportFormat | str = ReportFormat.JSON,
    *,
    rendered_at: str | None = None,
) -> str:
    """Render ``run`` in ``report_format``.

    Args:
        run: Completed review run.
        report_format: Target format.
        rendered_at: Optional caller-supplied timestamp.

    Returns:
        str: Rendered document.

    Raises:
        ValueError: If the format is unknown.
    """

    return _RENDERERS[ReportFormat(report_format)](run, rendered_at=rendered_at)


__all__ = [
    "ReportFormat",
    "finding_to_dict",
    "render_json",
    "render_markdown",
    "render_report",
    "render_sarif",
    "render_text",
    "run_metadata",
]
