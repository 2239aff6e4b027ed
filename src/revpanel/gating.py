# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Severity thresholds, deterministic ordering, and exit status."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .config.models import EffectiveConfig
from .core.constants import ExitCode
from .core.models import Finding


@dataclass(frozen=True, slots=True)
class GateResult:
    """Findings that survived gating plus the derived exit status."""

    findings: tuple[Finding, ...]
    suppressed_count: int
    exit_code: ExitCode


def sort_key(finding: Finding) -> tuple[int, bool, str, int, str, str]:
    """Return the total ordering key used for reports.

    Severity descending, then file path, start line, category, and finally
    the fingerprint so identical inputs always sort identically. Findings
    without a location sort after located ones of the same severity.

    Args:
        finding: Finding to order.

    Returns:
        tuple[int, bool, str, int, str, str]: Sort key.
    """

    location = finding.location
    return (
        -finding.severity.rank,
        location is None,
        location.file_path if location else "",
        (location.line_start or 0) if location else 0,
        finding.category,
        finding.fingerprint,
    )


class SeverityGate:
    """Apply per-agent, per-category, and global thresholds."""

    def __init__(self, config: EffectiveConfig) -> None:
        """Create the gate.

        Args:
            config: Effective configuration holding thresholds.
        """

        self._config = config

    def prefilter(self, findings: Iterable[Finding]) -> tuple[list[Finding], int]:
        """Drop single-agent findings below that agent's own threshold.

        Runs before de-duplication, while every finding still has exactly
        one source agent.

        Args:
            findings: Normalised findings.

        Returns:
            tuple[list[Finding], int]: Kept findings and the number dropped.
        """

        kept: list[Finding] = []
        dropped = 0
        for finding in findings:
            threshold = None
            if len(finding.source_agent_ids) == 1:
                threshold = self._config.settings_for(finding.source_agent_ids[0]).severity_threshold
            if threshold is not None and not finding.severity.at_least(threshold):
                dropped += 1
                continue
            kept.append(finding)
        return kept, dropped

    def apply(self, findings: Iterable[Finding]) -> GateResult:
        """Filter, sort, and compute the exit status.

        Args:
            findings: De-duplicated findings.

        Returns:
            GateResult: Surviving findings in report order.
        """

        review = self._config.review
        kept: list[Finding] = []
        suppressed = 0
        for finding in findings:
            if finding.severity.at_least(review.threshold_for(finding.category)):
                kept.append(finding)
            else:
                suppressed += 1
        kept.sort(key=sort_key)
        failing = any(finding.severity.at_least(review.fail_on) for finding in kept)
        return GateResult(
            findings=tuple(kept),
            suppressed_count=suppressed,
            exit_code=ExitCode.FINDINGS if failing else ExitCode.OK,
        )


__all__ = ["GateResult", "SeverityGate", "sort_key"]
