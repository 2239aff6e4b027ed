# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for fingerprint-based de-duplication."""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import Any

import pytest

from revpanel.core.models import Finding, Location
from revpanel.core.severity import Severity
from revpanel.findings import FindingNormalizer, Fingerprinter, deduplicate, merge_group


def _finding(
    agent: str,
    severity: Severity,
    *,
    fingerprint: str = "f" * 16,
    line: int = 42,
    **extra: Any,
) -> Finding:
    return Finding(
        severity=severity,
        category=extra.pop("category", "security"),
        location=Location(file_path="app/server.go", line_start=line),
        message=extra.pop("message", f"{agent} message"),
        source_agent_ids=(agent,),
        fingerprint=fingerprint,
        **extra,
    )


def test_two_agents_same_issue_collapse_to_one(tmp_path: Path) -> None:
    normalizer = FindingNormalizer(tmp_path, Fingerprinter())
    security = normalizer.normalize(
        "security",
        [
            {
                "severity": "high",
                "category": "security",
                "message": "Server binds to 0.0.0.0 over plaintext HTTP",
                "file": "app/server.go",
                "line": 42,
                "rule_ref": "SEC-BIND",
            },
        ],
    )
    networking = normalizer.normalize(
        "networking",
        [
            {
                "severity": "medium",
                "category": "security",
                "message": "Listener exposed on all interfaces without TLS",
                "file": "app/server.go",
                "line": 42,
                "rule_ref": "NET001",
            },
        ],
    )

    merged = deduplicate([*security.findings, *networking.findings])

    assert len(merged) == 1
    finding = merged[0]
    assert finding.source_agent_ids == ("networking", "security")
    assert finding.severity is Severity.HIGH
    assert finding.rule_refs == ("NET001", "SEC-BIND")


def test_merge_keeps_highest_severity() -> None:
    merged = merge_group([_finding("a", Severity.MEDIUM), _finding("b", Severity.HIGH)])

    assert merged.severity is Severity.HIGH


def test_merge_is_independent_of_arrival_order() -> None:
    group = [
        _finding("security", Severity.MEDIUM, line=41, evidence="bind(0.0.0.0)", recommendation="Bind to localhost"),
        _finding("networking", Severity.HIGH, line=44, evidence="listen :80", message="Exposed listener on port 80"),
        _finding("api", Severity.LOW, line=42, recommendation="Restrict the interface"),
    ]

    results = {merge_group(list(permutation)) for permutation in itertools.permutations(group)}

    assert len(results) == 1
    merged = results.pop()
    assert merged.source_agent_ids == ("api", "networking", "security")
    assert merged.message == "Exposed listener on port 80"
    assert merged.recommendation == "Restrict the interface"
    assert merged.evidence == "bind(0.0.0.0)\nlisten :80"
    assert merged.location == Location(file_path="app/server.go", line_start=41, line_end=44)


def test_deduplicate_orders_by_fingerprint_and_keeps_singletons() -> None:
    findings = [
        _finding("a", Severity.LOW, fingerprint="b" * 16),
        _finding("b", Severity.LOW, fingerprint="a" * 16, line=200),
        _finding("c", Severity.INFO, fingerprint="b" * 16),
    ]

    merged = deduplicate(findings)

    assert [finding.fingerprint for finding in merged] == ["a" * 16, "b" * 16]
    assert merged[1].source_agent_ids == ("a", "c")
    assert deduplicate(reversed(findings)) == merged


def _normalized(tmp_path: Path, agent: str, message: str, **location: int) -> list[Finding]:
    normalizer = FindingNormalizer(tmp_path, Fingerprinter(line_window=5))
    entry = {"severity": "medium", "category": "security", "message": message, "file": "a.py", **location}
    return list(normalizer.normalize(agent, [entry]).findings)


def test_adjacent_lines_across_a_bucket_edge_merge(tmp_path: Path) -> None:
    first = _normalized(tmp_path, "security", "Hardcoded password", line=45)
    second = _normalized(tmp_path, "performance", "Hard coded password literal", line=46)
    assert first[0].fingerprint != second[0].fingerprint

    merged = deduplicate([*first, *second], Fingerprinter(line_window=5))

    assert len(merged) == 1
    assert merged[0].source_agent_ids == ("performance", "security")
    assert merged[0].fingerprint == min(first[0].fingerprint, second[0].fingerprint)
    assert merged[0].location == Location(file_path="a.py", line_start=45, line_end=46)


def test_overlapping_ranges_merge(tmp_path: Path) -> None:
    ranged = _normalized(tmp_path, "security", "Hardcoded password", line_start=40, line_end=46)
    point = _normalized(tmp_path, "networking", "Hardcoded password", line=46)

    merged = deduplicate([*ranged, *point], Fingerprinter(line_window=5))

    assert len(merged) == 1
    assert merged[0].location == Location(file_path="a.py", line_start=40, line_end=46)


def test_distant_or_different_issues_stay_separate(tmp_path: Path) -> None:
    findings = [
        *_normalized(tmp_path, "security", "Hardcoded password", line=10),
        *_normalized(tmp_path, "networking", "Hardcoded password", line=15),
        *_normalized(tmp_path, "api", "Use of eval", line=11),
    ]

    merged = deduplicate(findings, Fingerprinter(line_window=5))

    assert sorted(finding.source_agent_ids for finding in merged) == [("api",), ("networking",), ("security",)]


def test_chained_reports_merge_in_any_order(tmp_path: Path) -> None:
    findings = [
        *_normalized(tmp_path, "security", "Hardcoded password", line=40),
        *_normalized(tmp_path, "networking", "Hardcoded password", line=48),
        *_normalized(tmp_path, "api", "Hardcoded password", line=44),
    ]

    fingerprinter = Fingerprinter(line_window=5)
    results = {deduplicate(permutation, fingerprinter) for permutation in itertools.permutations(findings)}

    assert len(results) == 1
    (merged,) = results.pop()
    assert merged.source_agent_ids == ("api", "networking", "security")


def test_merge_group_validates_input() -> None:
    with pytest.raises(ValueError):
        merge_group([])


def test_merge_group_keeps_smallest_fingerprint() -> None:
    merged = merge_group([_finding("a", Severity.LOW, fingerprint="1" * 16), _finding("b", Severity.LOW)])

    assert merged.fingerprint == "1" * 16
