# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for raw finding normalisation."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from revpanel.core.models import RawFinding
from revpanel.core.severity import Severity
from revpanel.errors import SchemaValidationError
from revpanel.findings import FindingNormalizer, Fingerprinter


def _normalizer(root: Path) -> FindingNormalizer:
    return FindingNormalizer(root, Fingerprinter())


def test_flat_and_nested_locations_are_equivalent(tmp_path: Path) -> None:
    normalizer = _normalizer(tmp_path)

    flat = normalizer.normalize_one(
        "security",
        {"severity": "HIGH", "category": "Security", "message": "Hardcoded password", "file": "app/a.py", "line": 7},
    )
    nested = normalizer.normalize_one(
        "security",
        {
            "severity": "high",
            "category": "security",
            "message": "Hardcoded password",
            "location": {"file_path": "./app/a.py", "line_start": 7},
        },
    )

    assert flat.fingerprint == nested.fingerprint
    assert flat.category == "security"
    assert flat.location is not None
    assert flat.location.describe() == "app/a.py:7"
    assert flat.source_agent_ids == ("security",)


def test_absolute_paths_become_root_relative(tmp_path: Path) -> None:
    target = tmp_path / "pkg" / "mod.py"

    finding = _normalizer(tmp_path).normalize_one(
        "performance",
        {"severity": "low", "category": "performance", "message": "Blocking sleep", "file": str(target)},
    )

    assert finding.file_path == "pkg/mod.py"


def test_optional_fields_and_rule_refs(tmp_path: Path) -> None:
    raw = RawFinding(severity=Severity.MEDIUM, category="api", message="Open CORS", rule_ref="API001", evidence="")

    finding = _normalizer(tmp_path).normalize_one("api", raw)

    assert finding.rule_refs == ("API001",)
    assert finding.evidence is None
    assert finding.location is None


@pytest.mark.parametrize(
    "item",
    [
        "not a mapping",
        {"category": "security", "message": "missing severity"},
        {"severity": "catastrophic", "category": "security", "message": "bad severity"},
        {"severity": "low", "category": "security", "message": ""},
        {"severity": "low", "category": "security", "message": "bad line", "file": "a.py", "line": 0},
    ],
)
def test_invalid_entries_raise_schema_errors(tmp_path: Path, item: object) -> None:
    with pytest.raises(SchemaValidationError):
        _normalizer(tmp_path).normalize_one("security", item)


def test_normalize_drops_invalid_entries_and_keeps_the_rest(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    items = [
        {"severity": "high", "category": "security", "message": "Hardcoded password", "file": "a.py", "line": 1},
        {"severity": "severe", "category": "security", "message": "Unknown level"},
        42,
        {"severity": "low", "category": "security", "message": "Use of eval", "file": "b.py"},
    ]

    with caplog.at_level(logging.WARNING, logger="revpanel.findings.normalizer"):
        result = _normalizer(tmp_path).normalize("security", items)

    assert [finding.message for finding in result.findings] == ["Hardcoded password", "Use of eval"]
    assert [(entry.agent_id, entry.index) for entry in result.rejected] == [("security", 1), ("security", 2)]
    assert "dropped finding #1 from security" in caplog.text
