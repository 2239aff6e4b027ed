# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for layered configuration loading."""

from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest
from pydantic import ValidationError

from revpanel.config import ConfigLoader, EffectiveConfig, load_config
from revpanel.core.constants import CONFIG_FILENAME
from revpanel.core.severity import Severity
from revpanel.errors import ConfigParseError


def _write_config(root: Path, body: str) -> Path:
    path = root / CONFIG_FILENAME
    path.write_text(dedent(body), encoding="utf-8")
    return path


def test_defaults_without_project_file(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.review.severity_threshold is Severity.LOW
    assert config.review.fail_on is Severity.HIGH
    assert config.agents.always == ()
    assert config.dedupe.line_window == 5
    assert config.execution.jobs >= 1


def test_project_file_merges_per_field(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
        [agents]
        disabled = ["accessibility"]
        """,
    )

    config = load_config(tmp_path)

    assert config.agents.disabled == ("accessibility",)
    # Untouched sections keep their defaults.
    assert config.review.severity_threshold is Severity.LOW
    assert config.execution.agent_timeout == 300.0


def test_cli_overrides_take_precedence(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
        [review]
        severity-threshold = "medium"
        fail-on = "critical"
        """,
    )

    config = load_config(tmp_path, overrides={"review": {"severity-threshold": "high"}})

    assert config.review.severity_threshold is Severity.HIGH
    assert config.review.fail_on is Severity.CRITICAL


def test_agent_settings_and_category_thresholds(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
        [review.category-thresholds]
        Security = "info"

        [agents.config.security]
        severity-threshold = "medium"
        command = "scan-tool"
        timeout = 12.5
        custom-rules = [{ pattern = "md5", severity = "high", message = "Weak hash" }]
        """,
    )

    config = load_config(tmp_path)

    assert config.review.threshold_for("security") is Severity.INFO
    assert config.review.threshold_for("networking") is Severity.LOW
    settings = config.settings_for("security")
    assert settings.severity_threshold is Severity.MEDIUM
    assert settings.command == ("scan-tool",)
    assert settings.custom_rules[0]["message"] == "Weak hash"
    assert config.timeout_for("security") == 12.5
    assert config.timeout_for("networking") == config.execution.agent_timeout


def test_malformed_toml_is_fatal(tmp_path: Path) -> None:
    _write_config(tmp_path, "[agents\ndisabled = [")

    with pytest.raises(ConfigParseError, match="invalid TOML"):
        load_config(tmp_path)


@pytest.mark.parametrize(
    "body",
    [
        '[review]\nseverity-threshold = "severe"\n',
        '[project]\ntype = "spaceship"\n',
        '[review]\nunknown-key = 1\n',
        '[review]\nfail_on = "low"\n',
        "[execution]\njobs = 0\n",
    ],
)
def test_invalid_values_raise_config_parse_error(tmp_path: Path, body: str) -> None:
    _write_config(tmp_path, body)

    with pytest.raises(ConfigParseError, match="invalid configuration"):
        load_config(tmp_path)


def test_explicit_config_path_must_exist(tmp_path: Path) -> None:
    with pytest.raises(ConfigParseError, match="not found"):
        load_config(tmp_path, config_path=Path("missing.toml"))


def test_load_with_trace_records_provenance(tmp_path: Path) -> None:
    config_file = _write_config(
        tmp_path,
        """
        [project]
        type = "API"
        """,
    )

    result = ConfigLoader.for_root(
        tmp_path,
        overrides={"execution": {"jobs": 2}},
    ).load_with_trace()

    provenance = result.provenance()
    assert result.config.project.type == "api"
    assert provenance["project.type"] == str(config_file.resolve())
    assert provenance["execution.jobs"] == "cli"
    assert provenance["dedupe.line-window"] == "defaults"


def test_effective_config_is_frozen() -> None:
    config = EffectiveConfig()

    with pytest.raises(ValidationError):
        config.review = config.review  # type: ignore[misc]
