# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models for the review orchestrator.

Every section is a frozen pydantic model so the merged configuration can be
shared by reference across concurrently running agents.
"""

from __future__ import annotations

import math
import os
import shlex
from collections.abc import Mapping
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.constants import PROJECT_TYPE_TRAITS
from ..core.severity import Severity


def _kebab(name: str) -> str:
    return name.replace("_", "-")


_SECTION_CONFIG: Final[ConfigDict] = ConfigDict(
    frozen=True,
    extra="forbid",
    alias_generator=_kebab,
)


def default_parallel_jobs() -> int:
    """Return a CPU count scaled down for concurrent agent execution.

    Returns:
        int: Roughly 75% of available CPU cores, never less than one.
    """

    cores = os.cpu_count() or 1
    return max(1, math.floor(cores * 0.75))


def _parse_severity(value: Any) -> Severity:
    """Parse ``value`` as a severity, raising ``ValueError`` for pydantic to report."""

    if isinstance(value, Severity):
        return value
    if not isinstance(value, str):
        raise ValueError("severity must be a string")
    return Severity.parse(value)


class ProjectConfig(BaseModel):
    """Project level declarations."""

    model_config = _SECTION_CONFIG

    type: str | None = None

    @field_validator("type", mode="after")
    @classmethod
    def _known_type(cls, value: str | None) -> str | None:
        """Reject project types the profiler does not understand.

        Args:
            value: Declared project type.

        Returns:
            str | None: Lowercase project type or ``None``.
        """

        if value is None:
            return None
        lowered = value.strip().lower()
        if lowered not in PROJECT_TYPE_TRAITS:
            choices = ", ".join(sorted(PROJECT_TYPE_TRAITS))
            raise ValueError(f"unknown project type {value!r}; expected one of: {choices}")
        return lowered


class ReviewConfig(BaseModel):
    """Severity gating and diff baseline settings."""

    model_config = _SECTION_CONFIG

    severity_threshold: Severity = Severity.LOW
    fail_on: Severity = Severity.HIGH
    base_branch: str | None = None
    category_thresholds: dict[str, Severity] = Field(default_factory=dict)

    @field_validator("severity_threshold", "fail_on", mode="before")
    @classmethod
    def _coerce_severity(cls, value: Any) -> Severity:
        """Parse severity names case-insensitively.

        Args:
            value: Raw severity value.

        Returns:
            Severity: Parsed severity.
        """

        return _parse_severity(value)

    @field_validator("category_thresholds", mode="before")
    @classmethod
    def _coerce_category_thresholds(cls, value: Any) -> dict[str, Severity]:
        """Parse per-category thresholds, lowercasing category names.

        Args:
            value: Raw mapping of category to severity name.

        Returns:
            dict[str, Severity]: Parsed thresholds.
        """

        if not isinstance(value, Mapping):
            raise ValueError("category-thresholds must be a table")
        return {str(key).lower(): _parse_severity(item) for key, item in value.items()}

    def threshold_for(self, category: str) -> Severity:
        """Return the gating threshold for ``category``.

        Args:
            category: Finding category.

        Returns:
            Severity: Category override or the global threshold.
        """

        return self.category_thresholds.get(category.lower(), self.severity_threshold)


class ScopeConfig(BaseModel):
    """File discovery tuning."""

    model_config = _SECTION_CONFIG

    exclude: tuple[str, ...] = Field(default_factory=tuple)


class ExecutionConfig(BaseModel):
    """Agent pool sizing and time budgets."""

    model_config = _SECTION_CONFIG

    jobs: int = Field(default_factory=default_parallel_jobs, ge=1)
    agent_timeout: float = Field(default=300.0, gt=0)


class DedupeConfig(BaseModel):
    """Fingerprint parameters used to recognise duplicate findings."""

    model_config = _SECTION_CONFIG

    line_window: int = Field(default=5, ge=1)
    signature_tokens: int = Field(default=3, ge=1)


class AgentSettings(BaseModel):
    """Per-agent overrides from ``[agents.config.<id>]``."""

    model_config = _SECTION_CONFIG

    severity_threshold: Severity | None = None
    custom_rules: tuple[Any, ...] = Field(default_factory=tuple)
    command: tuple[str, ...] | None = None
    timeout: float | None = Field(default=None, gt=0)

    @field_validator("severity_threshold", mode="before")
    @classmethod
    def _coerce_severity(cls, value: Any) -> Severity | None:
        """Parse the optional per-agent threshold.

        Args:
            value: Raw severity value or ``None``.

        Returns:
            Severity | None: Parsed severity.
        """

        return None if value is None else _parse_severity(value)

    @field_validator("command", mode="before")
    @classmethod
    def _coerce_command(cls, value: Any) -> Any:
        """Split a command string into an argv with shell-like quoting rules.

        Args:
            value: Command as a string or list of strings.

        Returns:
            Any: Value suitable for tuple validation.
        """

        if isinstance(value, str):
            return tuple(shlex.split(value))
        return value


class AgentsConfig(BaseModel):
    """Agent enablement policy."""

    model_config = _SECTION_CONFIG

    always: tuple[str, ...] = Field(default_factory=tuple)
    disabled: tuple[str, ...] = Field(default_factory=tuple)
    config: dict[str, AgentSettings] = Field(default_factory=dict)


class EffectiveConfig(BaseModel):
    """Merged, immutable configuration for one review run."""

    model_config = _SECTION_CONFIG

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    review: ReviewConfig = Field(default_factory=ReviewConfig)
    scope: ScopeConfig = Field(default_factory=ScopeConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    dedupe: DedupeConfig = Field(default_factory=DedupeConfig)
    agents: AgentsConfig = Field(default_factory=AgentsConfig)

    def settings_for(self, agent_id: str) -> AgentSettings:
        """Return per-agent settings, falling back to empty defaults.

        Args:
            agent_id: Agent identifier.

        Returns:
            AgentSettings: Configured or default settings.
        """

        return self.agents.config.get(agent_id, _EMPTY_SETTINGS)

    def timeout_for(self, agent_id: str) -> float:
        """Return the time budget in seconds for ``agent_id``.

        Args:
            agent_id: Agent identifier.

        Returns:
            float: Per-agent override or the global agent timeout.
        """

        override = self.settings_for(agent_id).timeout
        return override if override is not None else self.execution.agent_timeout

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible mapping keyed by the file spelling.

        Returns:
            dict[str, Any]: Serialised configuration.
        """

        return self.model_dump(mode="json", by_alias=True)


_EMPTY_SETTINGS: Final[AgentSettings] = AgentSettings()


__all__ = [
    "AgentSettings",
    "AgentsConfig",
    "DedupeConfig",
    "EffectiveConfig",
    "ExecutionConfig",
    "ProjectConfig",
    "ReviewConfig",
    "ScopeConfig",
    "default_parallel_jobs",
]
