# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core data models shared across the revpanel package."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..config.models import EffectiveConfig
from .severity import Severity

_FILE_KEYS = ("file_path", "file", "path", "filename")
_LINE_START_KEYS = ("line_start", "line", "start_line")
_LINE_END_KEYS = ("line_end", "end_line")


class Location(BaseModel):
    """Position of a finding inside the reviewed scope."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    file_path: str = Field(min_length=1)
    line_start: int | None = Field(default=None, ge=1)
    line_end: int | None = Field(default=None, ge=1)

    @model_validator(mode="before")
    @classmethod
    def _order_lines(cls, data: Any) -> Any:
        """Default ``line_end`` to ``line_start`` and keep the range ordered.

        Args:
            data: Raw payload handed to the model.

        Returns:
            Any: Payload with a well-formed line range.
        """

        if not isinstance(data, Mapping):
            return data
        payload = {
            "file_path": _first_present(data, _FILE_KEYS),
            "line_start": _first_present(data, _LINE_START_KEYS),
            "line_end": _first_present(data, _LINE_END_KEYS),
        }
        start, end = _as_line(payload["line_start"]), _as_line(payload["line_end"])
        if start is None:
            start = end
        if end is None:
            end = start
        if isinstance(start, int) and isinstance(end, int) and end < start:
            start, end = end, start
        payload["line_start"], payload["line_end"] = start, end
        return payload

    def describe(self) -> str:
        """Return ``path:start[-end]`` for display purposes.

        Returns:
            str: Compact location string.
        """

        if self.line_start is None:
            return self.file_path
        if self.line_end is None or self.line_end == self.line_start:
            return f"{self.file_path}:{self.line_start}"
        return f"{self.file_path}:{self.line_start}-{self.line_end}"


class RawFinding(BaseModel):
    """Agent-native finding payload validated against the canonical schema.

    Agents may report the location either as a nested ``location`` mapping or
    as flat ``file``/``line`` keys; both are accepted here.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    severity: Severity
    category: str = Field(min_length=1)
    message: str = Field(min_length=1)
    location: Location | None = None
    evidence: str | None = None
    recommendation: str | None = None
    rule_ref: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _lift_flat_location(cls, data: Any) -> Any:
        """Fold flat ``file``/``line`` keys into a nested ``location`` mapping.

        Args:
            data: Raw payload handed to the model.

        Returns:
            Any: Payload with a ``location`` entry when flat keys were present.
        """

        if not isinstance(data, Mapping) or data.get("location") is not None:
            return data
        file_path = _first_present(data, _FILE_KEYS)
        if file_path is None:
            return data
        payload = dict(data)
        payload["location"] = {
            "file_path": file_path,
            "line_start": _first_present(data, _LINE_START_KEYS),
            "line_end": _first_present(data, _LINE_END_KEYS),
        }
        return payload

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, value: Any) -> Severity:
        """Coerce textual severities, rejecting values outside the enumeration.

        Args:
            value: Raw severity entry.

        Returns:
            Severity: Parsed severity value.
        """

        if not isinstance(value, (str, Severity)):
            raise ValueError("severity must be a string")
        return Severity.parse(value)

    @field_validator("category", mode="after")
    @classmethod
    def _lower_category(cls, value: str) -> str:
        """Normalise category tags to lowercase.

        Args:
            value: Category tag emitted by the agent.

        Returns:
            str: Lowercase category.
        """

        return value.lower()

    @field_validator("evidence", "recommendation", "rule_ref", mode="after")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        """Collapse empty optional strings to ``None``.

        Args:
            value: Optional text field.

        Returns:
            str | None: ``None`` for blank input, otherwise ``value``.
        """

        return value or None


def _as_line(value: Any) -> Any:
    """Return ``value`` as an ``int`` when it is a numeric line, else unchanged."""

    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return value


def _first_present(data: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    """Return the value of the first key in ``keys`` that ``data`` holds."""

    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


class Finding(BaseModel):
    """Canonical, fingerprinted finding reported by one or more agents."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    category: str
    location: Location | None = None
    message: str
    evidence: str | None = None
    recommendation: str | None = None
    rule_refs: tuple[str, ...] = Field(default_factory=tuple)
    source_agent_ids: tuple[str, ...]
    fingerprint: str

    @field_validator("source_agent_ids", "rule_refs", mode="after")
    @classmethod
    def _sorted_unique(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """Store set-valued fields as sorted, duplicate-free tuples.

        Args:
            value: Raw tuple of identifiers.

        Returns:
            tuple[str, ...]: Sorted unique identifiers.
        """

        return tuple(sorted(set(value)))

    @field_validator("source_agent_ids", mode="after")
    @classmethod
    def _require_source(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """Reject findings that are not attributed to any agent.

        Args:
            value: Contributing agent identifiers.

        Returns:
            tuple[str, ...]: The unchanged identifiers.
        """

        if not value:
            raise ValueError("a finding needs at least one source agent")
        return value

    @property
    def rule_ref(self) -> str | None:
        """Return the primary rule reference, if any.

        Returns:
            str | None: First rule reference in sorted order.
        """

        return self.rule_refs[0] if self.rule_refs else None

    @property
    def file_path(self) -> str | None:
        """Return the file path of the finding location.

        Returns:
            str | None: File path or ``None`` for location-less findings.
        """

        return self.location.file_path if self.location else None


class RejectedFinding(BaseModel):
    """Record of a raw finding dropped during normalisation."""

    model_config = ConfigDict(frozen=True)

    agent_id: str
    index: int
    reason: str


class AgentStatus(str, Enum):
    """Terminal states reached by an agent task."""

    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"


class AgentOutcome(BaseModel):
    """Result bundle recorded for each executed agent."""

    model_config = ConfigDict(frozen=True)

    agent_id: str
    status: AgentStatus
    detail: str | None = None
    finding_count: int = 0

    @property
    def succeeded(self) -> bool:
        """Return whether the agent completed successfully.

        Returns:
            bool: ``True`` when :attr:`status` is :attr:`AgentStatus.SUCCESS`.
        """

        return self.status is AgentStatus.SUCCESS


class ScopeMode(str, Enum):
    """How the reviewed file set was derived."""

    DIFF = "diff"
    FULL = "full"
    PATHS = "paths"


class Scope(BaseModel):
    """Resolved, ordered set of absolute file paths under review."""

    model_config = ConfigDict(frozen=True)

    mode: ScopeMode
    root: Path
    targets: tuple[str, ...] = Field(default_factory=tuple)
    files: tuple[Path, ...] = Field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        """Return whether there is nothing to review.

        Returns:
            bool: ``True`` when :attr:`files` is empty.
        """

        return not self.files

    def relative(self, path: Path) -> str:
        """Return ``path`` relative to the scope root as a POSIX string.

        Args:
            path: Absolute path inside or outside the root.

        Returns:
            str: Root-relative path when possible, otherwise the absolute path.
        """

        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()


class ReviewRun(BaseModel):
    """Aggregate root describing one complete review invocation."""

    model_config = ConfigDict(frozen=True)

    scope: Scope
    effective_config: EffectiveConfig
    selected_agents: tuple[str, ...] = Field(default_factory=tuple)
    agent_outcomes: tuple[AgentOutcome, ...] = Field(default_factory=tuple)
    findings: tuple[Finding, ...] = Field(default_factory=tuple)
    rejected: tuple[RejectedFinding, ...] = Field(default_factory=tuple)
    suppressed_count: int = 0
    degraded: bool = False
    exit_code: int = 0

    @property
    def agents_failed(self) -> tuple[AgentOutcome, ...]:
        """Return outcomes for agents that failed or timed out.

        Returns:
            tuple[AgentOutcome, ...]: Non-successful outcomes in selection order.
        """

        return tuple(outcome for outcome in self.agent_outcomes if not outcome.succeeded)


__all__ = [
    "AgentOutcome",
    "AgentStatus",
    "Finding",
    "Location",
    "RawFinding",
    "RejectedFinding",
    "ReviewRun",
    "Scope",
    "ScopeMode",
]
