# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Line-oriented regular expression agent."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path
from typing import Any, Final

from ..core.severity import Severity
from ..errors import AgentExecutionError
from .base import AgentDescriptor, AgentRequest

LOGGER = logging.getLogger(__name__)

MAX_FILE_BYTES: Final[int] = 2 * 1024 * 1024
_BINARY_PROBE_BYTES: Final[int] = 8192
_EVIDENCE_LIMIT: Final[int] = 200


@dataclass(frozen=True, slots=True)
class PatternRule:
    """Single regex check applied to every line of matching files."""

    rule_id: str
    pattern: re.Pattern[str]
    severity: Severity
    message: str
    recommendation: str | None = None
    globs: tuple[str, ...] = ()

    def applies_to(self, relative_path: str) -> bool:
        """Return whether the rule should scan ``relative_path``.

        Args:
            relative_path: POSIX path relative to the project root.

        Returns:
            bool: ``True`` when no globs are set or one of them matches.
        """

        if not self.globs:
            return True
        name = relative_path.rsplit("/", 1)[-1]
        return any(fnmatch(relative_path, glob) or fnmatch(name, glob) for glob in self.globs)


def rule(
    rule_id: str,
    pattern: str,
    severity: Severity,
    message: str,
    recommendation: str | None = None,
    *,
    globs: Sequence[str] = (),
    flags: int = 0,
) -> PatternRule:
    """Compile a built-in :class:`PatternRule`.

    Args:
        rule_id: Stable rule identifier reported as ``rule_ref``.
        pattern: Regular expression matched against each line.
        severity: Severity assigned to matches.
        message: Finding message.
        recommendation: Optional remediation hint.
        globs: Optional file globs limiting where the rule applies.
        flags: Extra :mod:`re` flags.

    Returns:
        PatternRule: Compiled rule.
    """

    return PatternRule(
        rule_id=rule_id,
        pattern=re.compile(pattern, flags),
        severity=severity,
        message=message,
        recommendation=recommendation,
        globs=tuple(globs),
    )


def compile_custom_rules(agent_id: str, entries: Sequence[Any]) -> tuple[PatternRule, ...]:
    """Compile ``custom-rules`` entries from the project configuration.

    Each entry is a table with ``pattern``, ``severity`` and ``message`` keys
    and optional ``rule``, ``glob`` (string or list) and ``recommendation``.

    Args:
        agent_id: Agent that owns the rules; used in rule ids and errors.
        entries: Raw configuration entries.

    Returns:
        tuple[PatternRule, ...]: Compiled rules in declaration order.

    Raises:
        AgentExecutionError: If an entry is malformed.
    """

    compiled: list[PatternRule] = []
    for index, entry in enumerate(entries, start=1):
        if not isinstance(entry, Mapping):
            raise AgentExecutionError(agent_id, f"custom rule #{index} must be a table")
        try:
            pattern = re.compile(str(entry["pattern"]))
            severity = Severity.parse(str(entry["severity"]))
            message = str(entry["message"]).strip()
        except KeyError as exc:
            raise AgentExecutionError(agent_id, f"custom rule #{index} is missing {exc.args[0]!r}") from exc
        except re.error as exc:
            raise AgentExecutionError(agent_id, f"custom rule #{index} has an invalid pattern: {exc}") from exc
        except ValueError as exc:
            raise AgentExecutionError(agent_id, f"custom rule #{index}: {exc}") from exc
        globs = entry.get("glob", ())
        if isinstance(globs, str):
            globs = (globs,)
        compiled.append(
            PatternRule(
                rule_id=str(entry.get("rule") or f"{agent_id}-custom-{index}"),
                pattern=pattern,
                severity=severity,
                message=message,
                recommendation=entry.get("recommendation"),
                globs=tuple(str(glob) for glob in globs),
            ),
        )
    return tuple(compiled)


class PatternAgent:
    """Agent that reports regex matches as findings for its domain."""

    def __init__(self, descriptor: AgentDescriptor, rules: Sequence[PatternRule]) -> None:
        """Create the agent.

        Args:
            descriptor: Catalog entry for the agent.
            rules: Built-in rules; ``custom-rules`` are appended per run.
        """

        self._descriptor = descriptor
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[PatternRule, ...]:
        """Return the built-in rules."""

        return self._rules

    def run(self, request: AgentRequest) -> list[dict[str, Any]]:
        """Scan every file in the request scope.

        Args:
            request: Scope, settings, and cancellation context.

        Returns:
            list[dict[str, Any]]: Raw finding payloads.
        """

        rules = self._rules + compile_custom_rules(request.agent_id, request.settings.custom_rules)
        findings: list[dict[str, Any]] = []
        for path in request.scope.files:
            if request.cancelled:
                LOGGER.debug("%s stopped early after cancellation", request.agent_id)
                break
            relative = request.scope.relative(path)
            active = [candidate for candidate in rules if candidate.applies_to(relative)]
            if not active:
                continue
            findings.extend(self._scan(path, relative, active))
        return findings

    def _scan(self, path: Path, relative: str, rules: Sequence[PatternRule]) -> Iterator[dict[str, Any]]:
        for line_number, line in _read_lines(path):
            for candidate in rules:
                if candidate.pattern.search(line) is None:
                    continue
                yield {
                    "severity": candidate.severity.value,
                    "category": self._descriptor.domain,
                    "message": candidate.message,
                    "file": relative,
                    "line": line_number,
                    "evidence": line.strip()[:_EVIDENCE_LIMIT],
                    "recommendation": candidate.recommendation,
                    "rule_ref": candidate.rule_id,
                }


def _read_lines(path: Path) -> Iterator[tuple[int, str]]:
    """Yield ``(line_number, text)`` pairs for a text file.

    Binary, oversized, and unreadable files yield nothing.
    """

    try:
        if path.stat().st_size > MAX_FILE_BYTES:
            LOGGER.debug("skipping %s: larger than %d bytes", path, MAX_FILE_BYTES)
            return
        data = path.read_bytes()
    except OSError as exc:
        LOGGER.debug("skipping %s: %s", path, exc)
        return
    if b"\0" in data[:_BINARY_PROBE_BYTES]:
        return
    text = data.decode("utf-8", errors="replace")
    yield from enumerate(text.splitlines(), start=1)


__all__ = ["MAX_FILE_BYTES", "PatternAgent", "PatternRule", "compile_custom_rules", "rule"]
