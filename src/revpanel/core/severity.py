# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Severity related types and helpers."""

from __future__ import annotations

from enum import Enum
from typing import Final


class Severity(str, Enum):
    """Severity levels shared by every agent, ordered from most to least severe."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Return the numeric rank where higher numbers are more severe.

        Returns:
            int: Rank used for sorting and threshold comparisons.
        """

        return _SEVERITY_RANK[self]

    def at_least(self, threshold: Severity) -> bool:
        """Return whether this severity meets or exceeds ``threshold``.

        Args:
            threshold: Minimum severity under comparison.

        Returns:
            bool: ``True`` when ``self`` is at or above ``threshold``.
        """

        return self.rank >= threshold.rank

    @classmethod
    def parse(cls, value: Severity | str) -> Severity:
        """Return the severity named by ``value`` ignoring case and whitespace.

        Args:
            value: Severity instance or textual severity name.

        Returns:
            Severity: Matching enumeration member.

        Raises:
            ValueError: If ``value`` does not name one of the five severities.
        """

        if isinstance(value, Severity):
            return value
        token = str(value).strip().lower()
        token = _SEVERITY_ALIASES.get(token, token)
        try:
            return cls(token)
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"unknown severity {value!r}; expected one of: {choices}") from None


_SEVERITY_RANK: Final[dict[Severity, int]] = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
    Severity.INFO: 0,
}

# Accepted spellings that agents commonly emit for the canonical levels.
_SEVERITY_ALIASES: Final[dict[str, str]] = {
    "crit": "critical",
    "blocker": "critical",
    "major": "high",
    "moderate": "medium",
    "med": "medium",
    "minor": "low",
    "informational": "info",
    "note": "info",
}


def max_severity(*severities: Severity) -> Severity:
    """Return the most severe value among ``severities``.

    Args:
        *severities: One or more severity values.

    Returns:
        Severity: Highest ranked severity.

    Raises:
        ValueError: If no severities were supplied.
    """

    if not severities:
        raise ValueError("max_severity() requires at least one severity")
    return max(severities, key=_SEVERITY_RANK.__getitem__)


_SEVERITY_TO_SARIF_LEVEL: Final[dict[Severity, str]] = {
    Severity.CRITICAL: "error",
    Severity.HIGH: "error",
    Severity.MEDIUM: "warning",
    Severity.LOW: "note",
    Severity.INFO: "note",
}


def severity_to_sarif(severity: Severity) -> str:
    """Map :class:`Severity` to a SARIF reporting level.

    Args:
        severity: Severity value to translate.

    Returns:
        str: SARIF level string compatible with SARIF output.
    """

    return _SEVERITY_TO_SARIF_LEVEL.get(severity, "warning")


__all__ = ["Severity", "max_severity", "severity_to_sarif"]
