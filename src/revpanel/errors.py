# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy for review runs.

Fatal errors (:class:`ConfigParseError`, :class:`ScopeResolutionError`) abort a
run before any agent executes. :class:`AgentExecutionError` and
:class:`SchemaValidationError` are confined to one agent or one finding and are
recorded rather than propagated.
"""

from __future__ import annotations

from pydantic import ValidationError


class ReviewError(Exception):
    """Base class for every error raised by revpanel."""


class ConfigParseError(ReviewError):
    """Raised when configuration input is missing, malformed, or invalid."""


class AgentSelectionError(ConfigParseError):
    """Raised when agent selection inputs conflict with the registry or project policy."""


class ScopeResolutionError(ReviewError):
    """Raised when the requested scope cannot be turned into a file set."""


class AgentExecutionError(ReviewError):
    """Raised by an agent that crashed or produced unusable output."""

    def __init__(self, agent_id: str, message: str) -> None:
        """Initialise the error with the failing agent id.

        Args:
            agent_id: Identifier of the agent that failed.
            message: Human-readable failure detail.
        """

        super().__init__(f"{agent_id}: {message}")
        self.agent_id = agent_id
        self.detail = message


class AgentTimeoutError(AgentExecutionError):
    """Raised when an agent exceeds its time budget."""


class SchemaValidationError(ReviewError):
    """Raised when one raw finding does not satisfy the canonical schema."""


class RunCancelledError(ReviewError):
    """Raised when the run receives a cancellation signal."""


def describe_validation_error(exc: ValidationError) -> str:
    """Return a one-line ``field: problem`` summary of a pydantic error.

    Args:
        exc: Validation error raised by a model.

    Returns:
        str: ``;``-separated problems keyed by dotted field location.
    """

    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
        problems.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(problems)


__all__ = [
    "AgentExecutionError",
    "AgentSelectionError",
    "AgentTimeoutError",
    "ConfigParseError",
    "ReviewError",
    "RunCancelledError",
    "SchemaValidationError",
    "ScopeResolutionError",
    "describe_validation_error",
]
