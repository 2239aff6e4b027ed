# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Agent interface, request context, and catalog descriptor types."""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeAlias, runtime_checkable

from ..config.models import AgentSettings, EffectiveConfig
from ..core.models import RawFinding, Scope
from ..profiling import Profile

AgentResult: TypeAlias = Sequence[RawFinding | Mapping[str, Any]]
Applicability: TypeAlias = Callable[[Profile], bool]


@dataclass(frozen=True, slots=True)
class AgentRequest:
    """Read-only view handed to an agent for a single run."""

    agent_id: str
    scope: Scope
    config: EffectiveConfig
    settings: AgentSettings
    criteria_ref: str
    cancel_event: threading.Event = field(default_factory=threading.Event)
    timeout: float | None = None

    @property
    def cancelled(self) -> bool:
        """Return whether the run asked agents to stop early.

        Returns:
            bool: ``True`` once cancellation or a timeout was signalled.
        """

        return self.cancel_event.is_set()


@runtime_checkable
class Agent(Protocol):
    """Opaque domain checker that inspects a scope and reports findings."""

    def run(self, request: AgentRequest) -> AgentResult:
        """Inspect ``request.scope`` and return candidate findings.

        Args:
            request: Scope, configuration, and cancellation context.

        Returns:
            AgentResult: Raw findings; malformed entries are dropped downstream.
        """

        raise NotImplementedError


AgentFactory: TypeAlias = Callable[["AgentDescriptor"], Agent]


def always_applicable(_profile: Profile) -> bool:
    """Return ``True`` for every profile."""

    return True


def requires_any(*traits: str) -> Applicability:
    """Return an applicability predicate matching any of ``traits``.

    Args:
        *traits: Profile traits that make the agent relevant.

    Returns:
        Applicability: Predicate over :class:`Profile`.
    """

    wanted = frozenset(traits)

    def _predicate(profile: Profile) -> bool:
        return bool(profile.traits & wanted)

    _predicate.__name__ = f"requires_any({', '.join(sorted(wanted))})"
    return _predicate


@dataclass(frozen=True, slots=True)
class AgentDescriptor:
    """Immutable catalog entry describing one agent."""

    id: str
    domain: str
    description: str
    applicability: Applicability
    factory: AgentFactory
    default_enabled: bool = True
    triggers: tuple[str, ...] = ()

    @property
    def criteria_ref(self) -> str:
        """Return the identifier of the review checklist the agent applies.

        Returns:
            str: Criteria reference such as ``criteria/security``.
        """

        return f"criteria/{self.id}"

    def applies_to(self, profile: Profile) -> bool:
        """Return whether auto-detection would pick this agent for ``profile``.

        Args:
            profile: Project profile for the current scope.

        Returns:
            bool: Result of the applicability predicate.
        """

        return self.applicability(profile)


__all__ = [
    "Agent",
    "AgentDescriptor",
    "AgentFactory",
    "AgentRequest",
    "AgentResult",
    "Applicability",
    "always_applicable",
    "requires_any",
]
