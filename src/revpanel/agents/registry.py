# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Agent catalog keyed by agent id."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence

from ..config.models import AgentSettings
from . import rules as builtin_rules
from .base import Agent, AgentDescriptor, AgentFactory, requires_any
from .command import CommandAgent
from .patterns import PatternAgent, PatternRule


class AgentRegistry(Mapping[str, AgentDescriptor]):
    """Read-only mapping of agent ids to descriptors in registration order."""

    def __init__(self, descriptors: Iterable[AgentDescriptor] = ()) -> None:
        """Create a registry pre-populated with ``descriptors``.

        Args:
            descriptors: Initial catalog entries.
        """

        self._agents: dict[str, AgentDescriptor] = {}
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: AgentDescriptor) -> None:
        """Add ``descriptor`` to the catalog.

        Args:
            descriptor: Catalog entry to insert.

        Raises:
            ValueError: If an agent with the same id is already registered.
        """

        if descriptor.id in self._agents:
            raise ValueError(f"Agent '{descriptor.id}' already registered")
        self._agents[descriptor.id] = descriptor

    def descriptors(self) -> tuple[AgentDescriptor, ...]:
        """Return every descriptor in registration order."""

        return tuple(self._agents.values())

    def unknown(self, agent_ids: Iterable[str]) -> list[str]:
        """Return ids from ``agent_ids`` that are not registered, sorted.

        Args:
            agent_ids: Candidate agent ids.

        Returns:
            list[str]: Unregistered ids.
        """

        return sorted({agent_id for agent_id in agent_ids if agent_id not in self._agents})

    def instantiate(self, agent_id: str, settings: AgentSettings) -> Agent:
        """Build the agent implementation for one run.

        A configured ``command`` replaces the built-in implementation with a
        :class:`CommandAgent`.

        Args:
            agent_id: Registered agent id.
            settings: Per-agent settings from the effective configuration.

        Returns:
            Agent: Ready-to-run agent.

        Raises:
            KeyError: If ``agent_id`` is not registered.
        """

        descriptor = self._agents[agent_id]
        if settings.command:
            return CommandAgent(settings.command)
        return descriptor.factory(descriptor)

    def __getitem__(self, agent_id: str) -> AgentDescriptor:
        return self._agents[agent_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._agents)

    def __len__(self) -> int:
        return len(self._agents)


def pattern_factory(rules: Sequence[PatternRule]) -> AgentFactory:
    """Return a factory building a :class:`PatternAgent` with ``rules``.

    Args:
        rules: Built-in rules for the agent.

    Returns:
        AgentFactory: Factory accepting the agent descriptor.
    """

    frozen_rules = tuple(rules)

    def _factory(descriptor: AgentDescriptor) -> Agent:
        return PatternAgent(descriptor, frozen_rules)

    return _factory


def _builtin(
    agent_id: str,
    description: str,
    triggers: tuple[str, ...],
    rules: Sequence[PatternRule],
    *,
    default_enabled: bool = True,
) -> AgentDescriptor:
    return AgentDescriptor(
        id=agent_id,
        domain=agent_id,
        description=description,
        applicability=requires_any(*triggers),
        factory=pattern_factory(rules),
        default_enabled=default_enabled,
        triggers=triggers,
    )


def default_registry() -> AgentRegistry:
    """Return a fresh registry holding the built-in agents.

    Returns:
        AgentRegistry: Catalog in canonical execution order.
    """

    return AgentRegistry(
        (
            _builtin(
                "security",
                "Secrets, injection, unsafe execution",
                ("code", "infrastructure"),
                builtin_rules.SECURITY_RULES,
            ),
            _builtin(
                "networking",
                "Transport security and exposed listeners",
                ("networking",),
                builtin_rules.NETWORKING_RULES,
            ),
            _builtin(
                "accessibility",
                "Markup and interaction accessibility",
                ("frontend",),
                builtin_rules.ACCESSIBILITY_RULES,
            ),
            _builtin(
                "performance",
                "Blocking calls and wasteful I/O",
                ("code",),
                builtin_rules.PERFORMANCE_RULES,
            ),
            _builtin(
                "database",
                "Query shape and destructive statements",
                ("database",),
                builtin_rules.DATABASE_RULES,
            ),
            _builtin(
                "api",
                "API surface exposure and CORS",
                ("api",),
                builtin_rules.API_RULES,
            ),
            _builtin(
                "infrastructure",
                "Containers, IaC and deployment manifests",
                ("infrastructure",),
                builtin_rules.INFRASTRUCTURE_RULES,
            ),
            _builtin(
                "testing",
                "Focused and skipped tests",
                ("tests",),
                builtin_rules.TESTING_RULES,
            ),
            _builtin(
                "documentation",
                "Stale notes and broken docs links",
                ("docs",),
                builtin_rules.DOCUMENTATION_RULES,
                default_enabled=False,
            ),
            _builtin(
                "dependencies",
                "Unpinned or VCS-sourced dependencies",
                ("dependencies",),
                builtin_rules.DEPENDENCY_RULES,
            ),
        ),
    )


__all__ = ["AgentRegistry", "default_registry", "pattern_factory"]
