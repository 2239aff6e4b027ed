# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Agent selection combining profile detection, project policy, and CLI picks."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final, Literal, TypeAlias

from .agents.base import AgentDescriptor
from .agents.registry import AgentRegistry
from .config.models import EffectiveConfig
from .errors import AgentSelectionError
from .profiling import Profile

DecisionAction: TypeAlias = Literal["run", "skip"]

_ACTION_RUN: Final[DecisionAction] = "run"
_ACTION_SKIP: Final[DecisionAction] = "skip"


@dataclass(frozen=True, slots=True)
class AgentDecision:
    """Explain whether an agent runs and why."""

    agent_id: str
    action: DecisionAction
    reasons: tuple[str, ...]

    @property
    def selected(self) -> bool:
        """Return whether the agent is scheduled to run."""

        return self.action == _ACTION_RUN


@dataclass(frozen=True, slots=True)
class SelectionResult:
    """Ordered agent plan with one decision per registered agent."""

    ordered: tuple[str, ...]
    decisions: tuple[AgentDecision, ...]
    profile: Profile
    picked: bool = False


@dataclass(slots=True)
class AgentSelector:
    """Compute the deterministic agent set for a run."""

    registry: AgentRegistry

    def select(
        self,
        profile: Profile,
        config: EffectiveConfig,
        pick: Sequence[str] | None = None,
    ) -> SelectionResult:
        """Return the agents to run for ``profile`` under ``config``.

        Without ``pick`` the result is every applicable, default-enabled agent
        plus ``agents.always``, minus ``agents.disabled``. A non-empty
        ``pick`` replaces auto-detection with exactly the named agents.
        Agents are always returned in registry order.

        Args:
            profile: Characteristics of the resolved scope.
            config: Effective configuration.
            pick: Explicit agent ids requested on the command line.

        Returns:
            SelectionResult: Ordered ids and per-agent decisions.

        Raises:
            AgentSelectionError: If an id is unknown or ``pick`` names a
                disabled agent.
        """

        picked = tuple(dict.fromkeys(agent_id.strip() for agent_id in pick or () if agent_id.strip()))
        self._validate_ids(config, picked)
        disabled = frozenset(config.agents.disabled)
        if picked:
            blocked = sorted(disabled.intersection(picked))
            if blocked:
                raise AgentSelectionError(
                    f"--pick requested agent(s) disabled by project configuration: {', '.join(blocked)} "
                    "(remove them from agents.disabled to run them)",
                )
            decisions = tuple(self._picked_decision(descriptor, picked) for descriptor in self.registry.descriptors())
        else:
            always = frozenset(config.agents.always)
            decisions = tuple(
                self._auto_decision(descriptor, profile, always, disabled)
                for descriptor in self.registry.descriptors()
            )
        ordered = tuple(decision.agent_id for decision in decisions if decision.selected)
        return SelectionResult(ordered=ordered, decisions=decisions, profile=profile, picked=bool(picked))

    def _validate_ids(self, config: EffectiveConfig, picked: Sequence[str]) -> None:
        """Reject unknown ids anywhere in the inputs and picks of disabled agents."""

        sources = {
            "--pick": picked,
            "agents.always": config.agents.always,
            "agents.disabled": config.agents.disabled,
            "agents.config": tuple(config.agents.config),
        }
        problems = [
            f"{origin}: {', '.join(unknown)}"
            for origin, ids in sources.items()
            if (unknown := self.registry.unknown(ids))
        ]
        if problems:
            known = ", ".join(self.registry)
            raise AgentSelectionError(f"unknown agent id(s) in {'; '.join(problems)} (known agents: {known})")

    @staticmethod
    def _picked_decision(descriptor: AgentDescriptor, picked: Sequence[str]) -> AgentDecision:
        if descriptor.id in picked:
            return AgentDecision(descriptor.id, _ACTION_RUN, ("requested via --pick",))
        return AgentDecision(descriptor.id, _ACTION_SKIP, ("not requested via --pick",))

    @staticmethod
    def _auto_decision(
        descriptor: AgentDescriptor,
        profile: Profile,
        always: frozenset[str],
        disabled: frozenset[str],
    ) -> AgentDecision:
        agent_id = descriptor.id
        if agent_id in disabled:
            reasons = ["disabled by agents.disabled"]
            if agent_id in always:
                reasons.append("agents.disabled overrides agents.always")
            return AgentDecision(agent_id, _ACTION_SKIP, tuple(reasons))
        if agent_id in always:
            return AgentDecision(agent_id, _ACTION_RUN, ("listed in agents.always",))
        if not descriptor.default_enabled:
            return AgentDecision(agent_id, _ACTION_SKIP, ("not enabled by default; add it to agents.always",))
        if descriptor.applies_to(profile):
            matched = sorted(profile.traits.intersection(descriptor.triggers))
            detail = ", ".join(matched) if matched else "applicability check"
            return AgentDecision(agent_id, _ACTION_RUN, (f"profile matched: {detail}",))
        wanted = ", ".join(descriptor.triggers) or "n/a"
        return AgentDecision(agent_id, _ACTION_SKIP, (f"no matching profile traits (needs any of: {wanted})",))


__all__ = ["AgentDecision", "AgentSelector", "DecisionAction", "SelectionResult"]
