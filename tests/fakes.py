# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Fake agents and registry helpers shared by the test-suite."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

from revpanel.agents.base import AgentDescriptor, AgentRequest, always_applicable
from revpanel.agents.registry import AgentRegistry
from revpanel.config.models import EffectiveConfig
from revpanel.core.models import Scope
from revpanel.discovery.git import GitCommandError


class StaticAgent:
    """Agent returning a fixed list of raw findings."""

    def __init__(self, findings: Sequence[Mapping[str, Any]] = ()) -> None:
        self.findings = [dict(item) for item in findings]
        self.calls = 0

    def run(self, request: AgentRequest) -> list[dict[str, Any]]:
        self.calls += 1
        return list(self.findings)


class SlowAgent:
    """Agent that waits on its cancel event, simulating a hung checker."""

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self.cancelled = threading.Event()

    def run(self, request: AgentRequest) -> list[dict[str, Any]]:
        if request.cancel_event.wait(self.seconds):
            self.cancelled.set()
        return []


class StubbornAgent:
    """Agent that ignores its cancel event, like a checker stuck in native code."""

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self.finished = threading.Event()

    def run(self, request: AgentRequest) -> list[dict[str, Any]]:
        time.sleep(self.seconds)
        self.finished.set()
        return []


class CrashingAgent:
    """Agent that raises an unexpected exception."""

    def run(self, request: AgentRequest) -> list[dict[str, Any]]:
        raise RuntimeError("boom")


class DelayedAgent(StaticAgent):
    """Static agent that sleeps first so completion order can be permuted."""

    def __init__(self, findings: Sequence[Mapping[str, Any]], delay: float) -> None:
        super().__init__(findings)
        self.delay = delay

    def run(self, request: AgentRequest) -> list[dict[str, Any]]:
        time.sleep(self.delay)
        return super().run(request)


def fake_descriptor(
    agent_id: str,
    agent: Any,
    *,
    applicability: Callable[..., bool] = always_applicable,
    default_enabled: bool = True,
    triggers: tuple[str, ...] = (),
) -> AgentDescriptor:
    """Return a descriptor whose factory yields ``agent``."""

    return AgentDescriptor(
        id=agent_id,
        domain=agent_id,
        description=f"fake {agent_id}",
        applicability=applicability,
        factory=lambda _descriptor: agent,
        default_enabled=default_enabled,
        triggers=triggers,
    )


def fake_registry(agents: Mapping[str, Any]) -> AgentRegistry:
    """Return a registry holding one always-applicable descriptor per agent."""

    return AgentRegistry(fake_descriptor(agent_id, agent) for agent_id, agent in agents.items())


def make_request(
    agent_id: str,
    scope: Scope,
    config: EffectiveConfig | None = None,
    *,
    timeout: float | None = None,
) -> AgentRequest:
    """Build an :class:`AgentRequest` for direct agent tests."""

    cfg = config or EffectiveConfig()
    return AgentRequest(
        agent_id=agent_id,
        scope=scope,
        config=cfg,
        settings=cfg.settings_for(agent_id),
        criteria_ref=f"criteria/{agent_id}",
        timeout=timeout,
    )


class ScriptedGit:
    """Fake git runner answering from a command table; unknown commands print nothing."""

    def __init__(self, responses: Mapping[tuple[str, ...], list[str] | Exception] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, ...]] = []

    def __call__(self, cmd: Sequence[str], root: Path) -> list[str]:
        key = tuple(cmd)
        self.calls.append(key)
        response = self.responses.get(key, [])
        if isinstance(response, Exception):
            raise response
        return list(response)


def not_a_repository() -> ScriptedGit:
    """Return a git runner that reports the directory is not a work tree."""

    return ScriptedGit({("git", "rev-parse", "--is-inside-work-tree"): GitCommandError("not a git repository")})


def repository(changed: Sequence[str] = (), tracked: Sequence[str] = ()) -> ScriptedGit:
    """Return a git runner describing a repository with ``changed`` and ``tracked`` files."""

    return ScriptedGit(
        {
            ("git", "rev-parse", "--is-inside-work-tree"): ["true"],
            ("git", "diff", "--name-only", "--relative", "-z", "HEAD", "--"): list(changed),
            ("git", "ls-files", "-z", "--cached", "--others", "--exclude-standard"): list(tracked),
        },
    )
