# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""End-to-end review pipeline producing a :class:`ReviewRun`."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from ..agents.base import AgentRequest
from ..agents.registry import AgentRegistry, default_registry
from ..config.loader import ConfigLoader, ConfigLoadResult
from ..config.models import EffectiveConfig
from ..core.models import Finding, RejectedFinding, ReviewRun, Scope
from ..discovery.filesystem import FilesystemDiscovery
from ..discovery.git import GitDiscovery
from ..discovery.scope import ScopeResolver
from ..findings.dedup import deduplicate
from ..findings.fingerprint import Fingerprinter, KeywordSignature, MessageSignature
from ..findings.normalizer import FindingNormalizer
from ..gating import SeverityGate
from ..profiling import Profile, profile_scope
from ..selection import AgentSelector, SelectionResult
from .runner import AgentRunner, AgentTask, CancellationToken, RunnerResult

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReviewRequest:
    """Inputs collected from the command line for one review."""

    root: Path
    targets: tuple[str, ...] = ()
    pick: tuple[str, ...] = ()
    config_path: Path | None = None
    overrides: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ReviewPlan:
    """Everything decided before any agent runs."""

    config_result: ConfigLoadResult
    scope: Scope
    profile: Profile
    selection: SelectionResult

    @property
    def config(self) -> EffectiveConfig:
        """Return the effective configuration."""

        return self.config_result.config


class ReviewOrchestrator:
    """Wire scope, configuration, selection, execution, and aggregation together."""

    def __init__(
        self,
        registry: AgentRegistry | None = None,
        *,
        git: GitDiscovery | None = None,
        filesystem: FilesystemDiscovery | None = None,
        signature: MessageSignature | None = None,
        poll_interval: float | None = None,
    ) -> None:
        """Create the orchestrator.

        Args:
            registry: Agent catalog; defaults to the built-in agents.
            git: Git discovery used for diff and full scopes.
            filesystem: Filesystem discovery used outside git.
            signature: Message signature strategy; defaults to
                :class:`KeywordSignature` sized from configuration.
            poll_interval: Optional override for the runner's polling interval.
        """

        self._registry = registry or default_registry()
        self._git = git or GitDiscovery()
        self._filesystem = filesystem or FilesystemDiscovery()
        self._signature = signature
        self._poll_interval = poll_interval

    @property
    def registry(self) -> AgentRegistry:
        """Return the agent catalog."""

        return self._registry

    def plan(self, request: ReviewRequest) -> ReviewPlan:
        """Resolve configuration, scope, profile, and agent selection.

        Configuration is loaded first so ``review.base-branch`` and
        ``scope.exclude`` can shape the scope.

        Args:
            request: Command line inputs.

        Returns:
            ReviewPlan: Pre-execution decisions.

        Raises:
            ConfigParseError: If configuration or agent selection is invalid.
            ScopeResolutionError: If the scope cannot be resolved.
        """

        root = request.root.resolve()
        config_result = ConfigLoader.for_root(
            root,
            config_path=request.config_path,
            overrides=request.overrides,
        ).load_with_trace()
        config = config_result.config
        resolver = ScopeResolver(
            root,
            git=self._git,
            filesystem=self._filesystem,
            exclude=config.scope.exclude,
            base_branch=config.review.base_branch,
        )
        scope = resolver.resolve(request.targets)
        profile = profile_scope(
            (PurePosixPath(scope.relative(path)) for path in scope.files),
            config.project.type,
        )
        selection = AgentSelector(self._registry).select(profile, config, request.pick)
        LOGGER.debug(
            "scope %s: %d file(s); profile %s; agents: %s",
            scope.mode.value,
            len(scope.files),
            profile.describe(),
            ", ".join(selection.ordered) or "none",
        )
        return ReviewPlan(config_result=config_result, scope=scope, profile=profile, selection=selection)

    def run(self, request: ReviewRequest, token: CancellationToken | None = None) -> ReviewRun:
        """Execute a complete review.

        Args:
            request: Command line inputs.
            token: Optional run-wide cancellation token.

        Returns:
            ReviewRun: Fully populated run including the exit code.

        Raises:
            ConfigParseError: If configuration or agent selection is invalid.
            ScopeResolutionError: If the scope cannot be resolved.
            RunCancelledError: If ``token`` is cancelled during the run.
        """

        active_token = token or CancellationToken()
        plan = self.plan(request)
        active_token.raise_if_cancelled()
        return self.execute(plan, active_token)

    def execute(self, plan: ReviewPlan, token: CancellationToken) -> ReviewRun:
        """Run the planned agents and aggregate their findings.

        Args:
            plan: Result of :meth:`plan`.
            token: Run-wide cancellation token.

        Returns:
            ReviewRun: Populated run.

        Raises:
            RunCancelledError: If ``token`` is cancelled during the run.
        """

        config = plan.config
        if plan.scope.is_empty:
            LOGGER.info("scope is empty; nothing to review")
            result = RunnerResult(outcomes=())
        else:
            tasks = [self._build_task(agent_id, plan) for agent_id in plan.selection.ordered]
            runner = AgentRunner(config.execution.jobs, **self._runner_options())
            result = runner.run(tasks, token)
        findings, rejected = self._normalize(plan, result)
        gate = SeverityGate(config)
        kept, agent_suppressed = gate.prefilter(findings)
        gated = gate.apply(deduplicate(kept, self._fingerprinter(config)))
        token.raise_if_cancelled()
        return ReviewRun(
            scope=plan.scope,
            effective_config=config,
            selected_agents=plan.selection.ordered,
            agent_outcomes=result.outcomes,
            findings=gated.findings,
            rejected=tuple(rejected),
            suppressed_count=agent_suppressed + gated.suppressed_count,
            degraded=any(not outcome.succeeded for outcome in result.outcomes),
            exit_code=int(gated.exit_code),
        )

    def _build_task(self, agent_id: str, plan: ReviewPlan) -> AgentTask:
        """Return the runner task for ``agent_id`` with its own cancel event."""

        config = plan.config
        settings = config.settings_for(agent_id)
        timeout = config.timeout_for(agent_id)
        request = AgentRequest(
            agent_id=agent_id,
            scope=plan.scope,
            config=config,
            settings=settings,
            criteria_ref=self._registry[agent_id].criteria_ref,
            cancel_event=threading.Event(),
            timeout=timeout,
        )
        return AgentTask(agent=self._registry.instantiate(agent_id, settings), request=request, timeout=timeout)

    def _runner_options(self) -> dict[str, float]:
        if self._poll_interval is None:
            return {}
        return {"poll_interval": self._poll_interval}

    def _fingerprinter(self, config: EffectiveConfig) -> Fingerprinter:
        """Return the fingerprinter shared by normalisation and de-duplication."""

        signature = self._signature or KeywordSignature(config.dedupe.signature_tokens)
        return Fingerprinter(line_window=config.dedupe.line_window, signature=signature)

    def _normalize(self, plan: ReviewPlan, result: RunnerResult) -> tuple[list[Finding], list[RejectedFinding]]:
        """Normalise successful outputs in selection order, collecting rejects."""

        normalizer = FindingNormalizer(plan.scope.root, self._fingerprinter(plan.config))
        findings: list[Finding] = []
        rejected: list[RejectedFinding] = []
        for outcome in result.outcomes:
            output: Sequence[Any] | None = result.outputs.get(outcome.agent_id)
            if output is None:
                continue
            normalized = normalizer.normalize(outcome.agent_id, output)
            findings.extend(normalized.findings)
            rejected.extend(normalized.rejected)
        return findings, rejected


__all__ = ["ReviewOrchestrator", "ReviewPlan", "ReviewRequest"]
