# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""The ``agents`` command: list the catalog and explain selection."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..agents.registry import AgentRegistry
from ..core.constants import ExitCode
from ..errors import ConfigParseError, ScopeResolutionError
from ..orchestration.orchestrator import ReviewOrchestrator, ReviewPlan, ReviewRequest
from .review import CONFIG_OPTION, NO_COLOR_OPTION, NO_EMOJI_OPTION, ROOT_OPTION, SCOPE_ARGUMENT
from .shared import build_cli_logger, split_ids


def catalog_table(registry: AgentRegistry) -> Table:
    """Return a table describing every registered agent.

    Args:
        registry: Agent catalog.

    Returns:
        Table: Rich table with one row per agent.
    """

    table = Table(title="Agents", show_lines=False)
    table.add_column("Agent", style="bold")
    table.add_column("Default")
    table.add_column("Triggers")
    table.add_column("Description")
    for descriptor in registry.descriptors():
        table.add_row(
            descriptor.id,
            "on" if descriptor.default_enabled else "off",
            ", ".join(descriptor.triggers) or "-",
            descriptor.description,
        )
    return table


def decision_table(plan: ReviewPlan) -> Table:
    """Return a table explaining the selection decisions in ``plan``.

    Args:
        plan: Pre-execution review plan.

    Returns:
        Table: Rich table with one row per agent.
    """

    table = Table(title=f"Selection ({plan.profile.describe()})")
    table.add_column("Agent", style="bold")
    table.add_column("Action")
    table.add_column("Reasons")
    for decision in plan.selection.decisions:
        table.add_row(decision.agent_id, decision.action, "; ".join(decision.reasons))
    return table


def agents_command(
    targets: list[str] | None = SCOPE_ARGUMENT,
    explain: bool = typer.Option(False, "--explain", "-e", help="Explain which agents would run for SCOPE."),
    pick: list[str] | None = typer.Option(None, "--pick", "-p", help="Agents requested explicitly."),
    root: Path = ROOT_OPTION,
    config: Path | None = CONFIG_OPTION,
    no_color: bool = NO_COLOR_OPTION,
    no_emoji: bool = NO_EMOJI_OPTION,
) -> None:
    """List available agents, or explain the selection for a scope."""

    orchestrator = ReviewOrchestrator()
    console = Console(no_color=no_color, highlight=False, soft_wrap=True)
    if not explain:
        console.print(catalog_table(orchestrator.registry))
        return
    logger = build_cli_logger(emoji=not no_emoji, no_color=no_color)
    request = ReviewRequest(root=root, targets=tuple(targets or ()), pick=split_ids(pick), config_path=config)
    try:
        plan = orchestrator.plan(request)
    except (ConfigParseError, ScopeResolutionError) as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=ExitCode.CONFIG_ERROR) from exc
    console.print(decision_table(plan))
    console.print(f"Scope: {plan.scope.mode.value}, {len(plan.scope.files)} file(s)")
    console.print(f"Selected: {', '.join(plan.selection.ordered) or 'none'}")


__all__ = ["agents_command", "catalog_table", "decision_table"]
