# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring commands together."""

from __future__ import annotations

import typer

from ..agents.registry import default_registry
from .agents_cmd import agents_command
from .config_cmd import config_app
from .review import register_review_commands

app = typer.Typer(
    name="revpanel",
    help="Run a panel of review agents and aggregate their findings.",
    no_args_is_help=True,
    add_completion=False,
)
register_review_commands(app, default_registry())
app.command("agents")(agents_command)
app.add_typer(config_app, name="config")


def main() -> None:
    """Console script entry point."""

    app()


__all__ = ["app", "main"]
