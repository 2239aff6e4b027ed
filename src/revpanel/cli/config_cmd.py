# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration inspection commands."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from ..config.loader import ConfigLoader
from ..core.constants import ExitCode
from ..errors import ConfigParseError
from .review import CONFIG_OPTION, NO_EMOJI_OPTION, ROOT_OPTION
from .shared import build_cli_logger

config_app = typer.Typer(help="Inspect the effective configuration.", no_args_is_help=True)


@config_app.command("show")
def config_show(
    root: Path = ROOT_OPTION,
    config: Path | None = CONFIG_OPTION,
    trace: bool = typer.Option(True, help="Show which source last set each field."),
    no_emoji: bool = NO_EMOJI_OPTION,
) -> None:
    """Print the effective configuration for the project as JSON."""

    logger = build_cli_logger(emoji=not no_emoji)
    try:
        result = ConfigLoader.for_root(root, config_path=config).load_with_trace()
    except ConfigParseError as exc:
        logger.fail(f"configuration error: {exc}")
        raise typer.Exit(code=ExitCode.CONFIG_ERROR) from exc

    payload: dict[str, object] = {"config": result.config.to_dict()}
    if trace:
        payload["provenance"] = result.provenance()
    logger.echo(json.dumps(payload, indent=2, sort_keys=True))


__all__ = ["config_app", "config_show"]
