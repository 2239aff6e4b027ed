# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared CLI helpers: user-facing logger and error type."""

from __future__ import annotations

from dataclasses import dataclass

import typer

from ..core.constants import ExitCode
from ..core.logging import fail as core_fail
from ..core.logging import info as core_info
from ..core.logging import ok as core_ok
from ..core.logging import warn as core_warn


class CLIError(RuntimeError):
    """Error raised when a CLI command fails and should exit with a status code."""

    def __init__(self, message: str, *, exit_code: int = ExitCode.CONFIG_ERROR) -> None:
        """Initialise the error with a message and exit code.

        Args:
            message: Human-readable error message shown to the user.
            exit_code: Exit status associated with the failure.
        """

        super().__init__(message)
        self.exit_code = int(exit_code)


@dataclass(slots=True)
class CLILogger:
    """Adapter around the console helpers respecting CLI presentation flags."""

    use_emoji: bool
    use_color: bool | None

    def fail(self, message: str) -> None:
        """Log a failure message to stderr."""

        core_fail(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def warn(self, message: str) -> None:
        """Log a warning message to stderr."""

        core_warn(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def ok(self, message: str) -> None:
        """Log a success message to stderr."""

        core_ok(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def info(self, message: str) -> None:
        """Log an informational message to stderr."""

        core_info(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def echo(self, message: str, *, newline: bool = True) -> None:
        """Write ``message`` to stdout.

        Args:
            message: Text written to standard output.
            newline: Append a trailing newline.
        """

        typer.echo(message, nl=newline)


def build_cli_logger(*, emoji: bool, no_color: bool = False) -> CLILogger:
    """Return a :class:`CLILogger` for the presentation flags.

    Args:
        emoji: Whether log output may include emoji glyphs.
        no_color: Whether terminal colour output should be disabled.

    Returns:
        CLILogger: Configured logger.
    """

    return CLILogger(use_emoji=emoji, use_color=False if no_color else None)


def split_ids(values: list[str] | None) -> tuple[str, ...]:
    """Split repeated or comma-separated agent ids.

    Args:
        values: Raw option values, e.g. ``["security,networking", "api"]``.

    Returns:
        tuple[str, ...]: Ids in first-seen order without duplicates.
    """

    ids: list[str] = []
    for value in values or ():
        ids.extend(part.strip().lower() for part in value.split(",") if part.strip())
    return tuple(dict.fromkeys(ids))


__all__ = ["CLIError", "CLILogger", "build_cli_logger", "split_ids"]
