# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Safe wrappers around ``subprocess`` execution."""

from __future__ import annotations

# Bandit: subprocess usage is intentional; the wrapper never enables ``shell=True``.
import subprocess  # nosec B404
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from subprocess import CompletedProcess


@dataclass(frozen=True, slots=True)
class CommandOptions:
    """Immutable command execution options."""

    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    check: bool = False
    timeout: float | None = None
    input_text: str | None = None
    encoding: str | None = None
    errors: str | None = None


def run_command(cmd: Sequence[str], *, options: CommandOptions | None = None) -> CompletedProcess[str]:
    """Run ``cmd`` capturing text output with hardened defaults.

    Args:
        cmd: Command arguments where the first item is the executable.
        options: Execution options; defaults capture output without checking.

    Returns:
        CompletedProcess[str]: Completed process with stdout and stderr captured.

    Raises:
        ValueError: If ``cmd`` is empty.
        FileNotFoundError: If the executable cannot be located.
        subprocess.TimeoutExpired: If ``options.timeout`` elapses; the child
            process is killed before the exception propagates.
        subprocess.CalledProcessError: If ``options.check`` is set and the
            command exits non-zero.
    """

    if not cmd:
        raise ValueError("run_command() requires a non-empty command")
    resolved = options or CommandOptions()
    return subprocess.run(  # nosec B603
        list(cmd),
        cwd=resolved.cwd,
        env=dict(resolved.env) if resolved.env is not None else None,
        check=resolved.check,
        timeout=resolved.timeout,
        input=resolved.input_text,
        encoding=resolved.encoding,
        errors=resolved.errors,
        stdin=None if resolved.input_text is not None else subprocess.DEVNULL,
        capture_output=True,
        text=True,
        shell=False,
    )


__all__ = ["CommandOptions", "run_command"]
