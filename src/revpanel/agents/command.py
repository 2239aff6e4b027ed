# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Agent backed by an external command speaking JSON over stdio."""

from __future__ import annotations

import json
import logging
import subprocess  # nosec B404
from collections.abc import Sequence
from typing import Any

from ..core.process import CommandOptions, run_command
from ..errors import AgentExecutionError, AgentTimeoutError
from .base import AgentRequest

LOGGER = logging.getLogger(__name__)


class CommandAgent:
    """Delegate the review to ``command`` and parse its JSON findings.

    The command runs in the project root. It receives a JSON request on
    stdin and must print either a JSON list of findings or an object with a
    ``findings`` list.
    """

    def __init__(self, command: Sequence[str]) -> None:
        """Create the agent.

        Args:
            command: Argument vector; the first item is the executable.
        """

        if not command:
            raise ValueError("CommandAgent requires a non-empty command")
        self._command = tuple(command)

    @property
    def command(self) -> tuple[str, ...]:
        """Return the configured argument vector."""

        return self._command

    def run(self, request: AgentRequest) -> list[Any]:
        """Execute the command for ``request``.

        Args:
            request: Scope, settings, and time budget.

        Returns:
            list[Any]: Raw finding payloads emitted by the command.

        Raises:
            AgentExecutionError: If the command is missing, exits non-zero,
                or prints output that is not a findings list.
            AgentTimeoutError: If the command outlives ``request.timeout``.
        """

        payload = json.dumps(_request_payload(request), sort_keys=True)
        options = CommandOptions(cwd=request.scope.root, timeout=request.timeout, input_text=payload)
        LOGGER.debug("%s running %s", request.agent_id, " ".join(self._command))
        try:
            completed = run_command(self._command, options=options)
        except FileNotFoundError as exc:
            raise AgentExecutionError(request.agent_id, f"command not found: {self._command[0]}") from exc
        except subprocess.TimeoutExpired as exc:
            raise AgentTimeoutError(request.agent_id, f"command exceeded {request.timeout:g}s") from exc
        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip().splitlines()
            reason = stderr[-1] if stderr else "no error output"
            raise AgentExecutionError(request.agent_id, f"command exited with {completed.returncode}: {reason}")
        return _parse_output(request.agent_id, completed.stdout or "")


def _request_payload(request: AgentRequest) -> dict[str, Any]:
    return {
        "agent": request.agent_id,
        "criteria": request.criteria_ref,
        "root": request.scope.root.as_posix(),
        "files": [request.scope.relative(path) for path in request.scope.files],
        "custom_rules": list(request.settings.custom_rules),
    }


def _parse_output(agent_id: str, stdout: str) -> list[Any]:
    text = stdout.strip()
    if not text:
        return []
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AgentExecutionError(agent_id, f"output is not valid JSON: {exc.msg}") from exc
    if isinstance(document, dict):
        document = document.get("findings")
    if not isinstance(document, list):
        raise AgentExecutionError(agent_id, "output must be a JSON list or an object with a 'findings' list")
    return document


__all__ = ["CommandAgent"]
