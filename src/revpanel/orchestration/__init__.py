# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Agent execution and the review pipeline."""

from __future__ import annotations

from .orchestrator import ReviewOrchestrator, ReviewPlan, ReviewRequest
from .runner import AgentRunner, AgentTask, CancellationToken, RunnerResult

__all__ = [
    "AgentRunner",
    "AgentTask",
    "CancellationToken",
    "ReviewOrchestrator",
    "ReviewPlan",
    "ReviewRequest",
    "RunnerResult",
]
