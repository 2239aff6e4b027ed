# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Concurrent agent execution with per-agent time budgets.

Python threads cannot be killed, so a timeout is enforced by abandoning the
worker: the runner records the timeout, sets the agent's cancel event so a
cooperative agent can stop early, and stops waiting for it. Command-backed
agents additionally pass the budget to :mod:`subprocess`, which kills the
child process.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Final, TypeAlias

from ..agents.base import Agent, AgentRequest
from ..core.models import AgentOutcome, AgentStatus
from ..errors import AgentExecutionError, AgentTimeoutError, RunCancelledError

LOGGER = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL: Final[float] = 0.05

Clock: TypeAlias = Callable[[], float]


class CancellationToken:
    """Single run-wide cancellation signal shared with every agent task."""

    def __init__(self) -> None:
        """Create an un-cancelled token."""

        self._event = threading.Event()
        self._reason = "run cancelled"

    def cancel(self, reason: str = "run cancelled") -> None:
        """Signal cancellation.

        Args:
            reason: Human readable cause, e.g. the received signal name.
        """

        if not self._event.is_set():
            self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Return whether cancellation was requested."""

        return self._event.is_set()

    @property
    def reason(self) -> str:
        """Return the cancellation reason."""

        return self._reason

    def raise_if_cancelled(self) -> None:
        """Raise :class:`RunCancelledError` once cancellation was requested.

        Raises:
            RunCancelledError: If the token is cancelled.
        """

        if self.cancelled:
            raise RunCancelledError(self._reason)


@dataclass(frozen=True, slots=True)
class AgentTask:
    """One unit of work: an agent, its request, and its time budget."""

    agent: Agent
    request: AgentRequest
    timeout: float

    @property
    def agent_id(self) -> str:
        """Return the id of the agent executed by this task."""

        return self.request.agent_id


class _Capacity:
    """Concurrency slots shared by the tasks of one run.

    A slot is released exactly once: by the worker when the agent returns,
    or by the runner when it abandons a timed-out agent. Abandoned workers
    therefore never keep queued agents from starting.
    """

    def __init__(self, jobs: int, poll_interval: float) -> None:
        """Allow ``jobs`` concurrent agents, re-checking cancellation every ``poll_interval``."""

        self._semaphore = threading.BoundedSemaphore(jobs)
        self._poll_interval = poll_interval
        self._lock = threading.Lock()
        self._holders: set[str] = set()

    def acquire(self, agent_id: str, cancel_event: threading.Event) -> bool:
        """Block until a slot is free, returning ``False`` if cancelled first."""

        while not self._semaphore.acquire(timeout=self._poll_interval):
            if cancel_event.is_set():
                return False
        with self._lock:
            self._holders.add(agent_id)
        return True

    def release(self, agent_id: str) -> None:
        """Release the slot held by ``agent_id``; later calls are no-ops."""

        with self._lock:
            if agent_id not in self._holders:
                return
            self._holders.discard(agent_id)
        self._semaphore.release()


@dataclass(frozen=True, slots=True)
class RunnerResult:
    """Terminal outcome for every task plus the output of successful ones."""

    outcomes: tuple[AgentOutcome, ...]
    outputs: Mapping[str, Sequence[Any]] = field(default_factory=dict)


class AgentRunner:
    """Execute agent tasks on a bounded thread pool."""

    def __init__(
        self,
        jobs: int,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Clock = time.monotonic,
    ) -> None:
        """Create the runner.

        Args:
            jobs: Maximum number of agents running at once.
            poll_interval: Seconds between timeout and cancellation checks.
            clock: Monotonic clock, injectable for tests.
        """

        if jobs < 1:
            raise ValueError("jobs must be at least 1")
        self._jobs = jobs
        self._poll_interval = poll_interval
        self._clock = clock

    def run(self, tasks: Sequence[AgentTask], token: CancellationToken | None = None) -> RunnerResult:
        """Run ``tasks`` and block until each reached a terminal state.

        A task that raises becomes a failure outcome; a task that exceeds its
        budget becomes a timeout outcome. Neither affects sibling tasks. At
        most ``jobs`` agents run at once; a task's budget starts when it gets
        a slot, and a timed-out agent gives its slot up immediately even if
        its thread is still busy.

        Args:
            tasks: Tasks in selection order.
            token: Optional run-wide cancellation token.

        Returns:
            RunnerResult: Outcomes and outputs in ``tasks`` order.

        Raises:
            RunCancelledError: If ``token`` is cancelled before every task finished.
        """

        active_token = token or CancellationToken()
        active_token.raise_if_cancelled()
        if not tasks:
            return RunnerResult(outcomes=())
        started: dict[str, float] = {}
        started_lock = threading.Lock()
        outcomes: dict[str, AgentOutcome] = {}
        outputs: dict[str, Sequence[Any]] = {}
        capacity = _Capacity(self._jobs, self._poll_interval)

        def _invoke(task: AgentTask) -> Any:
            if not capacity.acquire(task.agent_id, task.request.cancel_event):
                raise AgentExecutionError(task.agent_id, "cancelled before start")
            try:
                with started_lock:
                    started[task.agent_id] = self._clock()
                result = task.agent.run(task.request)
                if isinstance(result, Iterable) and not isinstance(result, (str, bytes, Mapping, Sequence)):
                    # Drain generators on the worker so their errors are isolated too.
                    return list(result)
                return result
            finally:
                capacity.release(task.agent_id)

        # One thread per task; ``capacity`` bounds how many run agent code.
        executor = ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="revpanel-agent")
        pending: dict[Future[Any], AgentTask] = {}
        try:
            for task in tasks:
                pending[executor.submit(_invoke, task)] = task
            while pending:
                if active_token.cancelled:
                    for task in pending.values():
                        task.request.cancel_event.set()
                    raise RunCancelledError(active_token.reason)
                done, _ = wait(tuple(pending), timeout=self._poll_interval, return_when=FIRST_COMPLETED)
                for future in done:
                    task = pending.pop(future)
                    outcomes[task.agent_id] = self._collect(task, future, outputs)
                with started_lock:
                    snapshot = dict(started)
                now = self._clock()
                for future, task in list(pending.items()):
                    began = snapshot.get(task.agent_id)
                    if began is None or now - began < task.timeout:
                        continue
                    pending.pop(future)
                    task.request.cancel_event.set()
                    capacity.release(task.agent_id)
                    detail = f"exceeded {task.timeout:g}s time budget"
                    LOGGER.warning("agent %s timed out: %s", task.agent_id, detail)
                    outcomes[task.agent_id] = AgentOutcome(
                        agent_id=task.agent_id,
                        status=AgentStatus.TIMEOUT,
                        detail=detail,
                    )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        ordered = tuple(outcomes[task.agent_id] for task in tasks)
        return RunnerResult(
            outcomes=ordered,
            outputs={task.agent_id: outputs[task.agent_id] for task in tasks if task.agent_id in outputs},
        )

    @staticmethod
    def _collect(task: AgentTask, future: Future[Any], outputs: dict[str, Sequence[Any]]) -> AgentOutcome:
        """Convert a finished future into an outcome, storing successful output."""

        agent_id = task.agent_id
        try:
            result = future.result()
        except AgentTimeoutError as exc:
            LOGGER.warning("agent %s timed out: %s", agent_id, exc.detail)
            return AgentOutcome(agent_id=agent_id, status=AgentStatus.TIMEOUT, detail=exc.detail)
        except AgentExecutionError as exc:
            LOGGER.warning("agent %s failed: %s", agent_id, exc.detail)
            return AgentOutcome(agent_id=agent_id, status=AgentStatus.FAILURE, detail=exc.detail)
        except Exception as exc:  # noqa: BLE001 - agent code is untrusted
            detail = f"{type(exc).__name__}: {exc}"
            LOGGER.warning("agent %s crashed: %s", agent_id, detail)
            return AgentOutcome(agent_id=agent_id, status=AgentStatus.FAILURE, detail=detail)
        if result is None or isinstance(result, (str, bytes, Mapping)) or not isinstance(result, Sequence):
            detail = f"returned {type(result).__name__}, expected a list of findings"
            LOGGER.warning("agent %s failed: %s", agent_id, detail)
            return AgentOutcome(agent_id=agent_id, status=AgentStatus.FAILURE, detail=detail)
        outputs[agent_id] = result
        LOGGER.debug("agent %s finished with %d raw finding(s)", agent_id, len(result))
        return AgentOutcome(agent_id=agent_id, status=AgentStatus.SUCCESS, finding_count=len(result))


__all__ = ["AgentRunner", "AgentTask", "CancellationToken", "RunnerResult"]
