# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""The ``review`` command and its per-agent shortcuts."""

from __future__ import annotations

import signal
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from types import FrameType
from typing import Any

import typer

from ..agents.registry import AgentRegistry
from ..core.constants import ExitCode
from ..core.logging import configure_logging
from ..core.models import ReviewRun
from ..errors import ConfigParseError, RunCancelledError, ScopeResolutionError
from ..orchestration.orchestrator import ReviewOrchestrator, ReviewRequest
from ..orchestration.runner import CancellationToken
from ..reporting.renderers import ReportFormat, render_report
from .shared import CLIError, CLILogger, build_cli_logger, split_ids

SCOPE_ARGUMENT = typer.Argument(
    None,
    help="Empty for changed files, 'full' for the whole project, or paths/globs relative to --root.",
    show_default=False,
)
ROOT_OPTION = typer.Option(Path("."), "--root", "-r", help="Project root.", file_okay=False)
CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Explicit project configuration file.", dir_okay=False)
FORMAT_OPTION = typer.Option(ReportFormat.JSON, "--format", "-f", case_sensitive=False, help="Report format.")
OUTPUT_OPTION = typer.Option(None, "--output", "-o", help="Write the report to a file instead of stdout.")
THRESHOLD_OPTION = typer.Option(None, "--threshold", help="Minimum severity reported (overrides config).")
FAIL_ON_OPTION = typer.Option(None, "--fail-on", help="Lowest severity that fails the run (overrides config).")
JOBS_OPTION = typer.Option(None, "--jobs", "-j", min=1, help="Maximum concurrent agents.")
TIMEOUT_OPTION = typer.Option(None, "--timeout", min=0.001, help="Per-agent time budget in seconds.")
BASE_OPTION = typer.Option(None, "--base", help="Branch whose merge-base anchors the changed-file scope.")
RENDERED_AT_OPTION = typer.Option(None, "--rendered-at", help="Timestamp embedded verbatim in the report.")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")
QUIET_OPTION = typer.Option(False, "--quiet", "-q", help="Only log errors.")
NO_COLOR_OPTION = typer.Option(False, "--no-color", help="Disable ANSI colour output.")
NO_EMOJI_OPTION = typer.Option(False, "--no-emoji", help="Disable emoji output.")


@dataclass(frozen=True, slots=True)
class ReviewOptions:
    """Normalised command line options for one review."""

    targets: tuple[str, ...]
    pick: tuple[str, ...]
    root: Path
    config_path: Path | None
    report_format: ReportFormat
    output: Path | None
    threshold: str | None
    fail_on: str | None
    jobs: int | None
    timeout: float | None
    base: str | None
    rendered_at: str | None
    verbose: bool
    quiet: bool
    no_color: bool
    no_emoji: bool

    def overrides(self) -> dict[str, Any]:
        """Return the configuration fragment implied by CLI flags.

        Returns:
            dict[str, Any]: Nested mapping using the configuration file spelling.
        """

        review: dict[str, Any] = {}
        execution: dict[str, Any] = {}
        if self.threshold is not None:
            review["severity-threshold"] = self.threshold
        if self.fail_on is not None:
            review["fail-on"] = self.fail_on
        if self.base is not None:
            review["base-branch"] = self.base
        if self.jobs is not None:
            execution["jobs"] = self.jobs
        if self.timeout is not None:
            execution["agent-timeout"] = self.timeout
        fragment: dict[str, Any] = {}
        if review:
            fragment["review"] = review
        if execution:
            fragment["execution"] = execution
        return fragment

    def to_request(self) -> ReviewRequest:
        """Return the orchestrator request for these options."""

        return ReviewRequest(
            root=self.root,
            targets=self.targets,
            pick=self.pick,
            config_path=self.config_path,
            overrides=self.overrides(),
        )


@contextmanager
def cancellation_on_signals(token: CancellationToken) -> Iterator[None]:
    """Route SIGINT and SIGTERM to ``token`` while the block runs.

    Handlers can only be installed from the main thread; elsewhere the block
    runs without them.

    Args:
        token: Token cancelled when a signal arrives.

    Yields:
        None: Control returns to the caller with handlers installed.
    """

    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum: int, _frame: FrameType | None) -> None:
        token.cancel(f"received {signal.Signals(signum).name}")

    previous: dict[signal.Signals, Any] = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _handler)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def run_review(options: ReviewOptions, *, orchestrator: ReviewOrchestrator | None = None) -> None:
    """Execute a review and exit with its status.

    Args:
        options: Parsed command line options.
        orchestrator: Optional orchestrator, replaceable in tests.

    Raises:
        typer.Exit: Always; carries the run's exit code.
    """

    configure_logging(verbose=options.verbose, quiet=options.quiet, use_color=False if options.no_color else None)
    logger = build_cli_logger(emoji=not options.no_emoji, no_color=options.no_color)
    engine = orchestrator or ReviewOrchestrator()
    token = CancellationToken()
    try:
        with cancellation_on_signals(token):
            run = _run_or_raise(engine, options.to_request(), token)
        _emit_report(run, options, logger)
    except CLIError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc
    _summarise(run, logger, quiet=options.quiet)
    raise typer.Exit(code=run.exit_code)


def _run_or_raise(engine: ReviewOrchestrator, request: ReviewRequest, token: CancellationToken) -> ReviewRun:
    """Run the review, mapping fatal errors onto :class:`CLIError` exit codes."""

    try:
        return engine.run(request, token)
    except ConfigParseError as exc:
        raise CLIError(f"configuration error: {exc}", exit_code=ExitCode.CONFIG_ERROR) from exc
    except ScopeResolutionError as exc:
        raise CLIError(f"scope error: {exc}", exit_code=ExitCode.CONFIG_ERROR) from exc
    except RunCancelledError as exc:
        raise CLIError(f"review cancelled ({exc}); no report produced", exit_code=ExitCode.CANCELLED) from exc


def _emit_report(run: ReviewRun, options: ReviewOptions, logger: CLILogger) -> None:
    """Write the rendered report to ``--output`` or stdout."""

    report = render_report(run, options.report_format, rendered_at=options.rendered_at)
    if options.output is None:
        logger.echo(report, newline=False)
        return
    try:
        options.output.parent.mkdir(parents=True, exist_ok=True)
        options.output.write_text(report, encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"could not write report to {options.output}: {exc}", exit_code=ExitCode.CONFIG_ERROR) from exc
    if not options.quiet:
        logger.info(f"report written to {options.output}")


def _summarise(run: ReviewRun, logger: CLILogger, *, quiet: bool) -> None:
    """Print the degraded-run notice and outcome summary on stderr."""

    for outcome in run.agents_failed:
        logger.warn(f"agent {outcome.agent_id} {outcome.status.value}: {outcome.detail or 'no detail'}")
    if quiet:
        return
    if run.degraded:
        logger.warn("degraded run: results may be incomplete")
    if run.exit_code == ExitCode.OK:
        logger.ok(f"{len(run.findings)} finding(s); nothing at or above the fail threshold")
    else:
        logger.fail(f"{len(run.findings)} finding(s); gating findings present")


def review_command(
    targets: list[str] | None = SCOPE_ARGUMENT,
    pick: list[str] | None = typer.Option(
        None,
        "--pick",
        "-p",
        help="Run exactly these agents (comma-separated or repeated).",
    ),
    root: Path = ROOT_OPTION,
    config: Path | None = CONFIG_OPTION,
    report_format: ReportFormat = FORMAT_OPTION,
    output: Path | None = OUTPUT_OPTION,
    threshold: str | None = THRESHOLD_OPTION,
    fail_on: str | None = FAIL_ON_OPTION,
    jobs: int | None = JOBS_OPTION,
    timeout: float | None = TIMEOUT_OPTION,
    base: str | None = BASE_OPTION,
    rendered_at: str | None = RENDERED_AT_OPTION,
    verbose: bool = VERBOSE_OPTION,
    quiet: bool = QUIET_OPTION,
    no_color: bool = NO_COLOR_OPTION,
    no_emoji: bool = NO_EMOJI_OPTION,
) -> None:
    """Review the selected scope with the applicable agents."""

    run_review(
        ReviewOptions(
            targets=tuple(targets or ()),
            pick=split_ids(pick),
            root=root,
            config_path=config,
            report_format=report_format,
            output=output,
            threshold=threshold,
            fail_on=fail_on,
            jobs=jobs,
            timeout=timeout,
            base=base,
            rendered_at=rendered_at,
            verbose=verbose,
            quiet=quiet,
            no_color=no_color,
            no_emoji=no_emoji,
        ),
    )


def make_shortcut(agent_id: str) -> Callable[..., None]:
    """Return a command equivalent to ``review --pick <agent_id>``.

    Args:
        agent_id: Agent run by the shortcut.

    Returns:
        Callable[..., None]: Typer command callback.
    """

    def _shortcut(
        targets: list[str] | None = SCOPE_ARGUMENT,
        root: Path = ROOT_OPTION,
        config: Path | None = CONFIG_OPTION,
        report_format: ReportFormat = FORMAT_OPTION,
        output: Path | None = OUTPUT_OPTION,
        threshold: str | None = THRESHOLD_OPTION,
        fail_on: str | None = FAIL_ON_OPTION,
        timeout: float | None = TIMEOUT_OPTION,
        base: str | None = BASE_OPTION,
        rendered_at: str | None = RENDERED_AT_OPTION,
        verbose: bool = VERBOSE_OPTION,
        quiet: bool = QUIET_OPTION,
        no_color: bool = NO_COLOR_OPTION,
        no_emoji: bool = NO_EMOJI_OPTION,
    ) -> None:
        run_review(
            ReviewOptions(
                targets=tuple(targets or ()),
                pick=(agent_id,),
                root=root,
                config_path=config,
                report_format=report_format,
                output=output,
                threshold=threshold,
                fail_on=fail_on,
                jobs=None,
                timeout=timeout,
                base=base,
                rendered_at=rendered_at,
                verbose=verbose,
                quiet=quiet,
                no_color=no_color,
                no_emoji=no_emoji,
            ),
        )

    _shortcut.__name__ = f"review_{agent_id}"
    _shortcut.__doc__ = f"Shortcut for 'review --pick {agent_id}'."
    return _shortcut


def register_review_commands(app: typer.Typer, registry: AgentRegistry) -> Mapping[str, Callable[..., None]]:
    """Register ``review`` plus one shortcut per registered agent.

    Args:
        app: Application receiving the commands.
        registry: Agent catalog providing shortcut names.

    Returns:
        Mapping[str, Callable[..., None]]: Registered shortcut callbacks by agent id.
    """

    app.command("review")(review_command)
    shortcuts: dict[str, Callable[..., None]] = {}
    for descriptor in registry.descriptors():
        callback = make_shortcut(descriptor.id)
        app.command(descriptor.id, help=f"{descriptor.description} (same as 'review --pick {descriptor.id}').")(
            callback,
        )
        shortcuts[descriptor.id] = callback
    return shortcuts


__all__ = [
    "ReviewOptions",
    "cancellation_on_signals",
    "make_shortcut",
    "register_review_commands",
    "review_command",
    "run_review",
]
