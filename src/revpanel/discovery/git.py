# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Git-based discovery strategy."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from pathlib import Path

from ..core.process import CommandOptions, run_command

GitRunner = Callable[[Sequence[str], Path], list[str]]


class GitCommandError(RuntimeError):
    """Raised when a git command exits unsuccessfully."""


class GitDiscovery:
    """Collect changed or tracked files reported by Git."""

    def __init__(self, *, runner: GitRunner | None = None) -> None:
        """Create a Git discovery strategy.

        Args:
            runner: Optional command runner used to execute git commands. A
                default based on :func:`run_command` is used when omitted.
        """

        self._runner = runner or self._default_runner

    def is_repository(self, root: Path) -> bool:
        """Return whether ``root`` lives inside a git work tree.

        Args:
            root: Directory to probe.

        Returns:
            bool: ``True`` when git recognises the work tree.
        """

        try:
            output = self._runner(["git", "rev-parse", "--is-inside-work-tree"], root)
        except GitCommandError:
            return False
        return bool(output) and output[0].strip() == "true"

    def changed_files(self, root: Path, *, base_branch: str | None = None) -> list[Path]:
        """Return files changed relative to the working tree's base.

        The base is the merge-base with ``base_branch`` when one is supplied,
        otherwise ``HEAD``. Untracked files that are not ignored count as
        changed; deleted files are dropped.

        Args:
            root: Project root; paths are reported relative to it.
            base_branch: Optional branch whose merge-base is the diff baseline.

        Returns:
            list[Path]: Sorted, resolved paths of existing changed files.

        Raises:
            GitCommandError: If git cannot compute the diff.
        """

        candidates: set[Path] = set()
        candidates.update(self._diff_names(root, base_branch))
        candidates.update(self._records_to_paths(root, self._runner(self._untracked_cmd(), root)))
        return _existing_sorted(candidates)

    def tracked_files(self, root: Path) -> list[Path]:
        """Return tracked plus untracked, non-ignored files under ``root``.

        Args:
            root: Project root directory.

        Returns:
            list[Path]: Sorted, resolved paths honouring ``.gitignore`` rules.

        Raises:
            GitCommandError: If git cannot list files.
        """

        cmd = ["git", "ls-files", "-z", "--cached", "--others", "--exclude-standard"]
        return _existing_sorted(self._records_to_paths(root, self._runner(cmd, root)))

    def _diff_names(self, root: Path, base_branch: str | None) -> Iterator[Path]:
        """Yield files referenced by ``git diff`` against the resolved base.

        Args:
            root: Project root directory.
            base_branch: Optional branch used to compute a merge-base.

        Yields:
            Path: Resolved candidate files reported by git.
        """

        diff_ref = self._resolve_diff_ref(root, base_branch)
        if diff_ref is None:
            # Repository without commits: everything staged is new.
            cmd = ["git", "ls-files", "-z", "--cached"]
        else:
            cmd = ["git", "diff", "--name-only", "--relative", "-z", diff_ref, "--"]
        yield from self._records_to_paths(root, self._runner(cmd, root))

    def _resolve_diff_ref(self, root: Path, base_branch: str | None) -> str | None:
        """Return the git reference to diff against.

        Args:
            root: Project root directory.
            base_branch: Optional branch used to compute a merge-base.

        Returns:
            str | None: Reference to diff against, or ``None`` when the
                repository has no commits yet.
        """

        if base_branch:
            output = self._runner(["git", "merge-base", "HEAD", base_branch], root)
            if output and output[0].strip():
                return output[0].strip()
            return base_branch
        try:
            self._runner(["git", "rev-parse", "--verify", "--quiet", "HEAD"], root)
        except GitCommandError:
            return None
        return "HEAD"

    @staticmethod
    def _untracked_cmd() -> list[str]:
        """Return the command listing untracked, non-ignored files."""

        return ["git", "ls-files", "-z", "--others", "--exclude-standard"]

    @staticmethod
    def _records_to_paths(root: Path, records: Iterable[str]) -> Iterator[Path]:
        """Resolve verbatim path records printed by a ``-z`` git command.

        Args:
            root: Directory the records are relative to.
            records: Unquoted paths; surrounding whitespace is significant.

        Yields:
            Path: Resolved path for each non-empty record.
        """

        for record in records:
            if record:
                yield (root / record).resolve()

    @staticmethod
    def _default_runner(cmd: Sequence[str], root: Path) -> list[str]:
        """Execute ``cmd`` returning its stdout records.

        Commands run with ``-z`` print NUL-terminated, unquoted paths, so
        their output is split on NUL; anything else is split into lines.

        Args:
            cmd: Git command to execute.
            root: Working directory.

        Returns:
            list[str]: Stdout records produced by git.

        Raises:
            GitCommandError: If git is missing or exits non-zero.
        """

        try:
            cp = run_command(cmd, options=CommandOptions(cwd=root, encoding="utf-8", errors="surrogateescape"))
        except FileNotFoundError as exc:
            raise GitCommandError("git executable not found") from exc
        if cp.returncode != 0:
            detail = (cp.stderr or "").strip().splitlines()
            raise GitCommandError(f"{' '.join(cmd)} failed: {detail[-1] if detail else f'exit {cp.returncode}'}")
        stdout = cp.stdout or ""
        if "-z" in cmd:
            return [record for record in stdout.split("\0") if record]
        return stdout.splitlines()


def _existing_sorted(candidates: Iterable[Path]) -> list[Path]:
    """Return the existing files among ``candidates`` in POSIX path order."""

    return sorted({path for path in candidates if path.is_file()}, key=lambda path: path.as_posix())


__all__ = ["GitCommandError", "GitDiscovery", "GitRunner"]
