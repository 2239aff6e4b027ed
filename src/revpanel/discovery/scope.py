# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Turn a CLI scope argument into a concrete, ordered file set."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from fnmatch import fnmatch
from pathlib import Path
from typing import Final

from ..core.constants import ALWAYS_EXCLUDE_DIRS
from ..core.models import Scope, ScopeMode
from ..errors import ScopeResolutionError
from .filesystem import FilesystemDiscovery
from .git import GitCommandError, GitDiscovery

LOGGER = logging.getLogger(__name__)

FULL_SCOPE_KEYWORD: Final[str] = "full"
_GLOB_CHARS: Final[frozenset[str]] = frozenset("*?[")


class ScopeResolver:
    """Resolve diff, full, and path/glob scopes relative to a project root."""

    def __init__(
        self,
        root: Path,
        *,
        git: GitDiscovery | None = None,
        filesystem: FilesystemDiscovery | None = None,
        exclude: Sequence[str] = (),
        base_branch: str | None = None,
    ) -> None:
        """Create a resolver anchored at ``root``.

        Args:
            root: Project root directory.
            git: Git discovery strategy used for diff and full scopes.
            filesystem: Filesystem walker used outside git and for directories.
            exclude: Glob patterns (root-relative) removed from diff and full scopes.
            base_branch: Branch whose merge-base anchors the diff scope.
        """

        self._root = root.resolve()
        self._git = git or GitDiscovery()
        self._filesystem = filesystem or FilesystemDiscovery()
        self._exclude = tuple(exclude)
        self._base_branch = base_branch

    @property
    def root(self) -> Path:
        """Return the resolved project root."""

        return self._root

    def resolve(self, targets: Sequence[str] = ()) -> Scope:
        """Return the scope selected by ``targets``.

        Args:
            targets: Empty for the changed-file diff, ``["full"]`` for the whole
                project, otherwise paths or globs relative to the root.

        Returns:
            Scope: Scope with sorted, de-duplicated absolute file paths. An empty
                diff scope is valid and means there is nothing to review.

        Raises:
            ScopeResolutionError: If a target escapes the root or matches
                nothing, or git cannot compute the diff.
        """

        cleaned = tuple(target.strip() for target in targets if target and target.strip())
        if not cleaned:
            return self._diff_scope()
        if any(target.lower() == FULL_SCOPE_KEYWORD for target in cleaned):
            if len(cleaned) > 1:
                raise ScopeResolutionError("'full' cannot be combined with other scope targets")
            return self._full_scope()
        return self._paths_scope(cleaned)

    def _diff_scope(self) -> Scope:
        """Return the changed-files scope, translating git failures."""

        if not self._git.is_repository(self._root):
            raise ScopeResolutionError(
                f"{self._root} is not a git work tree; the default diff scope needs version control "
                "(pass 'full' or explicit paths instead)",
            )
        try:
            changed = self._git.changed_files(self._root, base_branch=self._base_branch)
        except GitCommandError as exc:
            raise ScopeResolutionError(f"could not compute changed files: {exc}") from exc
        files = self._finalise(changed, apply_excludes=True)
        LOGGER.debug("diff scope resolved %d changed file(s)", len(files))
        return Scope(mode=ScopeMode.DIFF, root=self._root, files=files)

    def _full_scope(self) -> Scope:
        """Return every tracked file in git, or every file on disk outside git."""

        if self._git.is_repository(self._root):
            try:
                candidates = self._git.tracked_files(self._root)
            except GitCommandError as exc:
                raise ScopeResolutionError(f"could not list project files: {exc}") from exc
        else:
            candidates = self._filesystem.discover(self._root)
        files = self._finalise(candidates, apply_excludes=True)
        LOGGER.debug("full scope resolved %d file(s)", len(files))
        return Scope(mode=ScopeMode.FULL, root=self._root, targets=(FULL_SCOPE_KEYWORD,), files=files)

    def _paths_scope(self, targets: tuple[str, ...]) -> Scope:
        """Return the union of explicit path and glob targets."""

        collected: list[Path] = []
        for target in targets:
            matches = self._resolve_glob(target) if _is_glob(target) else self._resolve_path(target)
            if not matches:
                raise ScopeResolutionError(f"scope target {target!r} matched no files under {self._root}")
            collected.extend(matches)
        files = self._finalise(collected, apply_excludes=False)
        return Scope(mode=ScopeMode.PATHS, root=self._root, targets=targets, files=files)

    def _resolve_path(self, target: str) -> list[Path]:
        """Return the file, or the files below the directory, named by ``target``."""

        raw = Path(target).expanduser()
        candidate = (raw if raw.is_absolute() else self._root / raw).resolve()
        self._ensure_within_root(candidate, target)
        if not candidate.exists():
            return []
        return self._filesystem.discover(candidate)

    def _resolve_glob(self, target: str) -> list[Path]:
        """Return files under the root matching the glob ``target``."""

        pattern = target
        raw = Path(target)
        if raw.is_absolute():
            try:
                pattern = raw.relative_to(self._root).as_posix()
            except ValueError:
                raise ScopeResolutionError(f"scope target {target!r} escapes the project root") from None
        matches: list[Path] = []
        for match in self._root.glob(pattern):
            resolved = match.resolve()
            self._ensure_within_root(resolved, target)
            if _in_excluded_dir(resolved, self._root):
                continue
            matches.extend(self._filesystem.discover(resolved))
        return matches

    def _ensure_within_root(self, candidate: Path, target: str) -> None:
        """Raise :class:`ScopeResolutionError` when ``candidate`` leaves the root."""

        if not candidate.is_relative_to(self._root):
            raise ScopeResolutionError(f"scope target {target!r} escapes the project root {self._root}")

    def _finalise(self, candidates: Iterable[Path], *, apply_excludes: bool) -> tuple[Path, ...]:
        """Return unique, sorted files, dropping vendor dirs and optional excludes."""

        kept: set[Path] = set()
        for path in candidates:
            if not path.is_relative_to(self._root):
                continue
            if _in_excluded_dir(path, self._root):
                continue
            if apply_excludes and self._is_excluded(path):
                continue
            kept.add(path)
        return tuple(sorted(kept, key=lambda path: path.as_posix()))

    def _is_excluded(self, path: Path) -> bool:
        """Return whether ``path`` matches a configured exclude pattern."""

        relative = path.relative_to(self._root).as_posix()
        for pattern in self._exclude:
            trimmed = pattern.rstrip("/")
            if fnmatch(relative, trimmed) or relative.startswith(f"{trimmed}/"):
                return True
        return False


def _is_glob(target: str) -> bool:
    return any(char in _GLOB_CHARS for char in target)


def _in_excluded_dir(path: Path, root: Path) -> bool:
    try:
        parts = path.relative_to(root).parts[:-1]
    except ValueError:
        return False
    return any(part in ALWAYS_EXCLUDE_DIRS for part in parts)


__all__ = ["FULL_SCOPE_KEYWORD", "ScopeResolver"]
