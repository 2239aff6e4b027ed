# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Filesystem discovery strategy."""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from ..core.constants import ALWAYS_EXCLUDE_DIRS


@dataclass(frozen=True, slots=True)
class WalkContext:
    """Parameters required to walk the filesystem hierarchy."""

    base: Path
    follow_symlinks: bool


class FilesystemDiscovery:
    """Traverse the filesystem collecting candidate files."""

    def __init__(self, *, follow_symlinks: bool = False) -> None:
        """Create a discovery strategy optionally following symlinks.

        Args:
            follow_symlinks: When ``True`` walk directories pointed to by
                symlinks instead of skipping them.
        """

        self.follow_symlinks = follow_symlinks

    def discover(self, base: Path) -> list[Path]:
        """Return every file under ``base`` outside well-known vendor/build folders.

        Args:
            base: Directory (or single file) to traverse.

        Returns:
            list[Path]: Sorted absolute paths.
        """

        resolved = base.resolve()
        if resolved.is_file():
            return [resolved]
        if not resolved.is_dir():
            return []
        found = set(self._walk(WalkContext(base=resolved, follow_symlinks=self.follow_symlinks)))
        return sorted(found, key=lambda path: path.as_posix())

    def _walk(self, context: WalkContext) -> Iterator[Path]:
        """Walk ``context.base`` yielding regular files.

        Args:
            context: Immutable walk context containing traversal settings.

        Yields:
            Path: Files that survive directory exclusion.
        """

        for dirpath, dirnames, filenames in os.walk(context.base, followlinks=context.follow_symlinks):
            dirnames[:] = [name for name in dirnames if name not in ALWAYS_EXCLUDE_DIRS]
            current = Path(dirpath)
            for filename in filenames:
                candidate = current / filename
                if candidate.is_file():
                    yield candidate.resolve()


__all__ = ["FilesystemDiscovery", "WalkContext"]
