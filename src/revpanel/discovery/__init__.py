# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""File discovery: git, filesystem, and CLI scope resolution."""

from __future__ import annotations

from .filesystem import FilesystemDiscovery
from .git import GitCommandError, GitDiscovery, GitRunner
from .scope import FULL_SCOPE_KEYWORD, ScopeResolver

__all__ = [
    "FULL_SCOPE_KEYWORD",
    "FilesystemDiscovery",
    "GitCommandError",
    "GitDiscovery",
    "GitRunner",
    "ScopeResolver",
]
