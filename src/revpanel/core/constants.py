# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core constants shared across revpanel modules."""

from __future__ import annotations

from enum import IntEnum
from typing import Final

CONFIG_FILENAME: Final[str] = ".revpanel.toml"


class ExitCode(IntEnum):
    """Process exit statuses returned by the ``review`` command."""

    OK = 0
    FINDINGS = 1
    CONFIG_ERROR = 2
    CANCELLED = 3


ALWAYS_EXCLUDE_DIRS: Final[frozenset[str]] = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        "node_modules",
        ".venv",
        "venv",
        "dist",
        "build",
        "__pycache__",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        ".tox",
        "coverage",
        ".cache",
        ".idea",
        ".vscode",
    },
)

LANGUAGE_EXTENSIONS: Final[dict[str, frozenset[str]]] = {
    "python": frozenset({".py", ".pyi"}),
    "javascript": frozenset({".js", ".jsx", ".mjs", ".cjs"}),
    "typescript": frozenset({".ts", ".tsx"}),
    "go": frozenset({".go"}),
    "rust": frozenset({".rs"}),
    "java": frozenset({".java"}),
    "kotlin": frozenset({".kt", ".kts"}),
    "csharp": frozenset({".cs"}),
    "ruby": frozenset({".rb"}),
    "php": frozenset({".php"}),
    "swift": frozenset({".swift"}),
    "cpp": frozenset({".c", ".cc", ".cpp", ".cxx", ".h", ".hpp", ".hh"}),
    "html": frozenset({".html", ".htm"}),
    "css": frozenset({".css", ".scss", ".sass", ".less"}),
    "vue": frozenset({".vue"}),
    "svelte": frozenset({".svelte"}),
    "sql": frozenset({".sql"}),
    "shell": frozenset({".sh", ".bash", ".zsh"}),
    "terraform": frozenset({".tf", ".tfvars", ".hcl"}),
    "yaml": frozenset({".yml", ".yaml"}),
    "markdown": frozenset({".md", ".mdx", ".rst"}),
    "protobuf": frozenset({".proto"}),
    "graphql": frozenset({".graphql", ".gql"}),
}

LANGUAGE_FILENAMES: Final[dict[str, frozenset[str]]] = {
    "docker": frozenset({"dockerfile", "docker-compose.yml", "docker-compose.yaml", "compose.yaml"}),
    "shell": frozenset({"makefile"}),
}

DEPENDENCY_MANIFESTS: Final[frozenset[str]] = frozenset(
    {
        "package.json",
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "requirements.txt",
        "pyproject.toml",
        "poetry.lock",
        "pipfile",
        "go.mod",
        "go.sum",
        "cargo.toml",
        "cargo.lock",
        "gemfile",
        "gemfile.lock",
        "pom.xml",
        "build.gradle",
        "composer.json",
    },
)

# Characteristics implied by a declared ``project.type``. A declared type
# replaces file-based detection entirely.
PROJECT_TYPE_TRAITS: Final[dict[str, frozenset[str]]] = {
    "web": frozenset({"code", "backend", "frontend", "api", "networking"}),
    "frontend": frozenset({"code", "frontend"}),
    "api": frozenset({"code", "backend", "api", "networking"}),
    "service": frozenset({"code", "backend", "networking"}),
    "cli": frozenset({"code"}),
    "library": frozenset({"code", "docs"}),
    "mobile": frozenset({"code", "frontend", "networking"}),
    "data": frozenset({"code", "database"}),
    "infrastructure": frozenset({"infrastructure", "networking"}),
    "docs": frozenset({"docs"}),
}

__all__ = [
    "ALWAYS_EXCLUDE_DIRS",
    "CONFIG_FILENAME",
    "DEPENDENCY_MANIFESTS",
    "ExitCode",
    "LANGUAGE_EXTENSIONS",
    "LANGUAGE_FILENAMES",
    "PROJECT_TYPE_TRAITS",
]
