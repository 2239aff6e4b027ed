# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Infer project characteristics from the files in a review scope."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import PurePath
from typing import Final

from pydantic import BaseModel, ConfigDict, Field

from .core.constants import DEPENDENCY_MANIFESTS, LANGUAGE_EXTENSIONS, LANGUAGE_FILENAMES, PROJECT_TYPE_TRAITS

_MARKUP_LANGUAGES: Final[frozenset[str]] = frozenset({"html", "css", "markdown", "yaml"})
_FRONTEND_LANGUAGES: Final[frozenset[str]] = frozenset({"html", "css", "vue", "svelte"})
_FRONTEND_SUFFIXES: Final[frozenset[str]] = frozenset({".jsx", ".tsx"})
_BACKEND_LANGUAGES: Final[frozenset[str]] = frozenset(
    {"python", "go", "rust", "java", "kotlin", "csharp", "ruby", "php"},
)
_API_LANGUAGES: Final[frozenset[str]] = frozenset({"protobuf", "graphql"})
_API_NAME_HINTS: Final[tuple[str, ...]] = ("openapi", "swagger")
_API_DIR_HINTS: Final[frozenset[str]] = frozenset({"api", "routes", "handlers", "controllers", "endpoints"})
_NETWORK_NAME_HINTS: Final[tuple[str, ...]] = ("server", "client", "http", "socket", "grpc", "proxy")
_DATABASE_DIR_HINTS: Final[frozenset[str]] = frozenset({"migrations", "migrate", "db", "database"})
_INFRA_LANGUAGES: Final[frozenset[str]] = frozenset({"docker", "terraform"})
_INFRA_DIR_HINTS: Final[frozenset[str]] = frozenset({".github", "k8s", "kubernetes", "helm", "deploy", "ansible"})
_TEST_DIR_HINTS: Final[frozenset[str]] = frozenset({"test", "tests", "__tests__", "spec"})


class Profile(BaseModel):
    """Characteristics detected for a review scope."""

    model_config = ConfigDict(frozen=True)

    languages: frozenset[str] = Field(default_factory=frozenset)
    traits: frozenset[str] = Field(default_factory=frozenset)
    project_type: str | None = None

    def has(self, trait: str) -> bool:
        """Return whether ``trait`` was detected or declared.

        Args:
            trait: Trait name such as ``"frontend"``.

        Returns:
            bool: ``True`` when the trait is present.
        """

        return trait in self.traits

    def describe(self) -> str:
        """Return a compact human summary of the profile."""

        origin = f"declared type {self.project_type}" if self.project_type else "detected"
        traits = ", ".join(sorted(self.traits)) or "none"
        return f"{origin}; traits: {traits}"


def detect_languages(files: Iterable[PurePath]) -> frozenset[str]:
    """Return the languages implied by file suffixes and well-known names.

    Args:
        files: Candidate files.

    Returns:
        frozenset[str]: Language identifiers.
    """

    languages: set[str] = set()
    for path in files:
        suffix = path.suffix.lower()
        for language, extensions in LANGUAGE_EXTENSIONS.items():
            if suffix in extensions:
                languages.add(language)
        name = path.name.lower()
        for language, names in LANGUAGE_FILENAMES.items():
            if name in names:
                languages.add(language)
    return frozenset(languages)


def profile_scope(files: Iterable[PurePath], project_type: str | None = None) -> Profile:
    """Build a :class:`Profile` for ``files``.

    The function only looks at names and suffixes, never file contents, so
    it is a pure function of its inputs. A declared ``project_type`` skips
    detection and uses the traits registered for that type.

    Args:
        files: Files in the resolved scope.
        project_type: Optional ``project.type`` from configuration.

    Returns:
        Profile: Detected or declared characteristics.
    """

    paths = tuple(files)
    languages = detect_languages(paths)
    if project_type:
        return Profile(
            languages=languages,
            traits=PROJECT_TYPE_TRAITS[project_type],
            project_type=project_type,
        )
    return Profile(languages=languages, traits=_detect_traits(paths, languages))


def _detect_traits(paths: tuple[PurePath, ...], languages: frozenset[str]) -> frozenset[str]:
    traits: set[str] = set()
    if languages - _MARKUP_LANGUAGES:
        traits.add("code")
    if languages & _FRONTEND_LANGUAGES or any(path.suffix.lower() in _FRONTEND_SUFFIXES for path in paths):
        traits.add("frontend")
    if languages & _BACKEND_LANGUAGES:
        traits.add("backend")
    if languages & _INFRA_LANGUAGES:
        traits.add("infrastructure")
    if "markdown" in languages:
        traits.add("docs")
    if "sql" in languages:
        traits.add("database")
    if languages & _API_LANGUAGES:
        traits.add("api")
    for path in paths:
        name = path.name.lower()
        directories = {part.lower() for part in path.parts[:-1]}
        if name in DEPENDENCY_MANIFESTS:
            traits.add("dependencies")
        if any(hint in name for hint in _API_NAME_HINTS) or directories & _API_DIR_HINTS:
            traits.add("api")
        if any(hint in name for hint in _NETWORK_NAME_HINTS):
            traits.add("networking")
        if directories & _DATABASE_DIR_HINTS:
            traits.add("database")
        if directories & _INFRA_DIR_HINTS:
            traits.add("infrastructure")
        if directories & _TEST_DIR_HINTS or _looks_like_test(name):
            traits.add("tests")
    if traits & {"api", "infrastructure"}:
        traits.add("networking")
    return frozenset(traits)


def _looks_like_test(name: str) -> bool:
    stem = name.split(".", 1)[0]
    return stem.startswith("test_") or stem.endswith(("_test", "_spec")) or ".test." in name or ".spec." in name


__all__ = ["Profile", "detect_languages", "profile_scope"]
