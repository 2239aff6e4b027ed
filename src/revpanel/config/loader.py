# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Config loading utilities with layered precedence and traceability."""

from __future__ import annotations

import tomllib
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.constants import CONFIG_FILENAME
from ..errors import ConfigParseError, describe_validation_error
from .models import EffectiveConfig


class ConfigSource(ABC):
    """Provide one configuration layer as a raw mapping."""

    name: str

    @abstractmethod
    def load(self) -> Mapping[str, Any]:
        """Return the raw configuration fragment for this layer.

        Returns:
            Mapping[str, Any]: Possibly empty fragment keyed by file spelling.
        """

    @abstractmethod
    def describe(self) -> str:
        """Return a human-readable description of the layer.

        Returns:
            str: Description used in provenance output.
        """


class DefaultConfigSource(ConfigSource):
    """Return the built-in defaults as a configuration fragment."""

    name = "defaults"

    def load(self) -> Mapping[str, Any]:
        """Return the default values keyed by file spelling."""

        return EffectiveConfig().to_dict()

    def describe(self) -> str:
        """Return the provenance label shown by ``config show``."""

        return "Built-in defaults"


class TomlConfigSource(ConfigSource):
    """Load the project override file from a TOML document."""

    def __init__(self, path: Path, *, required: bool = False, name: str | None = None) -> None:
        """Create a TOML-backed source.

        Args:
            path: Location of the TOML document.
            required: When ``True`` a missing file is an error instead of an
                empty layer.
            name: Optional provenance label; defaults to the path.
        """

        self._path = path
        self._required = required
        self.name = name or str(path)

    def load(self) -> Mapping[str, Any]:
        """Return the parsed document, or an empty layer when an optional file is absent.

        Returns:
            Mapping[str, Any]: Parsed TOML data.

        Raises:
            ConfigParseError: If the file is required but missing, unreadable,
                or not valid TOML.
        """

        if not self._path.exists():
            if self._required:
                raise ConfigParseError(f"configuration file not found: {self._path}")
            return {}
        try:
            with self._path.open("rb") as handle:
                data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigParseError(f"{self._path}: invalid TOML: {exc}") from exc
        except OSError as exc:
            raise ConfigParseError(f"{self._path}: unreadable configuration: {exc}") from exc
        return data

    def describe(self) -> str:
        """Return the provenance label shown by ``config show``."""

        return f"TOML configuration at {self.name}"


class MappingConfigSource(ConfigSource):
    """Expose an in-memory mapping, typically built from CLI flags."""

    def __init__(self, data: Mapping[str, Any], *, name: str = "cli") -> None:
        """Wrap ``data`` as a configuration layer.

        Args:
            data: Fragment keyed by file spelling.
            name: Provenance label.
        """

        self._data = dict(data)
        self.name = name

    def load(self) -> Mapping[str, Any]:
        """Return the wrapped mapping."""

        return self._data

    def describe(self) -> str:
        """Return the provenance label shown by ``config show``."""

        return f"Overrides from {self.name}"


class FieldUpdate(BaseModel):
    """Description of a single configuration field mutation."""

    model_config = ConfigDict(frozen=True)

    field: str
    source: str
    value: Any


class ConfigLoadResult(BaseModel):
    """Container bundling a resolved config with provenance metadata."""

    model_config = ConfigDict(frozen=True)

    config: EffectiveConfig
    updates: tuple[FieldUpdate, ...] = Field(default_factory=tuple)

    def provenance(self) -> dict[str, str]:
        """Return the source that last set each dotted field.

        Returns:
            dict[str, str]: Mapping from dotted field to source name.
        """

        return {update.field: update.source for update in self.updates}


class ConfigLoader:
    """Apply layered configuration sources with predictable precedence."""

    def __init__(self, *, project_root: Path, sources: Sequence[ConfigSource]) -> None:
        """Initialise a loader that merges the supplied configuration sources.

        Args:
            project_root: Directory that anchors relative paths.
            sources: Ordered sources, lowest precedence first.
        """

        if not sources:
            raise ValueError("at least one configuration source is required")
        self._sources = list(sources)
        self._project_root = project_root.resolve()

    @classmethod
    def for_root(
        cls,
        project_root: Path,
        *,
        config_path: Path | None = None,
        overrides: Mapping[str, Any] | None = None,
    ) -> ConfigLoader:
        """Build a loader for defaults, the project file, and CLI overrides.

        Args:
            project_root: Workspace root used to discover the project file.
            config_path: Explicit override file; must exist when supplied.
            overrides: Fragment built from CLI flags.

        Returns:
            ConfigLoader: Loader configured with default precedence ordering.
        """

        root = project_root.resolve()
        if config_path is not None:
            candidate = config_path if config_path.is_absolute() else root / config_path
            project_source = TomlConfigSource(candidate, required=True)
        else:
            project_source = TomlConfigSource(root / CONFIG_FILENAME)
        sources: list[ConfigSource] = [DefaultConfigSource(), project_source]
        if overrides:
            sources.append(MappingConfigSource(overrides))
        return cls(project_root=root, sources=sources)

    @property
    def project_root(self) -> Path:
        """Return the resolved project root."""

        return self._project_root

    def load(self) -> EffectiveConfig:
        """Return the resolved configuration without provenance metadata.

        Returns:
            EffectiveConfig: Fully merged configuration model.
        """

        return self.load_with_trace().config

    def load_with_trace(self) -> ConfigLoadResult:
        """Return the resolved configuration with trace metadata.

        Returns:
            ConfigLoadResult: Resolved configuration and provenance details.

        Raises:
            ConfigParseError: If any layer is malformed or the merged document
                fails validation.
        """

        merged: dict[str, Any] = {}
        updates: list[FieldUpdate] = []
        for source in self._sources:
            fragment = source.load()
            if not fragment:
                continue
            if not isinstance(fragment, Mapping):
                raise ConfigParseError(f"{source.describe()} must be a table")
            merged = _deep_merge(merged, fragment)
            updates.extend(
                FieldUpdate(field=field, source=source.name, value=value) for field, value in _flatten(fragment)
            )
        try:
            config = EffectiveConfig.model_validate(merged)
        except ValidationError as exc:
            raise ConfigParseError("invalid configuration: " + describe_validation_error(exc)) from exc
        return ConfigLoadResult(config=config, updates=tuple(updates))


def load_config(
    project_root: Path,
    *,
    config_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> EffectiveConfig:
    """Load the effective configuration for ``project_root``.

    Args:
        project_root: Project root directory.
        config_path: Optional explicit override file.
        overrides: Optional fragment built from CLI flags.

    Returns:
        EffectiveConfig: Merged configuration.
    """

    return ConfigLoader.for_root(project_root, config_path=config_path, overrides=overrides).load()


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` merged in; nested mappings merge per key."""

    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _flatten(fragment: Mapping[str, Any], prefix: str = "") -> Iterator[tuple[str, Any]]:
    """Yield ``(dotted.key, value)`` pairs for every leaf of ``fragment``."""

    for key, value in fragment.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping) and value:
            yield from _flatten(value, dotted)
        else:
            yield dotted, value


__all__ = [
    "ConfigLoadResult",
    "ConfigLoader",
    "ConfigSource",
    "DefaultConfigSource",
    "FieldUpdate",
    "MappingConfigSource",
    "TomlConfigSource",
    "load_config",
]
