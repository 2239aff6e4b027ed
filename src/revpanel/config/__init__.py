# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models and layered loading."""

from __future__ import annotations

from .loader import (
    ConfigLoader,
    ConfigLoadResult,
    DefaultConfigSource,
    FieldUpdate,
    MappingConfigSource,
    TomlConfigSource,
    load_config,
)
from .models import (
    AgentSettings,
    AgentsConfig,
    DedupeConfig,
    EffectiveConfig,
    ExecutionConfig,
    ProjectConfig,
    ReviewConfig,
    ScopeConfig,
)

__all__ = [
    "AgentSettings",
    "AgentsConfig",
    "ConfigLoadResult",
    "ConfigLoader",
    "DedupeConfig",
    "DefaultConfigSource",
    "EffectiveConfig",
    "ExecutionConfig",
    "FieldUpdate",
    "MappingConfigSource",
    "ProjectConfig",
    "ReviewConfig",
    "ScopeConfig",
    "TomlConfigSource",
    "load_config",
]
