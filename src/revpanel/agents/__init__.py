# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Agent interface, built-in implementations, and the catalog."""

from __future__ import annotations

from .base import Agent, AgentDescriptor, AgentRequest, AgentResult, always_applicable, requires_any
from .command import CommandAgent
from .patterns import PatternAgent, PatternRule, compile_custom_rules
from .registry import AgentRegistry, default_registry, pattern_factory

__all__ = [
    "Agent",
    "AgentDescriptor",
    "AgentRegistry",
    "AgentRequest",
    "AgentResult",
    "CommandAgent",
    "PatternAgent",
    "PatternRule",
    "always_applicable",
    "compile_custom_rules",
    "default_registry",
    "pattern_factory",
    "requires_any",
]
