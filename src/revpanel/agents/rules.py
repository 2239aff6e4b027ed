# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Built-in pattern rules for each review domain."""

from __future__ import annotations

import re
from typing import Final

from ..core.severity import Severity
from .patterns import PatternRule, rule

_I = re.IGNORECASE

SECURITY_RULES: Final[tuple[PatternRule, ...]] = (
    rule(
        "SEC001",
        r"\b(password|passwd|secret|api[_-]?key|access[_-]?token)\b\s*[:=]\s*[\"'][^\"']{4,}[\"']",
        Severity.HIGH,
        "Hardcoded credential assigned in source",
        "Load secrets from the environment or a secret manager.",
        flags=_I,
    ),
    rule(
        "SEC002",
        r"-----BEGIN (RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----",
        Severity.CRITICAL,
        "Private key material committed to the repository",
        "Remove the key, rotate it, and purge it from history.",
    ),
    rule(
        "SEC003",
        r"(?<![\w.])eval\s*\(",
        Severity.HIGH,
        "Dynamic code execution through eval",
        "Parse the input explicitly instead of evaluating it.",
    ),
    rule(
        "SEC004",
        r"shell\s*=\s*True",
        Severity.MEDIUM,
        "Command executed through a shell",
        "Pass an argument list and keep shell=False.",
    ),
    rule(
        "SEC005",
        r"(execute|query)\s*\(\s*[f]?[\"'].*\b(select|insert|update|delete)\b.*[\"']\s*(\+|%|\.format)",
        Severity.HIGH,
        "SQL query built by string concatenation allows injection",
        "Use parameterised queries.",
        flags=_I,
    ),
)

NETWORKING_RULES: Final[tuple[PatternRule, ...]] = (
    rule(
        "NET001",
        r"(verify\s*=\s*False|InsecureSkipVerify\s*:\s*true|rejectUnauthorized\s*:\s*false)",
        Severity.HIGH,
        "TLS certificate verification disabled",
        "Keep certificate verification on and trust the correct CA bundle.",
        flags=_I,
    ),
    rule(
        "NET002",
        r"http://(?!localhost\b|127\.0\.0\.1\b|0\.0\.0\.0\b)[\w.-]+",
        Severity.MEDIUM,
        "Unencrypted HTTP endpoint",
        "Use HTTPS for remote endpoints.",
    ),
    rule(
        "NET003",
        r"[\"']0\.0\.0\.0[\"':]",
        Severity.LOW,
        "Service binds to every network interface",
        "Bind to a specific interface unless public exposure is intended.",
    ),
)

ACCESSIBILITY_RULES: Final[tuple[PatternRule, ...]] = (
    rule(
        "A11Y001",
        r"<img\b(?![^>]*\balt\s*=)[^>]*>",
        Severity.MEDIUM,
        "Image without alternative text",
        "Add an alt attribute describing the image, or alt=\"\" if decorative.",
        globs=("*.html", "*.htm", "*.jsx", "*.tsx", "*.vue", "*.svelte"),
        flags=_I,
    ),
    rule(
        "A11Y002",
        r"<(div|span)\b[^>]*\bon[Cc]lick\s*=",
        Severity.LOW,
        "Click handler on a non-interactive element",
        "Use a button or add a role and keyboard handler.",
        globs=("*.html", "*.htm", "*.jsx", "*.tsx", "*.vue", "*.svelte"),
    ),
    rule(
        "A11Y003",
        r"tabindex\s*=\s*[\"'{]?[1-9]",
        Severity.LOW,
        "Positive tabindex overrides the natural focus order",
        "Use tabindex=0 or -1 and order the DOM instead.",
        flags=_I,
    ),
)

PERFORMANCE_RULES: Final[tuple[PatternRule, ...]] = (
    rule(
        "PERF001",
        r"\b(time\.sleep|Thread\.sleep)\s*\(",
        Severity.LOW,
        "Blocking sleep call",
        "Prefer event-driven waits or scheduling over fixed sleeps.",
    ),
    rule(
        "PERF002",
        r"\.readlines\s*\(\s*\)",
        Severity.LOW,
        "Whole file loaded into memory",
        "Iterate over the file object line by line.",
    ),
)

DATABASE_RULES: Final[tuple[PatternRule, ...]] = (
    rule(
        "DB001",
        r"\bselect\s+\*\s+from\b",
        Severity.LOW,
        "Query selects every column",
        "List the columns the caller needs.",
        flags=_I,
    ),
    rule(
        "DB002",
        r"\bdrop\s+table\b",
        Severity.HIGH,
        "Destructive DROP TABLE statement",
        "Guard destructive migrations and confirm a backup exists.",
        flags=_I,
    ),
    rule(
        "DB003",
        r"\bdelete\s+from\s+[\w.\"`]+\s*;",
        Severity.HIGH,
        "DELETE statement without a WHERE clause",
        "Add a WHERE clause or use TRUNCATE deliberately.",
        flags=_I,
    ),
)

API_RULES: Final[tuple[PatternRule, ...]] = (
    rule(
        "API001",
        r"access-control-allow-origin[\"']?\s*[:,=]\s*[\"']\*",
        Severity.MEDIUM,
        "CORS policy allows any origin",
        "Restrict allowed origins to known clients.",
        flags=_I,
    ),
    rule(
        "API002",
        r"\bdebug\s*[:=]\s*(true|True)\b",
        Severity.MEDIUM,
        "Debug mode enabled",
        "Disable debug mode outside local development.",
    ),
)

INFRASTRUCTURE_RULES: Final[tuple[PatternRule, ...]] = (
    rule(
        "INFRA001",
        r"^\s*FROM\s+\S+:latest\b",
        Severity.MEDIUM,
        "Container base image pinned to latest",
        "Pin the base image to a version or digest.",
        globs=("Dockerfile", "Dockerfile.*", "*.dockerfile"),
        flags=_I,
    ),
    rule(
        "INFRA002",
        r"^\s*USER\s+root\b",
        Severity.MEDIUM,
        "Container runs as root",
        "Switch to an unprivileged user.",
        globs=("Dockerfile", "Dockerfile.*", "*.dockerfile"),
        flags=_I,
    ),
    rule(
        "INFRA003",
        r"0\.0\.0\.0/0",
        Severity.HIGH,
        "Network rule open to the whole internet",
        "Limit ingress to the required CIDR ranges.",
        globs=("*.tf", "*.tfvars", "*.yml", "*.yaml", "*.json"),
    ),
    rule(
        "INFRA004",
        r"privileged\s*:\s*true",
        Severity.HIGH,
        "Privileged container",
        "Drop privileged mode and grant only required capabilities.",
        globs=("*.yml", "*.yaml"),
    ),
)

TESTING_RULES: Final[tuple[PatternRule, ...]] = (
    rule(
        "TEST001",
        r"(\b(fit|fdescribe)\s*\(|\b(it|describe|test)\.only\s*\()",
        Severity.MEDIUM,
        "Focused test silently excludes the rest of the suite",
        "Remove the focus modifier before merging.",
    ),
    rule(
        "TEST002",
        r"(@pytest\.mark\.skip\b|\b(it|describe|test)\.skip\s*\(|\bxit\s*\(|\bt\.Skip\()",
        Severity.LOW,
        "Skipped test",
        "Fix or delete the test instead of skipping it.",
    ),
)

DOCUMENTATION_RULES: Final[tuple[PatternRule, ...]] = (
    rule(
        "DOC001",
        r"\b(TODO|FIXME|XXX)\b",
        Severity.INFO,
        "Unresolved TODO marker",
        "Resolve the note or track it in the issue tracker.",
    ),
    rule(
        "DOC002",
        r"\[[^\]]+\]\(\s*\)",
        Severity.LOW,
        "Markdown link without a target",
        "Point the link at its destination.",
        globs=("*.md", "*.mdx"),
    ),
)

DEPENDENCY_RULES: Final[tuple[PatternRule, ...]] = (
    rule(
        "DEP001",
        r"\"[^\"]+\"\s*:\s*\"(\*|latest)\"",
        Severity.MEDIUM,
        "Dependency version is unpinned",
        "Pin a version range and commit the lockfile.",
        globs=("package.json", "composer.json"),
    ),
    rule(
        "DEP002",
        r"^\s*[A-Za-z0-9][A-Za-z0-9_.\-]*(\[[^\]]*\])?\s*$",
        Severity.LOW,
        "Requirement without a version constraint",
        "Add a version specifier.",
        globs=("requirements*.txt",),
    ),
    rule(
        "DEP003",
        r"git\+(https?|ssh)://",
        Severity.LOW,
        "Dependency installed straight from version control",
        "Depend on a published release.",
    ),
)

__all__ = [
    "ACCESSIBILITY_RULES",
    "API_RULES",
    "DATABASE_RULES",
    "DEPENDENCY_RULES",
    "DOCUMENTATION_RULES",
    "INFRASTRUCTURE_RULES",
    "NETWORKING_RULES",
    "PERFORMANCE_RULES",
    "SECURITY_RULES",
    "TESTING_RULES",
]
