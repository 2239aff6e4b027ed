# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Report rendering."""

from __future__ import annotations

from .renderers import (
    ReportFormat,
    finding_to_dict,
    render_json,
    render_markdown,
    render_report,
    render_sarif,
    render_text,
    run_metadata,
)

__all__ = [
    "ReportFormat",
    "finding_to_dict",
    "render_json",
    "render_markdown",
    "render_report",
    "render_sarif",
    "render_text",
    "run_metadata",
]
