# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from revpanel.core.models import Scope, ScopeMode


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Return a small project tree with source, markup, and docs."""

    (tmp_path / "app").mkdir()
    (tmp_path / "app" / "server.go").write_text(
        'package app\n\nfunc main() {\n\thttp.ListenAndServe("0.0.0.0:80", nil)\n}\n',
        encoding="utf-8",
    )
    (tmp_path / "app" / "util.py").write_text("def add(a, b):\n    return a + b\n", encoding="utf-8")
    (tmp_path / "web").mkdir()
    (tmp_path / "web" / "index.html").write_text('<img src="logo.png">\n', encoding="utf-8")
    (tmp_path / "README.md").write_text("# Demo\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def make_scope(tmp_path: Path) -> Callable[..., Scope]:
    """Return a factory building a PATHS scope from root-relative names."""

    def _factory(*names: str, root: Path | None = None) -> Scope:
        base = (root or tmp_path).resolve()
        files = tuple(sorted(base / name for name in names))
        return Scope(mode=ScopeMode.PATHS, root=base, targets=names, files=files)

    return _factory
