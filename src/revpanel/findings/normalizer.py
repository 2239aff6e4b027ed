# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Validate raw agent output into canonical, fingerprinted findings."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from pydantic import ValidationError

from ..core.models import Finding, Location, RawFinding, RejectedFinding
from ..errors import SchemaValidationError, describe_validation_error
from .fingerprint import Fingerprinter

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class NormalizationResult:
    """Findings accepted from one agent plus the entries that were dropped."""

    findings: list[Finding] = field(default_factory=list)
    rejected: list[RejectedFinding] = field(default_factory=list)


class FindingNormalizer:
    """Coerce agent payloads into :class:`Finding` objects one entry at a time."""

    def __init__(self, root: Path, fingerprinter: Fingerprinter) -> None:
        """Create the normaliser.

        Args:
            root: Project root used to relativise absolute paths.
            fingerprinter: Strategy computing finding identity keys.
        """

        self._root = root.resolve()
        self._fingerprinter = fingerprinter

    def normalize(self, agent_id: str, raw_items: Iterable[Any]) -> NormalizationResult:
        """Validate every entry emitted by ``agent_id``.

        An invalid entry is logged and recorded as a :class:`RejectedFinding`;
        the agent's remaining entries are still processed.

        Args:
            agent_id: Agent that produced ``raw_items``.
            raw_items: Raw findings (mappings or :class:`RawFinding`).

        Returns:
            NormalizationResult: Accepted findings in input order plus rejections.
        """

        result = NormalizationResult()
        for index, item in enumerate(raw_items):
            try:
                result.findings.append(self.normalize_one(agent_id, item))
            except SchemaValidationError as exc:
                LOGGER.warning("dropped finding #%d from %s: %s", index, agent_id, exc)
                result.rejected.append(RejectedFinding(agent_id=agent_id, index=index, reason=str(exc)))
        return result

    def normalize_one(self, agent_id: str, item: Any) -> Finding:
        """Return the canonical finding for one raw entry.

        Args:
            agent_id: Reporting agent.
            item: Raw finding payload.

        Returns:
            Finding: Fingerprinted finding attributed to ``agent_id``.

        Raises:
            SchemaValidationError: If ``item`` does not satisfy the schema.
        """

        raw = self._validate(item)
        location = self._normalize_location(raw.location)
        return Finding(
            severity=raw.severity,
            category=raw.category,
            location=location,
            message=raw.message,
            evidence=raw.evidence,
            recommendation=raw.recommendation,
            rule_refs=(raw.rule_ref,) if raw.rule_ref else (),
            source_agent_ids=(agent_id,),
            fingerprint=self._fingerprinter.fingerprint(raw.category, location, raw.message),
        )

    @staticmethod
    def _validate(item: Any) -> RawFinding:
        """Return ``item`` as a :class:`RawFinding` or raise :class:`SchemaValidationError`."""

        if isinstance(item, RawFinding):
            return item
        if not isinstance(item, Mapping):
            raise SchemaValidationError(f"expected an object, got {type(item).__name__}")
        try:
            return RawFinding.model_validate(dict(item))
        except ValidationError as exc:
            raise SchemaValidationError(describe_validation_error(exc)) from exc

    def _normalize_location(self, location: Location | None) -> Location | None:
        """Return ``location`` with a root-relative POSIX file path."""

        if location is None:
            return None
        normalized = _normalize_path(location.file_path, self._root)
        if normalized == location.file_path:
            return location
        return location.model_copy(update={"file_path": normalized})


def _normalize_path(raw: str, root: Path) -> str:
    """Return ``raw`` as a root-relative POSIX path when possible."""

    text = raw.replace("\\", "/")
    candidate = Path(text)
    if candidate.is_absolute():
        try:
            return candidate.resolve().relative_to(root).as_posix()
        except ValueError:
            return candidate.as_posix()
    # PurePosixPath collapses ``./`` segments and duplicate separators.
    return PurePosixPath(text).as_posix()


__all__ = ["FindingNormalizer", "NormalizationResult"]
