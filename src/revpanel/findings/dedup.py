# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Merge findings that describe the same issue.

Findings are linked when they share a fingerprint, or when they share a
category, file and message signature and their line ranges overlap or lie
within the fingerprinter's line window. Merged groups are the connected
components of that relation, and every merge rule is a set operation or an
order-independent choice, so the result does not depend on the order in
which agents finished.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from typing import Final

from ..core.models import Finding, Location
from ..core.severity import max_severity
from .fingerprint import Fingerprinter

EVIDENCE_SEPARATOR: Final[str] = "\n"


class _Components:
    """Union-find over finding indexes."""

    def __init__(self, size: int) -> None:
        self._parent = list(range(size))

    def find(self, index: int) -> int:
        """Return the representative of ``index``'s component."""

        while self._parent[index] != index:
            self._parent[index] = self._parent[self._parent[index]]
            index = self._parent[index]
        return index

    def union(self, left: int, right: int) -> None:
        """Join the components holding ``left`` and ``right``."""

        left_root, right_root = self.find(left), self.find(right)
        if left_root != right_root:
            self._parent[max(left_root, right_root)] = min(left_root, right_root)


def deduplicate(findings: Iterable[Finding], fingerprinter: Fingerprinter | None = None) -> tuple[Finding, ...]:
    """Collapse findings that describe the same issue.

    Args:
        findings: Normalised findings from every agent.
        fingerprinter: Strategy providing identity keys and the line window;
            must match the one that computed the fingerprints.

    Returns:
        tuple[Finding, ...]: One finding per group, ordered by fingerprint.
    """

    items = list(findings)
    active = fingerprinter or Fingerprinter()
    components = _Components(len(items))
    by_fingerprint: dict[str, list[int]] = defaultdict(list)
    by_identity: dict[tuple[str, str, str], list[int]] = defaultdict(list)
    for index, finding in enumerate(items):
        by_fingerprint[finding.fingerprint].append(index)
        by_identity[active.identity(finding.category, finding.location, finding.message)].append(index)
    for members in by_fingerprint.values():
        for index in members[1:]:
            components.union(members[0], index)
    for members in by_identity.values():
        _link_nearby(items, members, active.line_window, components)
    groups: dict[int, list[Finding]] = defaultdict(list)
    for index, finding in enumerate(items):
        groups[components.find(index)].append(finding)
    merged = [merge_group(group) for group in groups.values()]
    return tuple(sorted(merged, key=lambda finding: finding.fingerprint))


def _link_nearby(items: Sequence[Finding], members: Sequence[int], window: int, components: _Components) -> None:
    """Union findings of one identity whose line ranges are within ``window``.

    Findings without a line are linked to each other; the rest are swept in
    line order, which finds the same components for any input order.
    """

    spans: list[tuple[int, int, int]] = []
    lineless: list[int] = []
    for index in members:
        location = items[index].location
        if location is None or location.line_start is None:
            lineless.append(index)
            continue
        end = location.line_end if location.line_end is not None else location.line_start
        spans.append((location.line_start, max(end, location.line_start), index))
    for index in lineless[1:]:
        components.union(lineless[0], index)
    spans.sort()
    reach: int | None = None
    anchor = -1
    for start, end, index in spans:
        if reach is not None and start - reach < window:
            components.union(anchor, index)
            reach = max(reach, end)
        else:
            anchor, reach = index, end


def merge_group(group: Sequence[Finding]) -> Finding:
    """Merge findings that describe the same issue.

    Severity is the maximum of the group; agents and rule references are
    unions; message and recommendation keep the most detailed entry; distinct
    evidence is kept in sorted order; line ranges are widened to cover every
    report. The group's fingerprint is the smallest member fingerprint.

    Args:
        group: Findings describing one issue.

    Returns:
        Finding: Merged finding.

    Raises:
        ValueError: If ``group`` is empty.
    """

    if not group:
        raise ValueError("merge_group() requires at least one finding")
    if len(group) == 1:
        return group[0]
    evidence = sorted({finding.evidence for finding in group if finding.evidence})
    return Finding(
        severity=max_severity(*(finding.severity for finding in group)),
        category=min(finding.category for finding in group),
        location=_merge_locations([finding.location for finding in group]),
        message=_richest(finding.message for finding in group) or group[0].message,
        evidence=EVIDENCE_SEPARATOR.join(evidence) or None,
        recommendation=_richest(finding.recommendation for finding in group),
        rule_refs=tuple(ref for finding in group for ref in finding.rule_refs),
        source_agent_ids=tuple(agent for finding in group for agent in finding.source_agent_ids),
        fingerprint=min(finding.fingerprint for finding in group),
    )


def _richest(values: Iterable[str | None]) -> str | None:
    """Return the longest value, breaking ties lexicographically."""

    present = [value for value in values if value]
    if not present:
        return None
    return max(present, key=lambda value: (len(value), value))


def _merge_locations(locations: Sequence[Location | None]) -> Location | None:
    """Return the smallest file path with a line range covering every report."""

    located = [location for location in locations if location is not None]
    if not located:
        return None
    file_path = min(location.file_path for location in located)
    starts = [location.line_start for location in located if location.line_start is not None]
    ends = [location.line_end for location in located if location.line_end is not None]
    return Location(
        file_path=file_path,
        line_start=min(starts) if starts else None,
        line_end=max(ends) if ends else None,
    )


__all__ = ["EVIDENCE_SEPARATOR", "deduplicate", "merge_group"]
