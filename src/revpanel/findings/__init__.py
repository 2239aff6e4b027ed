# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Finding normalisation, fingerprinting, and de-duplication."""

from __future__ import annotations

from .dedup import deduplicate, merge_group
from .fingerprint import Fingerprinter, KeywordSignature, MessageSignature
from .normalizer import FindingNormalizer, NormalizationResult

__all__ = [
    "FindingNormalizer",
    "Fingerprinter",
    "KeywordSignature",
    "MessageSignature",
    "NormalizationResult",
    "deduplicate",
    "merge_group",
]
