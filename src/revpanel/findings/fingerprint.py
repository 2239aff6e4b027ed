# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Stable identity keys for findings reported by different agents.

Two agents rarely phrase the same issue identically, so the message part of
the fingerprint is a coarse signature rather than the literal text. The
signature strategy is pluggable; :class:`KeywordSignature` is the default.
"""

from __future__ import annotations

import hashlib
import re
from collections.abc import Mapping, Sequence
from typing import Final, Protocol, runtime_checkable

from ..core.models import Location

_TOKEN_PATTERN: Final[re.Pattern[str]] = re.compile(r"[a-z0-9]+")
_FINGERPRINT_LENGTH: Final[int] = 16

# Canonical issue concepts in priority order. Signatures list matched
# concepts in this order, independent of where they appear in the message.
DEFAULT_CONCEPTS: Final[Mapping[str, frozenset[str]]] = {
    "credential": frozenset(
        {"password", "passwd", "secret", "credential", "apikey", "token", "privatekey", "hardcoded"},
    ),
    "injection": frozenset({"injection", "inject", "sqli", "concatenation", "concatenated", "interpolation"}),
    "execution": frozenset({"eval", "exec", "shell", "subprocess", "rce"}),
    "transport": frozenset(
        {"tls", "ssl", "certificate", "cert", "https", "http", "plaintext", "cleartext", "unencrypted"},
    ),
    "authentication": frozenset({"auth", "authentication", "authorization", "unauthenticated", "login"}),
    "cors": frozenset({"cors", "origin"}),
    "exposure": frozenset({"expose", "exposed", "bind", "binds", "listen", "interface", "public"}),
    "validation": frozenset({"validation", "validate", "unvalidated", "sanitize", "untrusted", "input"}),
    "crypto": frozenset({"md5", "sha1", "cipher", "crypto", "random", "entropy"}),
    "timeout": frozenset({"timeout", "deadline", "hang", "retry"}),
    "resource": frozenset({"leak", "unclosed", "pool", "connection", "memory"}),
    "query": frozenset({"query", "sql", "select", "statement", "delete", "drop", "table"}),
    "accessibility": frozenset({"alt", "aria", "label", "tabindex", "focus", "keyboard", "contrast"}),
    "dependency": frozenset({"dependency", "version", "unpinned", "pinned", "lockfile"}),
    "container": frozenset({"container", "image", "dockerfile", "privileged", "root"}),
    "test": frozenset({"test", "skip", "skipped", "focused"}),
    "docs": frozenset({"todo", "fixme", "documentation", "link"}),
    "error": frozenset({"error", "exception", "panic", "crash"}),
}

DEFAULT_STOPWORDS: Final[frozenset[str]] = frozenset(
    {
        "a", "an", "the", "and", "or", "of", "to", "in", "on", "for", "is", "are", "be", "was",
        "this", "that", "with", "without", "from", "by", "at", "as", "it", "its", "into", "not",
        "no", "may", "can", "could", "should", "must", "via", "using", "use", "used", "found",
        "detected", "possible", "potential", "issue", "problem", "here", "line", "file", "code",
    },
)  # fmt: skip


@runtime_checkable
class MessageSignature(Protocol):
    """Strategy reducing a free-text message to a stable signature."""

    def signature(self, category: str, message: str) -> str:
        """Return the signature for ``message`` within ``category``.

        Args:
            category: Finding category.
            message: Free-text message.

        Returns:
            str: Signature; equal signatures mean "same kind of issue".
        """

        raise NotImplementedError


class KeywordSignature:
    """Signature built from canonical concepts, or leading keywords as fallback."""

    def __init__(
        self,
        max_tokens: int = 3,
        *,
        concepts: Mapping[str, frozenset[str]] | None = None,
        stopwords: frozenset[str] | None = None,
    ) -> None:
        """Create the signature strategy.

        Args:
            max_tokens: Maximum number of concepts or fallback tokens kept.
            concepts: Ordered concept table mapping concept to trigger words.
            stopwords: Words ignored by the fallback tokeniser.
        """

        if max_tokens < 1:
            raise ValueError("max_tokens must be positive")
        self._max_tokens = max_tokens
        self._concepts = dict(concepts if concepts is not None else DEFAULT_CONCEPTS)
        self._stopwords = stopwords if stopwords is not None else DEFAULT_STOPWORDS
        self._lookup = {word: concept for concept, words in self._concepts.items() for word in words}
        self._priority = {concept: index for index, concept in enumerate(self._concepts)}

    def signature(self, category: str, message: str) -> str:
        """Return the concept signature for ``message``.

        Args:
            category: Finding category; unused by this strategy because the
                fingerprint already includes it.
            message: Free-text message.

        Returns:
            str: ``+``-joined concepts, or ``~``-prefixed keywords when no
                concept matched.
        """

        tokens = [_stem(token) for token in _TOKEN_PATTERN.findall(message.lower())]
        concepts = {self._lookup[token] for token in tokens if token in self._lookup}
        if concepts:
            ranked = sorted(concepts, key=self._priority.__getitem__)
            return "+".join(ranked[: self._max_tokens])
        keywords = [token for token in tokens if _stable(token) and token not in self._stopwords]
        return "~" + "+".join(keywords[: self._max_tokens])


def _stem(token: str) -> str:
    """Fold simple plurals so ``binds`` and ``bind`` match."""

    if len(token) > 4 and token.endswith("s") and not token.endswith("ss"):
        return token[:-1]
    return token


def _stable(token: str) -> bool:
    return len(token) >= 3 and not any(char.isdigit() for char in token)


class Fingerprinter:
    """Compute fingerprints from category, bucketed location, and signature."""

    def __init__(self, *, line_window: int = 5, signature: MessageSignature | None = None) -> None:
        """Create the fingerprinter.

        Args:
            line_window: Height of the fixed line grid used for bucketing, and
                the distance under which de-duplication links nearby reports.
            signature: Message signature strategy.
        """

        if line_window < 1:
            raise ValueError("line_window must be positive")
        self._line_window = line_window
        self._signature = signature or KeywordSignature()

    @property
    def line_window(self) -> int:
        """Return the line distance under which nearby reports are related."""

        return self._line_window

    def identity(self, category: str, location: Location | None, message: str) -> tuple[str, str, str]:
        """Return the line-independent part of a finding's identity.

        Findings sharing this key are the same issue when their line ranges
        overlap or lie within :attr:`line_window` lines of each other.

        Args:
            category: Finding category.
            location: Normalised location.
            message: Finding message.

        Returns:
            tuple[str, str, str]: ``(category, file, signature)``; the file is
            ``-`` for location-less findings.
        """

        file_key = location.file_path if location is not None else "-"
        return (category.lower(), file_key, self._signature.signature(category, message))

    def bucket(self, location: Location | None) -> str:
        """Return the ``file#bucket`` key for ``location``.

        Args:
            location: Normalised finding location.

        Returns:
            str: Location key; ``-`` for location-less findings.
        """

        if location is None:
            return "-"
        if location.line_start is None:
            return f"{location.file_path}#-"
        return f"{location.file_path}#{(location.line_start - 1) // self._line_window}"

    def fingerprint(self, category: str, location: Location | None, message: str) -> str:
        """Return the fingerprint for one finding.

        Args:
            category: Lowercase finding category.
            location: Normalised location.
            message: Finding message.

        Returns:
            str: 16 hexadecimal characters.
        """

        parts: Sequence[str] = (
            category.lower(),
            self.bucket(location),
            self._signature.signature(category, message),
        )
        digest = hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()
        return digest[:_FINGERPRINT_LENGTH]


__all__ = [
    "DEFAULT_CONCEPTS",
    "DEFAULT_STOPWORDS",
    "Fingerprinter",
    "KeywordSignature",
    "MessageSignature",
]
