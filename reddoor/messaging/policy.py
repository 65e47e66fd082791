"""Content policy predicates for message text.

A policy is any callable ``(text) -> bool`` returning True when the text
must be rejected. Wordlists are owned by moderation, not by this package;
the default only screens obfuscated spellings of minor-related terms.
"""

from __future__ import annotations

import re
from typing import Iterable, Pattern

DEFAULT_DISALLOWED_PATTERN = (
    r"(^|[^a-z0-9])k+[\W_]*[i1!|l]+[\W_]*d+"
    r"(?:[\W_]*(?:s|z|do|dos|dy|die|dies))?(?=$|[^a-z0-9])"
)


class RegexContentPolicy:
    """Rejects text matching a case-insensitive regular expression."""

    def __init__(self, pattern: str | Pattern[str] = DEFAULT_DISALLOWED_PATTERN):
        if isinstance(pattern, str):
            pattern = re.compile(pattern, re.IGNORECASE)
        self.pattern = pattern

    @classmethod
    def from_terms(cls, terms: Iterable[str]) -> "RegexContentPolicy":
        """Build a whole-word policy from plain terms."""
        escaped = [re.escape(t.strip()) for t in terms if t and t.strip()]
        if not escaped:
            raise ValueError("at least one term is required")
        return cls(r"\b(?:" + "|".join(escaped) + r")\b")

    def __call__(self, text: str) -> bool:
        if not text:
            return False
        return self.pattern.search(text) is not None


default_content_policy = RegexContentPolicy()
