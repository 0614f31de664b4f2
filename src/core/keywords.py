"""Keyword extraction (core domain)."""

from __future__ import annotations

import re
from typing import Any, List

# Function words that carry no intent signal for ad matching.
STOP_WORDS = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "has", "he",
        "in", "is", "it", "its", "of", "on", "that", "the", "to", "was", "will",
        "with", "you", "your", "this", "they", "them", "we", "me", "my", "our",
        "can", "could", "should", "would", "have", "had", "do", "does", "did",
        "what", "when", "where", "why", "how", "who", "which", "i", "am", "like",
        "get", "got", "make", "made", "take", "taken", "go", "went", "come", "came",
    }
)

MIN_KEYWORD_LENGTH = 3

_PUNCTUATION = re.compile(r"[^\w\s]")


def extract_keywords(text: Any) -> List[str]:
    """Return the significant lowercase tokens of ``text`` in first-seen order.

    Tokens shorter than three characters, stop words, and pure numbers are
    dropped. Anything that is not a non-empty string yields an empty list.
    """

    if not text or not isinstance(text, str):
        return []

    keywords: List[str] = []
    seen: set[str] = set()
    for word in _PUNCTUATION.sub(" ", text.lower()).split():
        if len(word) < MIN_KEYWORD_LENGTH or word in STOP_WORDS or word.isdigit():
            continue
        if word in seen:
            continue
        seen.add(word)
        keywords.append(word)
    return keywords
