"""Relevance scoring between extracted keywords and catalog entries (core domain)."""

from __future__ import annotations

from typing import Any, List

from core.config import ScoringWeights
from core.models import CatalogEntry

DEFAULT_WEIGHTS = ScoringWeights()


def _overlaps(left: str, right: str) -> bool:
    return left in right or right in left


def score_entry(
    keywords: Any,
    entry: CatalogEntry,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> int:
    """Return the additive relevance score of ``entry`` for ``keywords``.

    Scoring, per keyword:
    - exact tag match, plus a small bonus per tag that partially overlaps it;
    - title, summary, and category containment;
    - a brand bonus when the company name and keyword overlap.

    Partial tag overlap is deliberately loose ("art" scores against "smart"),
    so its weight is kept lowest.
    """

    if not isinstance(keywords, (list, tuple)):
        return 0

    tags = [tag.lower() for tag in entry.keywords]
    title = entry.title.lower()
    summary = entry.summary.lower()
    category = entry.category.lower()
    company_name = entry.company.name.lower() if entry.company and entry.company.name else ""

    score = 0
    for raw in keywords:
        if not isinstance(raw, str) or not raw:
            continue
        keyword = raw.lower()

        if keyword in tags:
            score += weights.exact_tag
        for tag in tags:
            if tag != keyword and _overlaps(tag, keyword):
                score += weights.partial_tag

        if keyword in title:
            score += weights.title
        if keyword in summary:
            score += weights.summary
        if category and _overlaps(category, keyword):
            score += weights.category

        if company_name and _overlaps(company_name, keyword):
            score += weights.brand

    return score


def matched_keywords(keywords: Any, entry: CatalogEntry) -> List[str]:
    """Return the keywords that overlap a tag, the title, or the summary of ``entry``."""

    if not isinstance(keywords, (list, tuple)):
        return []

    tags = [tag.lower() for tag in entry.keywords]
    title = entry.title.lower()
    summary = entry.summary.lower()
    hits: List[str] = []
    for keyword in keywords:
        if not isinstance(keyword, str) or not keyword:
            continue
        if (
            any(_overlaps(tag, keyword) for tag in tags)
            or keyword in title
            or keyword in summary
        ):
            hits.append(keyword)
    return hits
