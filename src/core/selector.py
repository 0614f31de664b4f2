"""Ad selection: extraction, scoring, exclusion, and recency ranking (core domain)."""

from __future__ import annotations

import logging
from typing import Any, Collection, Iterable, List, Optional

from core.config import ScoringWeights, SelectionConfig
from core.keywords import extract_keywords
from core.models import AdMatch, CatalogEntry
from core.scoring import DEFAULT_WEIGHTS, matched_keywords, score_entry

LOGGER = logging.getLogger(__name__)


class AdSelector:
    """Ranks catalog entries against free text.

    The catalog is read-only and shared; the selector itself holds no
    per-call state, so repeated calls with the same inputs agree.
    """

    def __init__(
        self,
        catalog: Iterable[CatalogEntry],
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        config: Optional[SelectionConfig] = None,
    ) -> None:
        weights.validate()
        self._catalog = tuple(catalog)
        self._weights = weights
        self._config = config or SelectionConfig()

    @property
    def catalog(self) -> tuple[CatalogEntry, ...]:
        return self._catalog

    def select(
        self,
        text: Any,
        *,
        max_results: int = 1,
        min_score: int = 10,
        exclude_ids: Collection[int] = (),
        recent_ids: Collection[int] = (),
    ) -> List[AdMatch]:
        """Return up to ``max_results`` matches for ``text``, best first.

        Selection logic:
        - Entries in ``exclude_ids`` are never scored.
        - The raw score must reach ``min_score``.
        - Ranking uses the effective score: entries in ``recent_ids`` are
          dampened by the recency penalty but stay eligible. Ties keep
          catalog order.
        """

        if not text or not isinstance(text, str):
            return []

        keywords = extract_keywords(text)
        LOGGER.debug("Ad matching keywords: %s", ", ".join(keywords) or "-")
        if not keywords:
            return []

        excluded = set(exclude_ids)
        recent = set(recent_ids)

        scored: List[tuple[float, CatalogEntry, int]] = []
        for entry in self._catalog:
            if entry.id in excluded:
                continue
            score = score_entry(keywords, entry, self._weights)
            if score < min_score:
                continue
            effective = score * self._config.recency_penalty if entry.id in recent else float(score)
            scored.append((effective, entry, score))

        # sorted() is stable, so equal effective scores keep catalog order.
        scored.sort(key=lambda item: item[0], reverse=True)

        if scored:
            _, best, best_score = scored[0]
            LOGGER.info("Ad selected: %s (%s points)", best.title, best_score)
        else:
            LOGGER.debug("No ads above %s point threshold", min_score)

        return [
            AdMatch(
                entry=entry,
                score=score,
                matched_keywords=tuple(matched_keywords(keywords, entry)),
            )
            for _, entry, score in scored[: max(max_results, 0)]
        ]
