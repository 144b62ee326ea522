"""Field-weighted relevance scoring for index records."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from repomap.types import IndexRecord


@dataclass(frozen=True, slots=True)
class ScoreWeights:
    """Points awarded per matching term.

    A term present in both fields earns `keyword + description + both`.
    """

    keyword: int = 4
    description: int = 2
    both: int = 2


class RelevanceScorer:
    """Scores a record against lower-cased query terms by substring match.

    Keywords weigh more than the free-text description. There is no upper
    bound and no normalization: a record that matches nothing scores 0.
    """

    def __init__(
        self,
        weights: ScoreWeights | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.weights = weights or ScoreWeights()
        self._logger = logger

    def score(self, record: IndexRecord, terms: Sequence[str]) -> int:
        keywords = (record.keywords or "").lower()
        description = (record.description or "").lower()

        total = 0
        for term in terms:
            in_keywords = term in keywords
            in_description = term in description
            if in_keywords:
                total += self.weights.keyword
            if in_description:
                total += self.weights.description
            if in_keywords and in_description:
                total += self.weights.both

        if self._logger is not None:
            self._logger.debug("Relevance: %s - %d", record.id, total)
        return total


def score_record(record: IndexRecord, terms: Sequence[str]) -> int:
    """Score with default weights and no trace output."""
    return RelevanceScorer().score(record, terms)
