"""Term-based search over indexed repository maps."""

from __future__ import annotations

import asyncio
import logging

from repomap.config import SearchConfig
from repomap.retrieval.scorer import RelevanceScorer
from repomap.store.record_store import RecordStore
from repomap.types import IndexRecord, ScoredRecord


class SearchEngine:
    """Retrieves, scores, ranks and de-duplicates records for a query.

    Each whitespace-separated term is looked up independently with a small
    per-term cap, so a file matching several terms can be retrieved more than
    once. Every retrieved copy is scored against the full term list, the
    list is sorted by descending score, and only the first occurrence of each
    record id is kept.

    The per-term cap trades recall for speed: with many equally relevant
    files, some may never reach a term's retrieval slice.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        scorer: RelevanceScorer | None = None,
        config: SearchConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.config = config or SearchConfig()
        self._logger = logger or logging.getLogger(__name__)
        self.scorer = scorer or RelevanceScorer(logger=self._logger)

    def extract_terms(self, query: str) -> list[str]:
        if not query or len(query) > self.config.max_query_length:
            return []
        return [term for term in query.lower().split() if term]

    async def search(self, query: str) -> list[ScoredRecord]:
        """Return ranked, unique records for `query`.

        Over-long, empty and whitespace-only queries yield an empty list
        without touching the store. Store failures propagate to the caller.
        """

        terms = self.extract_terms(query)
        if not terms:
            self._logger.debug("No search terms in query %r", query[:120])
            return []

        self._logger.debug("Searching terms: %s", terms)
        retrieved = await self._retrieve(terms)

        scored = [
            ScoredRecord(record=record, relevance_score=self.scorer.score(record, terms))
            for record in retrieved
        ]
        # sorted() is stable, so ties keep retrieval order.
        ranked = sorted(scored, key=lambda item: item.relevance_score, reverse=True)
        unique = _first_per_id(ranked)

        self._logger.info("Found %d unique results for %d terms", len(unique), len(terms))
        return unique

    async def _retrieve(self, terms: list[str]) -> list[IndexRecord]:
        limit = self.config.per_term_limit
        if self.config.concurrent_lookups:
            outcomes = await asyncio.gather(
                *(self.store.find_matching(term, limit=limit) for term in terms),
                return_exceptions=True,
            )
            # Every lookup has settled here; the first failure in term order wins.
            for outcome in outcomes:
                if isinstance(outcome, BaseException):
                    raise outcome
            batches = list(outcomes)
        else:
            batches = []
            for term in terms:
                batches.append(await self.store.find_matching(term, limit=limit))

        records: list[IndexRecord] = []
        for batch in batches:
            records.extend(batch)
        return records


def _first_per_id(ranked: list[ScoredRecord]) -> list[ScoredRecord]:
    seen: set[str] = set()
    unique: list[ScoredRecord] = []
    for item in ranked:
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    return unique
