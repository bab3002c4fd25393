"""Query-to-ranked-results pipeline.

intent analysis -> candidate retrieval -> relevance scoring -> curation

Only caller misuse (a negative or non-whole ``max_results``, a non-string
query) raises. Catalog failures degrade the result instead; callers always get
a well-formed ``RankResponse``.
"""

import time
from typing import Optional

from loguru import logger

from .catalog import Catalog
from .config import RankingConfig
from .curator import ResultCurator, validate_max_results
from .errors import InputError
from .intent import analyze_intent
from .models import CallerContext, RankResponse
from .monitor import LatencyMonitor
from .retriever import CandidateRetriever
from .scoring import RelevanceScorer


DEFAULT_MAX_RESULTS = 5


class Ranker:
    """Ranks catalog prompts for free-text queries."""

    def __init__(self,
                 catalog: Catalog,
                 config: Optional[RankingConfig] = None,
                 monitor: Optional[LatencyMonitor] = None):
        """
        Initialize ranker.

        Args:
            catalog: Catalog collaborator to retrieve candidates from
            config: Weights, thresholds and retrieval limits
            monitor: Optional caller-owned latency monitor
        """
        self.config = config or RankingConfig()
        self.retriever = CandidateRetriever(catalog, self.config.retrieval)
        self.scorer = RelevanceScorer(
            weights=self.config.weights,
            thresholds=self.config.thresholds,
            preview_length=self.config.preview_length
        )
        self.curator = ResultCurator(self.config.curation)
        self.monitor = monitor

    async def rank(self,
                   query: str,
                   max_results: int = DEFAULT_MAX_RESULTS,
                   context: Optional[CallerContext] = None) -> RankResponse:
        """
        Rank catalog prompts for a query.

        Args:
            query: Free-text description of what the user needs
            max_results: Maximum number of results, clamped to the policy cap
            context: Caller identity passed through to the catalog

        Returns:
            RankResponse with ordered results, the intent, candidate count and
            elapsed time

        Raises:
            InputError: If max_results is negative or not a whole number, or query is
                not a string
        """
        if query is not None and not isinstance(query, str):
            raise InputError(f"query must be a string, got {type(query).__name__}")
        limit = validate_max_results(max_results, self.config.curation)
        query = query or ""

        start = time.perf_counter()

        intent = analyze_intent(query, self.config.retrieval.max_keywords)
        outcome = await self.retriever.retrieve(query, intent, context)
        scored = self.scorer.score(outcome.candidates, query, intent)
        results = self.curator.curate(scored, limit)

        elapsed_ms = int(round((time.perf_counter() - start) * 1000))

        response = RankResponse(
            results=results,
            intent=intent,
            candidate_count=len(outcome.candidates),
            elapsed_ms=elapsed_ms,
            sub_queries=outcome.reports
        )

        logger.info(
            f"Ranked '{query[:50]}{'...' if len(query) > 50 else ''}': "
            f"{len(outcome.candidates)} candidates -> {len(results)} results "
            f"({intent.category.value}/{intent.domain.value}, "
            f"{len(outcome.failures)} failed sub-queries) in {elapsed_ms}ms"
        )

        if self.monitor is not None:
            self.monitor.record(response)

        return response


async def rank(catalog: Catalog,
               query: str,
               max_results: int = DEFAULT_MAX_RESULTS,
               context: Optional[CallerContext] = None,
               config: Optional[RankingConfig] = None) -> RankResponse:
    """One-shot convenience wrapper around ``Ranker.rank``."""
    return await Ranker(catalog, config).rank(query, max_results, context)
