"""Candidate retrieval with concurrent catalog sub-queries.

Targeted sub-queries (direct text, per-keyword, category listing) are fanned
out together and joined; a fallback listing of recent public prompts runs
afterwards only when too few unique candidates came back. Each sub-query has
its own timeout and its own error handling, so one failing call never sinks
the others.
"""

import asyncio
import inspect
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from loguru import logger

from .catalog import Catalog
from .config import RetrievalConfig
from .errors import CollaboratorError, SubQueryFailure
from .models import (
    CallerContext, Candidate, CatalogEntry, Intent, RetrievalSource, SubQueryReport
)


@dataclass
class SubQuery:
    """One catalog call to make."""
    label: str
    source: RetrievalSource
    method: str
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RetrievalOutcome:
    candidates: List[Candidate]
    reports: List[SubQueryReport]
    failures: List[SubQueryFailure]

    @property
    def fallback_used(self) -> bool:
        return any(r.source is RetrievalSource.FALLBACK for r in self.reports)


class _CandidatePool:
    """First-seen-wins accumulator keyed by entry identity."""

    def __init__(self):
        self._by_key: Dict[str, Candidate] = {}
        self._ordered: List[Candidate] = []

    def __len__(self) -> int:
        return len(self._ordered)

    def extend(self, entries: Iterable[CatalogEntry], sub_query: SubQuery) -> int:
        added = 0
        for entry in entries:
            key = entry.dedup_key
            if key in self._by_key:
                continue
            candidate = Candidate(
                entry=entry,
                source=sub_query.source,
                label=sub_query.label,
                order=len(self._ordered)
            )
            self._by_key[key] = candidate
            self._ordered.append(candidate)
            added += 1
        return added

    def take(self, limit: int) -> List[Candidate]:
        return self._ordered[:limit]


class CandidateRetriever:
    """Collects a bounded, deduplicated candidate set from the catalog."""

    def __init__(self, catalog: Catalog, config: Optional[RetrievalConfig] = None):
        """
        Initialize retriever.

        Args:
            catalog: Catalog collaborator to query
            config: Fan-out, timeout and size limits
        """
        self.catalog = catalog
        self.config = config or RetrievalConfig()

    def plan(self, query: str, intent: Intent,
             context: Optional[CallerContext] = None) -> List[SubQuery]:
        """Targeted sub-queries for a query, in merge order."""
        plans = []
        normalized = query.strip().lower()

        if normalized:
            plans.append(SubQuery(
                label="direct",
                source=RetrievalSource.DIRECT,
                method="search_by_text",
                args=(query, context)
            ))

        keywords = [k for k in intent.keywords if k != normalized]
        for keyword in keywords[:self.config.keyword_fanout]:
            plans.append(SubQuery(
                label=f"keyword:{keyword}",
                source=RetrievalSource.KEYWORD,
                method="search_by_text",
                args=(keyword, context)
            ))

        category = self.config.domain_categories.get(intent.domain.value)
        if category:
            plans.append(SubQuery(
                label=f"category:{category}",
                source=RetrievalSource.CATEGORY,
                method="list_by_category",
                args=(category,),
                kwargs={'public_only': True}
            ))

        return plans

    def fallback_plan(self) -> SubQuery:
        return SubQuery(
            label="fallback:recent",
            source=RetrievalSource.FALLBACK,
            method="list_recent",
            kwargs={'public_only': True, 'page_size': self.config.fallback_page_size}
        )

    async def retrieve(self, query: str, intent: Intent,
                       context: Optional[CallerContext] = None) -> RetrievalOutcome:
        """
        Run targeted sub-queries concurrently, then the fallback if needed.

        Args:
            query: Raw query text
            intent: Analyzed intent of the query
            context: Caller context passed through to text searches

        Returns:
            Candidates (exact-text hits first, capped) plus per-call reports.
            Never raises for catalog failures.
        """
        pool = _CandidatePool()
        reports: List[SubQueryReport] = []
        failures: List[SubQueryFailure] = []

        plans = self.plan(query, intent, context)
        outcomes = await asyncio.gather(*(self._run(sub_query) for sub_query in plans))

        for sub_query, (report, entries, failure) in zip(plans, outcomes):
            pool.extend(entries, sub_query)
            reports.append(report)
            if failure is not None:
                failures.append(failure)

        if len(pool) < self.config.fallback_floor:
            logger.debug(
                f"Only {len(pool)} unique candidates from targeted retrieval, "
                f"using fallback listing"
            )
            sub_query = self.fallback_plan()
            report, entries, failure = await self._run(sub_query)
            pool.extend(entries, sub_query)
            reports.append(report)
            if failure is not None:
                failures.append(failure)

        candidates = pool.take(self.config.max_candidates)

        if failures and len(failures) == len(reports):
            logger.warning(f"All {len(reports)} catalog sub-queries failed, no candidates")

        logger.debug(
            f"Retrieved {len(candidates)} candidates from {len(reports)} sub-queries "
            f"({len(failures)} failed)"
        )

        return RetrievalOutcome(candidates=candidates, reports=reports, failures=failures)

    async def _run(self, sub_query: SubQuery) -> Tuple[SubQueryReport, List[CatalogEntry],
                                                        Optional[SubQueryFailure]]:
        """Execute one sub-query in isolation; failures become reports."""
        start = time.perf_counter()
        report = SubQueryReport(label=sub_query.label, source=sub_query.source)
        timeout = self.config.sub_query_timeout_s

        try:
            payload = await asyncio.wait_for(self._invoke(sub_query), timeout=timeout)
            entries = coerce_entries(sub_query.label, payload)

        except asyncio.TimeoutError as e:
            error = CollaboratorError(sub_query.label, f"timed out after {timeout}s", e)
            return self._failed(report, error, start, sub_query)

        except asyncio.CancelledError as e:
            # Only a cancellation aimed at this task propagates
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            error = CollaboratorError(sub_query.label, "cancelled by catalog", e)
            return self._failed(report, error, start, sub_query)

        except CollaboratorError as e:
            return self._failed(report, e, start, sub_query)

        except Exception as e:
            error = CollaboratorError(sub_query.label, str(e) or type(e).__name__, e)
            return self._failed(report, error, start, sub_query)

        report.returned = len(entries)
        report.latency_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            f"Sub-query {sub_query.label} returned {len(entries)} entries "
            f"in {report.latency_ms:.1f}ms"
        )
        return report, entries, None

    def _failed(self, report: SubQueryReport, error: CollaboratorError, start: float,
                sub_query: SubQuery) -> Tuple[SubQueryReport, List[CatalogEntry], SubQueryFailure]:
        report.latency_ms = (time.perf_counter() - start) * 1000
        report.error = str(error)
        report.timed_out = error.timed_out
        logger.warning(f"Catalog sub-query failed: {error}")

        context = {
            'method': sub_query.method,
            'args': [a for a in sub_query.args if isinstance(a, str)],
            'kwargs': dict(sub_query.kwargs),
            'timeout_s': self.config.sub_query_timeout_s,
            'latency_ms': round(report.latency_ms, 2)
        }
        return report, [], SubQueryFailure.from_error(error, report.source, context)

    async def _invoke(self, sub_query: SubQuery) -> Any:
        method = getattr(self.catalog, sub_query.method)

        if inspect.iscoroutinefunction(method):
            return await method(*sub_query.args, **sub_query.kwargs)

        # Blocking catalog clients run off the event loop
        result = await asyncio.to_thread(method, *sub_query.args, **sub_query.kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result


def coerce_entries(label: str, payload: Any) -> List[CatalogEntry]:
    """
    Normalize a catalog payload into entries.

    Accepts an iterable of ``CatalogEntry`` or mappings, or a paged mapping
    with a ``data`` list. Unusable records are skipped.

    Raises:
        CollaboratorError: If the payload as a whole is malformed
    """
    if payload is None:
        return []

    if isinstance(payload, Mapping):
        if isinstance(payload.get('data'), list):
            payload = payload['data']
        else:
            raise CollaboratorError(label, "malformed payload: mapping without a 'data' list")

    if isinstance(payload, (str, bytes)) or not isinstance(payload, Iterable):
        raise CollaboratorError(label, f"malformed payload of type {type(payload).__name__}")

    entries = []
    for record in payload:
        if isinstance(record, CatalogEntry):
            entries.append(record)
            continue
        try:
            entries.append(CatalogEntry.from_record(record))
        except (TypeError, ValueError) as e:
            logger.debug(f"Skipping malformed record from {label}: {e}")

    return entries
