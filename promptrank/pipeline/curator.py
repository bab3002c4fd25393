"""Final filtering, deduplication, ordering and truncation of scored results."""

from typing import List, Optional, Sequence

from loguru import logger

from .config import CurationPolicy
from .errors import InputError
from .models import ScoredResult


def name_key(name: str) -> str:
    return (name or "").strip().casefold()


def validate_max_results(max_results: int, policy: Optional[CurationPolicy] = None) -> int:
    """
    Check the caller's requested count and clamp it to the policy cap.

    Whole-number floats such as ``3.0`` are accepted as their int value.

    Raises:
        InputError: If max_results is negative or not a whole number
    """
    policy = policy or CurationPolicy()

    if isinstance(max_results, float) and max_results.is_integer():
        max_results = int(max_results)

    if isinstance(max_results, bool) or not isinstance(max_results, int):
        raise InputError(f"max_results must be a whole number, got {max_results!r}")
    if max_results < 0:
        raise InputError(f"max_results must be non-negative, got {max_results}")

    return min(max_results, policy.max_results_cap)


class ResultCurator:
    """Applies the curation policy: filter, dedup, sort, truncate."""

    def __init__(self, policy: Optional[CurationPolicy] = None):
        self.policy = policy or CurationPolicy()

    def keep(self, result: ScoredResult) -> bool:
        return (
            result.relevance_score >= self.policy.min_relevance and
            bool(result.name and result.name.strip()) and
            bool(result.description and result.description.strip())
        )

    def filter(self, results: Sequence[ScoredResult]) -> List[ScoredResult]:
        return [r for r in results if self.keep(r)]

    def deduplicate(self, results: Sequence[ScoredResult]) -> List[ScoredResult]:
        """Keep the first result for each case-folded, trimmed name."""
        seen = set()
        unique = []
        for result in results:
            key = name_key(result.name)
            if key in seen:
                continue
            seen.add(key)
            unique.append(result)
        return unique

    def compare(self, a: ScoredResult, b: ScoredResult) -> int:
        """
        Three-level banded ordering.

        Relevance descending unless within the relevance band, then quality
        descending unless within the quality band, then name ascending
        ignoring case. Negative means ``a`` goes first.
        """
        if abs(a.relevance_score - b.relevance_score) > self.policy.relevance_band:
            return b.relevance_score - a.relevance_score

        if abs(a.quality_score - b.quality_score) > self.policy.quality_band:
            return b.quality_score - a.quality_score

        a_name, b_name = name_key(a.name), name_key(b.name)
        if a_name < b_name:
            return -1
        if a_name > b_name:
            return 1
        return 0

    def sort(self, results: Sequence[ScoredResult]) -> List[ScoredResult]:
        """
        Stable insertion sort driven by ``compare``.

        The banded comparison is not transitive, so the ordering guarantee is
        pairwise: every adjacent pair in the output satisfies ``compare <= 0``.
        Each item is placed right after the last item it does not precede.
        """
        ordered: List[ScoredResult] = []
        for item in results:
            position = len(ordered)
            while position > 0 and self.compare(ordered[position - 1], item) > 0:
                position -= 1
            ordered.insert(position, item)
        return ordered

    def curate(self, results: Sequence[ScoredResult], max_results: int) -> List[ScoredResult]:
        """
        Filter, deduplicate, sort and truncate.

        Args:
            results: Scored results in arrival order
            max_results: Requested maximum; validated and clamped to the cap

        Returns:
            At most ``max_results`` results in final order
        """
        limit = validate_max_results(max_results, self.policy)
        if limit == 0:
            return []

        filtered = self.filter(results)
        unique = self.deduplicate(filtered)
        ordered = self.sort(unique)

        logger.debug(
            f"Curated {len(results)} results: {len(filtered)} passed filter, "
            f"{len(unique)} unique, returning {min(limit, len(ordered))}"
        )

        return ordered[:limit]


def curate(results: Sequence[ScoredResult], max_results: int,
           policy: Optional[CurationPolicy] = None) -> List[ScoredResult]:
    return ResultCurator(policy).curate(results, max_results)
