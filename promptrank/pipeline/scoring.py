"""Relevance scoring for retrieved candidates.

Five independent sub-scores in [0, 1] are combined with configurable weights:

    relevance = w_exact * exact_match
              + w_keyword * keyword_distribution
              + w_semantic * semantic_overlap
              + w_intent * intent_alignment
              + w_quality * quality

``semantic_overlap`` is plain lexical overlap between query tokens and the
prompt text, not embedding similarity. The weights are heuristics and can be
retuned through ``ScoringWeights``.
"""

import math
from typing import List, Optional, Sequence

from loguru import logger

from .config import MatchThresholds, ScoringWeights
from .intent import keywords_for
from .models import Candidate, CatalogEntry, Intent, ScoreBreakdown, ScoredResult
from .preview import derive_preview


# Field weights for the literal query match
EXACT_FIELD_WEIGHTS = (
    ('name', 0.4),
    ('description', 0.3),
    ('category', 0.2),
    ('tags', 0.1),
)

CATEGORY_HIT_BONUS = 0.5
DOMAIN_HIT_BONUS = 0.3


def _field_text(entry: CatalogEntry, name: str) -> str:
    if name == 'tags':
        return " ".join(entry.tags)
    return getattr(entry, name) or ""


def full_text(entry: CatalogEntry) -> str:
    return f"{entry.name} {entry.description} {entry.category} {' '.join(entry.tags)}".lower()


def title_text(entry: CatalogEntry) -> str:
    return f"{entry.name} {entry.description}".lower()


def exact_match_score(entry: CatalogEntry, query: str) -> float:
    """Weighted presence of the literal query in each text field."""
    needle = query.strip().lower()
    if not needle:
        return 0.0

    score = 0.0
    for field_name, weight in EXACT_FIELD_WEIGHTS:
        if needle in _field_text(entry, field_name).lower():
            score += weight

    # sums of field weights are compared against thresholds, drop float noise
    return min(1.0, round(score, 10))


def keyword_distribution_score(entry: CatalogEntry, keywords: Sequence[str]) -> float:
    if not keywords:
        return 0.0

    text = full_text(entry)
    matched = sum(1 for keyword in keywords if keyword.lower() in text)
    return matched / len(keywords)


def semantic_overlap_score(entry: CatalogEntry, query: str) -> float:
    """Share of query tokens (longer than two chars) found in name/description."""
    tokens = query.lower().split()
    if not tokens:
        return 0.0

    text = title_text(entry)
    matches = sum(1 for token in tokens if len(token) > 2 and token in text)
    return min(1.0, matches / len(tokens))


def intent_alignment_score(entry: CatalogEntry, intent: Intent) -> float:
    text = title_text(entry)

    category_hits = sum(1 for k in keywords_for(intent.category) if k.lower() in text)
    domain_hits = sum(1 for k in keywords_for(intent.domain) if k.lower() in text)

    category_part = min(1.0, category_hits * CATEGORY_HIT_BONUS)
    domain_part = min(1.0, domain_hits * DOMAIN_HIT_BONUS)
    return min(1.0, round(category_part + domain_part, 10))


def quality_score(entry: CatalogEntry) -> float:
    """Completeness of the record: description length and tag richness."""
    score = 0.5

    description = entry.description or ""
    if len(description) > 20:
        score += 0.2
    if len(description) > 50:
        score += 0.1

    if len(entry.tags) > 0:
        score += 0.1
    if len(entry.tags) > 2:
        score += 0.1

    return min(1.0, round(score, 10))


def to_percent(value: float, label: str = "score") -> int:
    """Round half-up to an integer percentage and clamp into [0, 100]."""
    if math.isnan(value):
        logger.warning(f"{label} was NaN, clamping to 0")
        return 0

    percent = math.floor(round(value * 100, 6) + 0.5)
    if percent < 0 or percent > 100:
        logger.warning(f"{label} {percent} out of range, clamping")
        percent = max(0, min(100, percent))
    return percent


class RelevanceScorer:
    """Scores candidates against a query and its intent."""

    def __init__(self,
                 weights: Optional[ScoringWeights] = None,
                 thresholds: Optional[MatchThresholds] = None,
                 preview_length: int = 300):
        self.weights = weights or ScoringWeights()
        self.thresholds = thresholds or MatchThresholds()
        self.preview_length = preview_length

    def breakdown(self, entry: CatalogEntry, query: str, intent: Intent) -> ScoreBreakdown:
        return ScoreBreakdown(
            exact_match=exact_match_score(entry, query),
            keyword_distribution=keyword_distribution_score(entry, intent.keywords),
            semantic_overlap=semantic_overlap_score(entry, query),
            intent_alignment=intent_alignment_score(entry, intent),
            quality=quality_score(entry)
        )

    def composite(self, parts: ScoreBreakdown) -> float:
        w = self.weights
        return (
            parts.exact_match * w.exact_match +
            parts.keyword_distribution * w.keyword_distribution +
            parts.semantic_overlap * w.semantic_overlap +
            parts.intent_alignment * w.intent_alignment +
            parts.quality * w.quality
        )

    def match_reasons(self, parts: ScoreBreakdown, intent: Intent) -> List[str]:
        t = self.thresholds
        reasons = []

        if parts.exact_match > t.exact:
            reasons.append("exact match")
        elif parts.exact_match > t.partial:
            reasons.append("partial match")

        if parts.keyword_distribution > t.keyword:
            reasons.append("keyword match")
        if parts.semantic_overlap > t.semantic:
            reasons.append("semantically related")
        if parts.intent_alignment > t.intent:
            reasons.append(f"{intent.category.value} intent match")

        return reasons or ["basic match"]

    def score_one(self, candidate: Candidate, query: str, intent: Intent) -> ScoredResult:
        entry = candidate.entry
        parts = self.breakdown(entry, query, intent)

        return ScoredResult(
            id=entry.id or entry.name or "",
            name=entry.name,
            description=entry.description,
            category=entry.category,
            tags=list(entry.tags),
            relevance_score=to_percent(self.composite(parts), "relevance"),
            quality_score=to_percent(parts.quality, "quality"),
            match_reasons=self.match_reasons(parts, intent),
            preview=derive_preview(entry, self.preview_length),
            is_public=entry.is_public,
            version=entry.version,
            source=candidate.label,
            breakdown=parts
        )

    def score(self, candidates: Sequence[Candidate], query: str, intent: Intent) -> List[ScoredResult]:
        """
        Score every candidate, preserving input order.

        Args:
            candidates: Retrieved candidates
            query: Raw query text
            intent: Analyzed intent

        Returns:
            One ScoredResult per candidate
        """
        query = query or ""
        results = [self.score_one(c, query, intent) for c in candidates]
        logger.debug(f"Scored {len(results)} candidates")
        return results
