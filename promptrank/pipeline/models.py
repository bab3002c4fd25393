"""Data models for the ranking pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class IntentCategory(Enum):
    """What the user wants to do with a prompt."""
    CREATE = "create"
    ANALYZE = "analyze"
    OPTIMIZE = "optimize"
    TRANSLATE = "translate"
    EXPLAIN = "explain"
    PLAN = "plan"
    OTHER = "other"


class IntentDomain(Enum):
    """Subject area the query is about."""
    BUSINESS = "business"
    TECHNICAL = "technical"
    CREATIVE = "creative"
    ACADEMIC = "academic"
    COMMUNICATION = "communication"
    LEGAL = "legal"
    GENERAL = "general"


class Tone(Enum):
    FORMAL = "formal"
    CASUAL = "casual"
    CREATIVE = "creative"
    TECHNICAL = "technical"
    CONCISE = "concise"
    DETAILED = "detailed"


class Urgency(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RetrievalSource(Enum):
    """Catalog sub-query that surfaced a candidate."""
    DIRECT = "direct"
    KEYWORD = "keyword"
    CATEGORY = "category"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class CallerContext:
    """Who is asking. Passed through to the catalog untouched."""
    user_id: Optional[str] = None
    request_id: Optional[str] = None


@dataclass(frozen=True)
class Intent:
    """Structured interpretation of a free-text query.

    ``confidence`` is a heuristic scalar derived from hit counts, not a
    calibrated probability.
    """
    category: IntentCategory
    domain: IntentDomain
    tone: Tone
    urgency: Urgency
    keywords: Tuple[str, ...]
    confidence: float
    category_hits: int = 0
    domain_hits: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category': self.category.value,
            'domain': self.domain.value,
            'tone': self.tone.value,
            'urgency': self.urgency.value,
            'keywords': list(self.keywords),
            'confidence': self.confidence
        }


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class CatalogEntry:
    """A prompt record as served by the catalog. Read-only."""
    name: str
    description: str = ""
    category: str = ""
    tags: Tuple[str, ...] = ()
    id: Optional[str] = None
    is_public: bool = False
    quality_hints: Mapping[str, Any] = field(default_factory=dict)
    content: Optional[Any] = None  # str or list of message mappings
    version: int = 1
    user_id: Optional[str] = None

    @property
    def dedup_key(self) -> str:
        """Identifier, or the normalized name when the record has none."""
        if self.id:
            return f"id:{self.id}"
        return f"name:{self.name.strip().casefold()}"

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CatalogEntry":
        """Build an entry from a loosely-typed catalog record.

        Raises:
            TypeError: If ``record`` is not a mapping
        """
        if not isinstance(record, Mapping):
            raise TypeError(f"Catalog record must be a mapping, got {type(record).__name__}")

        raw_tags = record.get('tags') or ()
        if isinstance(raw_tags, str):
            raw_tags = [raw_tags]
        tags = tuple(_text(t) for t in raw_tags if t)

        is_public = record.get('is_public')
        if is_public is None:
            is_public = record.get('isPublic', False)

        raw_id = record.get('id')
        version = record.get('version')

        return cls(
            id=_text(raw_id) if raw_id not in (None, "") else None,
            name=_text(record.get('name')),
            description=_text(record.get('description')),
            category=_text(record.get('category')),
            tags=tags,
            is_public=bool(is_public),
            quality_hints=dict(record.get('quality_hints') or {}),
            content=record.get('content', record.get('messages')),
            version=int(version) if isinstance(version, int) else 1,
            user_id=record.get('user_id')
        )


@dataclass(frozen=True)
class Candidate:
    """A catalog entry collected during retrieval, not yet scored."""
    entry: CatalogEntry
    source: RetrievalSource
    label: str
    order: int


@dataclass(frozen=True)
class ScoreBreakdown:
    """Raw sub-scores in [0, 1] that make up the composite relevance."""
    exact_match: float
    keyword_distribution: float
    semantic_overlap: float
    intent_alignment: float
    quality: float

    def to_dict(self) -> Dict[str, float]:
        return {
            'exactMatch': self.exact_match,
            'keywordDistribution': self.keyword_distribution,
            'semanticOverlap': self.semantic_overlap,
            'intentAlignment': self.intent_alignment,
            'quality': self.quality
        }


@dataclass
class ScoredResult:
    """A candidate with its relevance and quality scores."""
    id: str
    name: str
    description: str
    category: str
    tags: List[str]
    relevance_score: int
    quality_score: int
    match_reasons: List[str]
    preview: str
    is_public: bool = False
    version: int = 1
    source: Optional[str] = None
    breakdown: Optional[ScoreBreakdown] = None

    @property
    def match_reason(self) -> str:
        return " • ".join(self.match_reasons)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'tags': list(self.tags),
            'relevanceScore': self.relevance_score,
            'qualityScore': self.quality_score,
            'matchReasons': list(self.match_reasons),
            'matchReason': self.match_reason,
            'preview': self.preview,
            'isPublic': self.is_public,
            'version': self.version,
            'source': self.source
        }
        if self.breakdown is not None:
            data['breakdown'] = self.breakdown.to_dict()
        return data


@dataclass
class SubQueryReport:
    """Outcome of one catalog sub-query."""
    label: str
    source: RetrievalSource
    returned: int = 0
    latency_ms: float = 0.0
    error: Optional[str] = None
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'source': self.source.value,
            'returned': self.returned,
            'latency_ms': round(self.latency_ms, 2),
            'error': self.error,
            'timed_out': self.timed_out
        }


@dataclass
class RankResponse:
    """Everything ``rank()`` hands back to its caller."""
    results: List[ScoredResult]
    intent: Intent
    candidate_count: int
    elapsed_ms: int
    sub_queries: List[SubQueryReport] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'results': [r.to_dict() for r in self.results],
            'intent': self.intent.to_dict(),
            'candidateCount': self.candidate_count,
            'elapsedMs': self.elapsed_ms,
            'subQueries': [s.to_dict() for s in self.sub_queries]
        }
