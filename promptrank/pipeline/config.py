"""Configuration for the ranking pipeline.

All weights and thresholds are tunable heuristics, not domain law. They live
in one ``RankingConfig`` consumed by the retriever, scorer and curator.
"""

from pathlib import Path
from typing import Dict, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, Field, field_validator, model_validator


class ScoringWeights(BaseModel):
    """Weights of the five sub-scores in the composite relevance."""
    exact_match: float = 0.40
    keyword_distribution: float = 0.25
    semantic_overlap: float = 0.20
    intent_alignment: float = 0.10
    quality: float = 0.05

    @field_validator('*')
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("scoring weights must be non-negative")
        return v

    @model_validator(mode='after')
    def validate_total(self) -> "ScoringWeights":
        total = (self.exact_match + self.keyword_distribution +
                 self.semantic_overlap + self.intent_alignment + self.quality)
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"scoring weights must sum to 1.0, got {total:.4f}")
        return self


class MatchThresholds(BaseModel):
    """Sub-score thresholds that produce match reasons."""
    exact: float = 0.7
    partial: float = 0.4
    keyword: float = 0.6
    semantic: float = 0.5
    intent: float = 0.4

    @field_validator('*')
    @classmethod
    def validate_unit_range(cls, v: float) -> float:
        if not 0 <= v <= 1:
            raise ValueError("match thresholds must be between 0 and 1")
        return v


class CurationPolicy(BaseModel):
    min_relevance: int = 30
    relevance_band: int = 5
    quality_band: int = 10
    max_results_cap: int = 50

    @field_validator('min_relevance')
    @classmethod
    def validate_min_relevance(cls, v: int) -> int:
        if not 0 <= v <= 100:
            raise ValueError("min_relevance must be between 0 and 100")
        return v

    @field_validator('relevance_band', 'quality_band')
    @classmethod
    def validate_band(cls, v: int) -> int:
        if v < 0:
            raise ValueError("tie-break bands must be non-negative")
        return v

    @field_validator('max_results_cap')
    @classmethod
    def validate_cap(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_results_cap must be at least 1")
        return v


def _default_domain_categories() -> Dict[str, str]:
    return {
        'business': '商务',
        'technical': '编程',
        'creative': '创意',
        'academic': '学术',
        'communication': '文案',
        'legal': '通用'
    }


class RetrievalConfig(BaseModel):
    max_candidates: int = 50
    keyword_fanout: int = 3
    fallback_floor: int = 10
    fallback_page_size: int = 20
    sub_query_timeout_s: float = 3.0
    max_keywords: int = 8
    domain_categories: Dict[str, str] = Field(default_factory=_default_domain_categories)

    @field_validator('max_candidates', 'fallback_page_size', 'max_keywords')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator('keyword_fanout', 'fallback_floor')
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be non-negative")
        return v

    @field_validator('sub_query_timeout_s')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("sub_query_timeout_s must be positive")
        return v


class RankingConfig(BaseModel):
    """Main configuration for the ranking pipeline."""

    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    thresholds: MatchThresholds = Field(default_factory=MatchThresholds)
    curation: CurationPolicy = Field(default_factory=CurationPolicy)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    preview_length: int = 300

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "RankingConfig":
        """Load configuration from YAML file."""
        if config_path is None:
            candidates = [
                Path("promptrank.yaml"),
                Path.home() / ".config" / "promptrank" / "config.yaml",
                Path("/etc/promptrank/config.yaml"),
            ]
            for candidate in candidates:
                if candidate.exists():
                    config_path = candidate
                    break
            else:
                raise FileNotFoundError(
                    f"No config file found. Searched: {[str(c) for c in candidates]}"
                )

        logger.info(f"Loading ranking config from: {config_path}")
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.model_dump(), f, default_flow_style=False, allow_unicode=True)
