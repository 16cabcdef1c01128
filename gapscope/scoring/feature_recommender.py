"""
MVP Feature Recommender
=======================

Static tiering of ranked market gaps:

    rank 0-2  -> core features
    rank 3-4  -> differentiators
    rank 5-9  -> potential future features
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .scoring_config import ScoringConfig, DEFAULT_CONFIG
from ..reviews.review_models import Gap


@dataclass
class FeatureRecommendation:
    """A feature suggested for an MVP."""
    feature: str
    description: str
    impact_score: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feature": self.feature,
            "description": self.description,
            "impactScore": self.impact_score,
        }


@dataclass
class MVPFeatures:
    """Feature recommendations split into tiers."""
    core: List[FeatureRecommendation] = field(default_factory=list)
    differentiators: List[FeatureRecommendation] = field(default_factory=list)
    potential: List[FeatureRecommendation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "core": [f.to_dict() for f in self.core],
            "differentiators": [f.to_dict() for f in self.differentiators],
            "potential": [f.to_dict() for f in self.potential],
        }


class FeatureRecommender:
    """Splits ranked gaps into core / differentiator / potential tiers."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.config.validate()

    def recommend(self, gaps: Sequence[Gap]) -> MVPFeatures:
        mvp = self.config.mvp
        core_end = mvp.core_count
        diff_end = core_end + mvp.differentiator_count
        potential_end = diff_end + mvp.potential_count

        return MVPFeatures(
            core=[
                FeatureRecommendation(
                    feature=gap.feature,
                    description=f'Solve "{gap.pain_point}" with score {gap.opportunity_score}/10',
                    impact_score=gap.impact_score,
                )
                for gap in gaps[:core_end]
            ],
            differentiators=[
                FeatureRecommendation(
                    feature=gap.feature,
                    description=f'Address "{gap.pain_point}" to stand out',
                    impact_score=gap.impact_score,
                )
                for gap in gaps[core_end:diff_end]
            ],
            potential=[
                FeatureRecommendation(
                    feature=gap.feature,
                    description="Consider for future updates",
                    impact_score=gap.impact_score,
                )
                for gap in gaps[diff_end:potential_end]
            ],
        )
