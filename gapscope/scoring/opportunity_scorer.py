"""
GapScope MVP Opportunity Scorer
===============================

Reduces a ranked market-gap list to a single 1-10 score for building
a new app in the analyzed space.

PHILOSOPHY:
- 100% deterministic: same gaps -> same score
- Explainable: reasoning text comes from a fixed ladder of bands

FORMULA:
    weighted mean of the top 5 opportunity scores, weights 5,4,3,2,1,
    rounded half up and clamped to [5, 10]. No gaps -> 6.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .scoring_config import ScoringConfig, DEFAULT_CONFIG, round_half_up
from ..reviews.review_models import Gap


@dataclass
class MVPOpportunityScore:
    """Overall opportunity of an MVP in the analyzed market."""
    score: int
    reasoning: str
    base_features: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "reasoning": self.reasoning,
            "baseFeatures": list(self.base_features),
        }


class OpportunityScorer:
    """Weighted MVP opportunity score over ranked gaps."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.config.validate()

    def score(
        self,
        gaps: Sequence[Gap],
        apps_analyzed: Optional[int] = None,
    ) -> MVPOpportunityScore:
        """
        Compute the MVP opportunity score.

        Args:
            gaps: Market gaps, best first.
            apps_analyzed: Number of apps behind the gaps, for the reasoning.

        Returns:
            MVPOpportunityScore with score in [5, 10], or the default 6
            when there is no gap.
        """
        mvp = self.config.mvp

        if not gaps:
            return MVPOpportunityScore(
                score=mvp.default_score,
                reasoning=mvp.limited_data_reasoning,
                base_features=list(mvp.default_base_features),
            )

        top_gaps = list(gaps[:len(mvp.weights)])
        weights = mvp.weights[:len(top_gaps)]

        weighted_sum = sum(g.opportunity_score * w for g, w in zip(top_gaps, weights))
        weighted_score = round_half_up(weighted_sum / sum(weights))
        final_score = max(mvp.min_score, min(mvp.max_score, weighted_score))

        return MVPOpportunityScore(
            score=final_score,
            reasoning=self.build_reasoning(final_score, len(gaps), apps_analyzed),
            base_features=[g.feature for g in top_gaps[:mvp.base_feature_count]],
        )

    def band(self, score: int) -> str:
        """Reasoning sentence for a score."""
        for min_score, sentence in self.config.mvp.reasoning_bands:
            if score >= min_score:
                return sentence
        return self.config.mvp.reasoning_bands[-1][1]

    def build_reasoning(
        self,
        score: int,
        gap_count: int,
        apps_analyzed: Optional[int] = None,
    ) -> str:
        gaps_label = f"{gap_count} market gap{'s' if gap_count != 1 else ''}"
        if apps_analyzed is None:
            return f"{self.band(score)}. Based on {gaps_label}."
        apps_label = f"{apps_analyzed} app{'s' if apps_analyzed != 1 else ''}"
        return f"{self.band(score)}. Based on {gaps_label} across {apps_label}."
