"""
GapScope Scoring Module
=======================

Deterministic cross-app scoring.

Components:
    - MarketGapAggregator: merges negative themes across apps into ranked gaps
    - OpportunityScorer: weighted 1-10 MVP opportunity score
    - FeatureRecommender: core / differentiator / potential feature tiers
    - compare_analysis: side-by-side sentiment and theme tables

Usage:
    from gapscope.scoring import MarketGapAggregator

    aggregator = MarketGapAggregator()
    report = aggregator.identify_market_gaps(entity_analyses)

    print(report.mvp_opportunity_score.score)
"""

from .scoring_config import (
    ScoringConfig,
    DEFAULT_CONFIG,
    round_half_up,
)
from .opportunity_scorer import (
    OpportunityScorer,
    MVPOpportunityScore,
)
from .feature_recommender import (
    FeatureRecommender,
    FeatureRecommendation,
    MVPFeatures,
)
from .market_gaps import (
    MarketGapAggregator,
    MarketGapReport,
)
from .comparison import compare_analysis

__all__ = [
    "ScoringConfig",
    "DEFAULT_CONFIG",
    "round_half_up",
    "OpportunityScorer",
    "MVPOpportunityScore",
    "FeatureRecommender",
    "FeatureRecommendation",
    "MVPFeatures",
    "MarketGapAggregator",
    "MarketGapReport",
    "compare_analysis",
]
