"""
Tests for the MVP opportunity scorer and feature recommender.

Usage:
    pytest tests/test_mvp_scoring.py -v
"""

import pytest
from gapscope.reviews.review_models import Gap
from gapscope.scoring.opportunity_scorer import OpportunityScorer
from gapscope.scoring.feature_recommender import FeatureRecommender
from gapscope.scoring.scoring_config import DEFAULT_CONFIG, ScoringConfig, MVPConfig, round_half_up


def make_gap(feature: str, score: int, count: int = None, impact: int = None) -> Gap:
    return Gap(
        feature=feature,
        pain_point=f'Users complain about "{feature}"',
        opportunity_score=score,
        count=count,
        impact=impact,
    )


def make_gaps(*scores) -> list:
    return [make_gap(f"feature{i}", s, count=i + 1) for i, s in enumerate(scores)]


# ============================================================================
# CONFIG
# ============================================================================

class TestScoringConfig:

    def test_default_config_is_valid(self):
        assert DEFAULT_CONFIG.validate()

    def test_tiers_must_cover_market_gaps(self):
        config = ScoringConfig(mvp=MVPConfig(potential_count=4))
        with pytest.raises(AssertionError):
            config.validate()

    @pytest.mark.parametrize("value,expected", [(2.5, 3), (5.5, 6), (3.33, 3), (0.5, 1), (8.49, 8)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


# ============================================================================
# OPPORTUNITY SCORER
# ============================================================================

class TestOpportunityScorer:

    def setup_method(self):
        self.scorer = OpportunityScorer()

    def test_empty_gaps_default(self):
        result = self.scorer.score([])
        assert result.score == 6
        assert result.reasoning.startswith("Limited data")
        assert result.base_features == ["usability", "performance", "reliability"]

    def test_weighted_mean(self):
        """(10*5 + 8*4 + 6*3 + 4*2 + 2*1) / 15 = 7.33 -> 7"""
        assert self.scorer.score(make_gaps(10, 8, 6, 4, 2)).score == 7

    def test_only_top_5_count(self):
        assert self.scorer.score(make_gaps(6, 6, 6, 6, 6, 10, 10)).score == 6

    def test_fewer_than_5_gaps(self):
        """(9*5 + 6*4) / 9 = 7.67 -> 8"""
        assert self.scorer.score(make_gaps(9, 6)).score == 8

    def test_clamped_to_floor(self):
        assert self.scorer.score(make_gaps(1, 1, 1)).score == 5

    def test_ceiling(self):
        assert self.scorer.score(make_gaps(10, 10, 10, 10, 10)).score == 10

    def test_always_in_range(self):
        for scores in [(0,), (3, 2), (10,), (7, 7, 7, 7, 7, 7)]:
            assert 5 <= self.scorer.score(make_gaps(*scores)).score <= 10

    def test_base_features_top_3(self):
        result = self.scorer.score(make_gaps(9, 8, 7, 6))
        assert result.base_features == ["feature0", "feature1", "feature2"]

    def test_reasoning_bands(self):
        assert self.scorer.build_reasoning(9, 4, 3).startswith("Strong opportunity")
        assert self.scorer.build_reasoning(6, 4, 3).startswith("Good opportunity")
        assert self.scorer.build_reasoning(5, 4, 3).startswith("Moderate opportunity")
        assert self.scorer.band(2).startswith("Limited opportunity")

    def test_reasoning_counts(self):
        assert self.scorer.build_reasoning(8, 3, 2).endswith("Based on 3 market gaps across 2 apps.")
        assert self.scorer.build_reasoning(8, 1).endswith("Based on 1 market gap.")

    def test_to_dict(self):
        data = self.scorer.score(make_gaps(8)).to_dict()
        assert data["score"] == 8
        assert data["baseFeatures"] == ["feature0"]


# ============================================================================
# FEATURE RECOMMENDER
# ============================================================================

class TestFeatureRecommender:

    def setup_method(self):
        self.recommender = FeatureRecommender()

    def test_empty(self):
        features = self.recommender.recommend([])
        assert features.core == []
        assert features.differentiators == []
        assert features.potential == []

    def test_tiers_for_10_gaps(self):
        features = self.recommender.recommend(make_gaps(*range(10, 0, -1)))
        assert [f.feature for f in features.core] == ["feature0", "feature1", "feature2"]
        assert [f.feature for f in features.differentiators] == ["feature3", "feature4"]
        assert len(features.potential) == 5

    def test_extra_gaps_ignored(self):
        features = self.recommender.recommend(make_gaps(*([5] * 12)))
        assert len(features.potential) == 5

    def test_descriptions(self):
        features = self.recommender.recommend(make_gaps(9, 8, 7, 6, 5, 4))

        assert features.core[0].description == (
            'Solve "Users complain about "feature0"" with score 9/10'
        )
        assert features.differentiators[0].description.endswith("to stand out")
        assert features.potential[0].description == "Consider for future updates"

    def test_impact_score_uses_count_for_single_app_gaps(self):
        features = self.recommender.recommend([make_gap("crash", 7, count=4)])
        assert features.core[0].impact_score == 4

    def test_impact_score_prefers_impact(self):
        features = self.recommender.recommend([make_gap("crash", 7, count=4, impact=9)])
        assert features.core[0].impact_score == 9

    def test_to_dict(self):
        data = self.recommender.recommend(make_gaps(9)).to_dict()
        assert data["core"][0] == {
            "feature": "feature0",
            "description": 'Solve "Users complain about "feature0"" with score 9/10',
            "impactScore": 1,
        }
