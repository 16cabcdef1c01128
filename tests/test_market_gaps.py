"""
Tests for the cross-app market gap aggregator.

Tests the merged scoring formulas and the fallback ladder:
- merged negative themes (shared words only, when 2+ apps)
- per-app gaps with synthesized context
- positive themes across apps
- hardcoded "usability" gap

Also checks that the report is independent of input order and stable
under a fixed clock.

Usage:
    pytest tests/test_market_gaps.py -v
"""

from datetime import datetime, timezone

import pytest
from gapscope.reviews.review_models import (
    AnalysisResult, EntityAnalysis, Gap, SentimentStats, Theme,
)
from gapscope.scoring.market_gaps import MarketGapAggregator, sort_gaps, unique_entities
from gapscope.scoring.comparison import compare_analysis


# ============================================================================
# TEST DATA
# ============================================================================

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_entity(
    app_id: str,
    negative: dict = None,
    positive: dict = None,
    average_score: float = 0.0,
    gaps: list = None,
) -> EntityAnalysis:
    """Helper to create an analyzed app from theme counts."""
    stats = SentimentStats(
        positive=10, negative=5, neutral=1, total=16,
        average_score=average_score, sentiment_ratio=2.0,
    )
    analysis = AnalysisResult(
        sentiment_analysis=stats,
        positive_themes=[Theme(w, c) for w, c in (positive or {}).items()],
        negative_themes=[Theme(w, c) for w, c in (negative or {}).items()],
        market_gaps=gaps or [],
        review_count=16,
        last_updated=FIXED_NOW.isoformat(),
    )
    return EntityAnalysis(app_id=app_id, analysis=analysis)


def make_aggregator() -> MarketGapAggregator:
    return MarketGapAggregator(now=lambda: FIXED_NOW)


# ============================================================================
# MERGED NEGATIVE THEMES
# ============================================================================

class TestMergedScoring:
    """Tests for the merged-theme formulas."""

    def setup_method(self):
        self.aggregator = make_aggregator()

    def test_pricing_across_two_apps(self):
        """4 + 6 mentions over 2 apps, no average rating recorded."""
        report = self.aggregator.identify_market_gaps([
            make_entity("app_a", negative={"pricing": 4}),
            make_entity("app_b", negative={"pricing": 6}),
        ])

        assert len(report.market_gaps) == 1
        gap = report.market_gaps[0]
        assert gap.feature == "pricing"
        assert gap.user_mentions == 10
        assert gap.affected_apps == {"app_a": 4, "app_b": 6}
        assert gap.impact == 3
        assert gap.market_spread == 5
        assert gap.avg_competitor_rating == 3.0
        assert gap.opportunity_score == 6        # 1.5 + 1.0 + 3.0 = 5.5 -> 6
        assert gap.competition_gap == 4
        assert gap.pain_point == 'Users across 2 apps complain about "pricing"'

    def test_low_competitor_rating_raises_score(self):
        report = self.aggregator.identify_market_gaps([
            make_entity("app_a", negative={"pricing": 4}, average_score=1.0),
            make_entity("app_b", negative={"pricing": 6}, average_score=1.0),
        ])
        gap = report.market_gaps[0]
        assert gap.avg_competitor_rating == 1.0
        assert gap.opportunity_score == 9        # 1.5 + 1.0 + 6.0 = 8.5 -> 9

    def test_score_floor_is_5(self):
        report = self.aggregator.identify_market_gaps([
            make_entity("app_a", negative={"font": 1}, average_score=5.0),
            make_entity("app_b", negative={"font": 1}, average_score=5.0),
        ])
        assert report.market_gaps[0].opportunity_score == 5

    def test_score_ceiling_is_10(self):
        entities = [
            make_entity(f"app_{i}", negative={"crash": 30}, average_score=1.0)
            for i in range(5)
        ]
        gap = self.aggregator.identify_market_gaps(entities).market_gaps[0]
        assert gap.impact == 10
        assert gap.market_spread == 10
        assert gap.competition_gap == 10
        assert gap.opportunity_score == 10

    def test_zero_average_not_recorded(self):
        report = self.aggregator.identify_market_gaps([
            make_entity("app_a", negative={"pricing": 4}, average_score=2.0),
            make_entity("app_b", negative={"pricing": 6}, average_score=0.0),
        ])
        assert report.market_gaps[0].avg_competitor_rating == 2.0


class TestOverlapFilter:

    def setup_method(self):
        self.aggregator = make_aggregator()

    def test_shared_words_only(self):
        report = self.aggregator.identify_market_gaps([
            make_entity("app_a", negative={"crash": 5, "login": 9}),
            make_entity("app_b", negative={"crash": 4, "export": 9}),
        ])
        assert [g.feature for g in report.market_gaps] == ["crash"]

    def test_no_shared_word_keeps_all(self):
        report = self.aggregator.identify_market_gaps([
            make_entity("app_a", negative={"login": 9}),
            make_entity("app_b", negative={"export": 3}),
        ])
        assert {g.feature for g in report.market_gaps} == {"login", "export"}

    def test_single_app_is_never_filtered(self):
        report = self.aggregator.identify_market_gaps([
            make_entity("app_a", negative={"crash": 9, "login": 3}),
        ])
        gaps = {g.feature: g for g in report.market_gaps}

        assert set(gaps) == {"crash", "login"}
        assert gaps["crash"].pain_point == 'Users complain about "crash"'
        assert gaps["crash"].market_spread == 3     # round(2.5) half up
        assert gaps["crash"].opportunity_score == 5

    def test_capped_at_10(self):
        shared = {f"issue{i:02d}": 10 + i for i in range(15)}
        report = self.aggregator.identify_market_gaps([
            make_entity("app_a", negative=shared),
            make_entity("app_b", negative=shared),
        ])
        assert len(report.market_gaps) == 10


# ============================================================================
# FALLBACK LADDER
# ============================================================================

class TestFallbackLadder:

    def setup_method(self):
        self.aggregator = make_aggregator()

    def test_per_app_gaps_when_no_negative_theme(self):
        own_gap = Gap(feature="design", pain_point="Users like design", opportunity_score=8, count=2)
        report = self.aggregator.identify_market_gaps([
            make_entity("app_a", positive={"design": 2}, average_score=4.26, gaps=[own_gap]),
        ])

        gap = report.market_gaps[0]
        assert gap.feature == "design"
        assert gap.opportunity_score == 8
        assert gap.impact == 5
        assert gap.market_spread == 5
        assert gap.competition_gap == 5
        assert gap.affected_apps == {"app_a": 2}
        assert gap.user_mentions == 2
        assert gap.avg_competitor_rating == 4.3

    def test_positive_themes_when_no_gap_at_all(self):
        report = self.aggregator.identify_market_gaps([
            make_entity("app_a", positive={"smooth": 3, "design": 2}),
            make_entity("app_b", positive={"smooth": 3}),
        ])
        scores = {g.feature: g.opportunity_score for g in report.market_gaps}

        assert scores == {"smooth": 4, "design": 1}    # round(6/3*2), round(2/3*1)
        assert report.market_gaps[0].feature == "smooth"
        assert report.market_gaps[0].affected_apps == {"app_a": 3, "app_b": 3}

    def test_positive_fallback_top_5(self):
        positive = {f"liked{i}": 10 - i for i in range(8)}
        report = self.aggregator.identify_market_gaps([make_entity("app_a", positive=positive)])
        assert len(report.market_gaps) == 5

    def test_default_gap_when_nothing_at_all(self):
        report = self.aggregator.identify_market_gaps([make_entity("app_a")])
        assert [(g.feature, g.opportunity_score) for g in report.market_gaps] == [("usability", 7)]

    def test_zero_entities(self):
        report = self.aggregator.identify_market_gaps([])

        assert len(report.market_gaps) == 1
        gap = report.market_gaps[0]
        assert gap.feature == "usability"
        assert gap.opportunity_score == 7
        assert report.apps_analyzed == 0
        assert report.mvp_opportunity_score.score == 7
        assert [f.feature for f in report.mvp_recommended_features.core] == ["usability"]

    def test_strategy_order(self):
        names = [name for name, _ in self.aggregator.strategies]
        assert names == ["merged_negative_themes", "per_app_gaps", "positive_themes", "default_gap"]


# ============================================================================
# DETERMINISM
# ============================================================================

class TestDeterminism:

    def setup_method(self):
        self.aggregator = make_aggregator()
        self.entities = [
            make_entity("app_c", negative={"crash": 3, "login": 3}, average_score=3.5),
            make_entity("app_a", negative={"login": 3, "crash": 3, "sync": 2}, average_score=4.0),
            make_entity("app_b", negative={"sync": 5, "crash": 1}, average_score=2.5),
        ]

    def test_order_independent(self):
        forward = self.aggregator.identify_market_gaps(self.entities).to_dict()
        backward = self.aggregator.identify_market_gaps(list(reversed(self.entities))).to_dict()
        assert forward == backward

    def test_idempotent(self):
        first = self.aggregator.identify_market_gaps(self.entities).to_dict()
        second = self.aggregator.identify_market_gaps(self.entities).to_dict()
        assert first == second
        assert first["analysisDate"] == FIXED_NOW.isoformat()

    def test_duplicate_app_ids_collapsed(self):
        duplicate = make_entity("app_a", negative={"other": 50})
        report = self.aggregator.identify_market_gaps(self.entities + [duplicate])
        assert report.apps_analyzed == 3
        assert "other" not in [g.feature for g in report.market_gaps]

    def test_unique_entities_sorted_by_app_id(self):
        assert [e.app_id for e in unique_entities(self.entities)] == ["app_a", "app_b", "app_c"]

    def test_sort_gaps_tie_breaks(self):
        gaps = [
            Gap(feature="zoom", pain_point="", opportunity_score=6, user_mentions=4),
            Gap(feature="alarm", pain_point="", opportunity_score=6, user_mentions=4),
            Gap(feature="crash", pain_point="", opportunity_score=6, user_mentions=9),
            Gap(feature="sync", pain_point="", opportunity_score=8, count=1),
        ]
        assert [g.feature for g in sort_gaps(gaps)] == ["sync", "crash", "alarm", "zoom"]


# ============================================================================
# REPORT SHAPE
# ============================================================================

class TestReportShape:

    def test_to_dict_keys(self):
        report = make_aggregator().identify_market_gaps([
            make_entity("app_a", negative={"pricing": 4}),
            make_entity("app_b", negative={"pricing": 6}),
        ])
        data = report.to_dict()

        assert set(data) == {
            "marketGaps", "analysisDate", "appsAnalyzed",
            "mvpOpportunityScore", "mvpRecommendedFeatures",
        }
        assert data["appsAnalyzed"] == 2
        assert data["marketGaps"][0]["affectedApps"] == {"app_a": 4, "app_b": 6}
        assert set(data["mvpOpportunityScore"]) == {"score", "reasoning", "baseFeatures"}


class TestCompareAnalysis:

    def test_comparison_tables(self):
        comparison = compare_analysis([
            make_entity("app_a", negative={"crash": 3}, positive={"design": 2}, average_score=4.0),
            make_entity("app_b", negative={"crash": 1, "sync": 2}, average_score=3.0),
        ])

        assert comparison["appIds"] == ["app_a", "app_b"]
        assert comparison["sentimentComparison"][0]["averageScore"] == 4.0
        assert comparison["sentimentComparison"][0]["positivePercentage"] == pytest.approx(62.5)

        negative = {row["theme"]: row["counts"] for row in comparison["negativeThemeComparison"]}
        assert negative == {"crash": {"app_a": 3, "app_b": 1}, "sync": {"app_b": 2}}
        assert comparison["positiveThemeComparison"] == [
            {"theme": "design", "counts": {"app_a": 2}},
        ]
