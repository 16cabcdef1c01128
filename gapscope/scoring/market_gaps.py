"""
Cross-App Market Gap Aggregator
===============================

Merges the negative themes of several analyzed apps into one ranked
list of market gaps, then derives the MVP opportunity score and the
tiered feature recommendations.

SCORING (per merged negative word):
    userImpact     = min(10, round(totalCount / 3))
    marketSpread   = min(10, round(appCount * 2.5))
    ratingFactor   = (5 - avgCompetitorRating) / 2        # 0 to 2.5
    opportunity    = max(5, min(10, round(userImpact * 0.5
                                          + marketSpread * 0.2
                                          + ratingFactor * 3)))
    competitionGap = min(10, round(appCount * 2))

FALLBACK LADDER (first non-empty wins):
    1. merged_negative_themes  cross-app complaints
    2. per_app_gaps            each app's own single-app gaps
    3. positive_themes         liked features that could improve
    4. default_gap             one hardcoded "usability" gap

The input is treated as an unordered set of apps: ties are broken by
word and app id, so the report does not depend on input order.

Usage:
    aggregator = MarketGapAggregator()
    report = aggregator.identify_market_gaps(entity_analyses)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .scoring_config import ScoringConfig, DEFAULT_CONFIG, round_half_up
from .opportunity_scorer import MVPOpportunityScore, OpportunityScorer
from .feature_recommender import FeatureRecommender, MVPFeatures
from ..reviews.review_models import EntityAnalysis, Gap, Theme

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class MergedTheme:
    """One word merged across apps."""
    word: str
    total_count: int = 0
    apps: Dict[str, int] = field(default_factory=dict)
    ratings: List[float] = field(default_factory=list)

    @property
    def app_count(self) -> int:
        return len(self.apps)

    def add(self, app_id: str, theme: Theme, average_score: float) -> None:
        self.total_count += theme.count
        self.apps[app_id] = self.apps.get(app_id, 0) + theme.count
        if average_score:
            self.ratings.append(average_score)


@dataclass
class MarketGapReport:
    """Cross-app market gap report."""
    market_gaps: List[Gap]
    analysis_date: str
    apps_analyzed: int
    mvp_opportunity_score: MVPOpportunityScore
    mvp_recommended_features: MVPFeatures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "marketGaps": [g.to_dict() for g in self.market_gaps],
            "analysisDate": self.analysis_date,
            "appsAnalyzed": self.apps_analyzed,
            "mvpOpportunityScore": self.mvp_opportunity_score.to_dict(),
            "mvpRecommendedFeatures": self.mvp_recommended_features.to_dict(),
        }


GapStrategy = Callable[[Sequence[EntityAnalysis]], List[Gap]]


class MarketGapAggregator:
    """
    Cross-app gap aggregation with a four-tier fallback.

    Stateless: every call is a pure function of its input, the
    configuration and the injected clock.
    """

    def __init__(
        self,
        config: Optional[ScoringConfig] = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self.config = config or DEFAULT_CONFIG
        self.config.validate()
        self.now = now
        self.opportunity_scorer = OpportunityScorer(self.config)
        self.feature_recommender = FeatureRecommender(self.config)

    @property
    def strategies(self) -> Tuple[Tuple[str, GapStrategy], ...]:
        return (
            ("merged_negative_themes", self.merged_negative_gaps),
            ("per_app_gaps", self.per_app_gaps),
            ("positive_themes", self.positive_theme_gaps),
            ("default_gap", self.default_gaps),
        )

    # =========================================================================
    # MAIN METHOD
    # =========================================================================

    def identify_market_gaps(self, entities: Sequence[EntityAnalysis]) -> MarketGapReport:
        """
        Build the market gap report of a set of analyzed apps.

        Args:
            entities: Per-app analyses. Duplicate app ids are collapsed.

        Returns:
            MarketGapReport with 1 to 10 gaps, best first.
        """
        entities = unique_entities(entities)

        gaps: List[Gap] = []
        for name, strategy in self.strategies:
            gaps = strategy(entities)
            if gaps:
                logger.info(
                    f"Market gaps from '{name}': {len(gaps)} candidates "
                    f"over {len(entities)} apps"
                )
                break

        ranked = sort_gaps(gaps)[:self.config.market.max_gaps]

        return MarketGapReport(
            market_gaps=ranked,
            analysis_date=self.now().isoformat(),
            apps_analyzed=len(entities),
            mvp_opportunity_score=self.opportunity_scorer.score(ranked, len(entities)),
            mvp_recommended_features=self.feature_recommender.recommend(ranked),
        )

    # =========================================================================
    # MERGING
    # =========================================================================

    def merge_negative_themes(self, entities: Sequence[EntityAnalysis]) -> List[MergedTheme]:
        """
        Merge negative themes by word, sorted by total count descending.

        With 2+ apps, only words shared by 2+ apps are kept, unless no
        word is shared at all.
        """
        merged = merge_themes(entities, lambda e: e.analysis.negative_themes)
        ranked = sorted(merged.values(), key=lambda m: (-m.total_count, m.word))

        if len(entities) >= self.config.market.min_apps_for_overlap:
            shared = [
                m for m in ranked
                if m.app_count >= self.config.market.min_apps_for_overlap
            ]
            if shared:
                return shared
            logger.debug("No negative theme shared across apps, keeping all")

        return ranked

    # =========================================================================
    # STRATEGIES
    # =========================================================================

    def merged_negative_gaps(self, entities: Sequence[EntityAnalysis]) -> List[Gap]:
        """Score every merged negative theme."""
        return [self.score_merged_theme(m) for m in self.merge_negative_themes(entities)]

    def per_app_gaps(self, entities: Sequence[EntityAnalysis]) -> List[Gap]:
        """Each app's own gaps, with medium synthesized context fields."""
        medium = self.config.market.synthesized_value
        gaps = []
        for entity in entities:
            average = entity.analysis.sentiment_analysis.average_score
            for gap in entity.analysis.market_gaps:
                mentions = gap.mentions
                gaps.append(Gap(
                    feature=gap.feature,
                    pain_point=gap.pain_point,
                    opportunity_score=gap.opportunity_score,
                    impact=medium,
                    market_spread=medium,
                    competition_gap=medium,
                    avg_competitor_rating=round(average, 1),
                    affected_apps={entity.app_id: mentions},
                    user_mentions=mentions,
                ))
        return gaps

    def positive_theme_gaps(self, entities: Sequence[EntityAnalysis]) -> List[Gap]:
        """Liked themes across apps, read as room for improvement."""
        market = self.config.market
        merged = merge_themes(entities, lambda e: e.analysis.positive_themes)

        gaps = []
        for theme in merged.values():
            occurrences = theme.app_count
            score = min(
                market.max_score,
                round_half_up(theme.total_count / market.impact_scale * occurrences),
            )
            if occurrences > 1:
                pain_point = (
                    f'Users across {occurrences} apps like "{theme.word}" '
                    f"but it could be improved"
                )
            else:
                pain_point = f'Users like "{theme.word}" but it could be improved'
            gaps.append(Gap(
                feature=theme.word,
                pain_point=pain_point,
                opportunity_score=score,
                impact=self._impact(theme.total_count),
                market_spread=self._spread(occurrences),
                competition_gap=self._competition(occurrences),
                avg_competitor_rating=round(self._average_rating(theme.ratings), 1),
                affected_apps=dict(theme.apps),
                user_mentions=theme.total_count,
            ))

        return sort_gaps(gaps)[:market.positive_fallback_size]

    def default_gaps(self, entities: Sequence[EntityAnalysis]) -> List[Gap]:
        """Single hardcoded gap so the report is never empty."""
        market = self.config.market
        return [Gap(
            feature=market.default_gap_feature,
            pain_point=market.default_gap_pain_point,
            opportunity_score=market.default_gap_score,
            impact=market.default_gap_score,
            market_spread=market.synthesized_value,
            competition_gap=market.synthesized_value,
            avg_competitor_rating=market.neutral_rating,
            affected_apps={},
            user_mentions=0,
        )]

    # =========================================================================
    # SCORING
    # =========================================================================

    def score_merged_theme(self, theme: MergedTheme) -> Gap:
        """Turn a merged negative theme into a scored gap."""
        market = self.config.market

        user_impact = self._impact(theme.total_count)
        market_spread = self._spread(theme.app_count)
        avg_rating = self._average_rating(theme.ratings)
        rating_factor = (market.max_rating - avg_rating) / 2

        raw = round_half_up(
            user_impact * market.impact_weight
            + market_spread * market.spread_weight
            + rating_factor * market.rating_weight
        )
        opportunity_score = max(market.min_opportunity, min(market.max_score, raw))

        if theme.app_count > 1:
            pain_point = f'Users across {theme.app_count} apps complain about "{theme.word}"'
        else:
            pain_point = f'Users complain about "{theme.word}"'

        return Gap(
            feature=theme.word,
            pain_point=pain_point,
            opportunity_score=opportunity_score,
            impact=user_impact,
            market_spread=market_spread,
            competition_gap=self._competition(theme.app_count),
            avg_competitor_rating=round(avg_rating, 1),
            affected_apps=dict(theme.apps),
            user_mentions=theme.total_count,
        )

    def _impact(self, total_count: int) -> int:
        market = self.config.market
        return min(market.max_score, round_half_up(total_count / market.impact_scale))

    def _spread(self, app_count: int) -> int:
        market = self.config.market
        return min(market.max_score, round_half_up(app_count * market.spread_per_app))

    def _competition(self, app_count: int) -> int:
        market = self.config.market
        return min(market.max_score, round_half_up(app_count * market.competition_per_app))

    def _average_rating(self, ratings: Sequence[float]) -> float:
        if not ratings:
            return self.config.market.neutral_rating
        return sum(ratings) / len(ratings)


def unique_entities(entities: Sequence[EntityAnalysis]) -> List[EntityAnalysis]:
    """Drop repeated app ids (first wins) and order by app id."""
    seen: Dict[str, EntityAnalysis] = {}
    for entity in entities:
        if entity.app_id in seen:
            logger.warning(f"Duplicate analysis for app {entity.app_id} ignored")
            continue
        seen[entity.app_id] = entity
    return [seen[app_id] for app_id in sorted(seen)]


def merge_themes(
    entities: Sequence[EntityAnalysis],
    themes_of: Callable[[EntityAnalysis], Sequence[Theme]],
) -> Dict[str, MergedTheme]:
    """Merge one theme list of every app by word."""
    merged: Dict[str, MergedTheme] = {}
    for entity in entities:
        average = entity.analysis.sentiment_analysis.average_score
        for theme in themes_of(entity):
            if theme.word not in merged:
                merged[theme.word] = MergedTheme(word=theme.word)
            merged[theme.word].add(entity.app_id, theme, average)
    return merged


def sort_gaps(gaps: Sequence[Gap]) -> List[Gap]:
    """Best opportunity first, then most mentioned, then by word."""
    return sorted(gaps, key=lambda g: (-g.opportunity_score, -g.mentions, g.feature))
