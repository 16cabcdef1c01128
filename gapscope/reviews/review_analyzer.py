"""
GapScope Review Analyzer
========================

Builds the complete AnalysisResult of one app:

    reviews -> sentiment buckets -> themes per bucket -> single-app gaps
            -> optional AI insights

The deterministic part is synchronous (build_result). The AI step is
the only await point and is skipped when no enricher is injected.

Usage:
    analyzer = ReviewAnalyzer(enricher=None)
    result = await analyzer.analyze_reviews(reviews)
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from .review_models import AnalysisResult, InvalidReviewInput, Review
from .sentiment import SentimentBucketer
from .theme_extractor import ThemeExtractor
from .gap_identifier import GapIdentifier
from ..scoring.scoring_config import ScoringConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReviewAnalyzer:
    """
    Per-app review analyzer.

    Stateless between calls. The clock is injectable so that repeated
    runs over the same reviews produce identical results.
    """

    def __init__(
        self,
        enricher=None,
        config: Optional[ScoringConfig] = None,
        now: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            enricher: Optional AIEnricher. None disables AI insights.
            config: Scoring configuration. Defaults to DEFAULT_CONFIG.
            now: Clock used for lastUpdated.
        """
        self.config = config or DEFAULT_CONFIG
        self.enricher = enricher
        self.now = now
        self.bucketer = SentimentBucketer()
        self.theme_extractor = ThemeExtractor(self.config)
        self.gap_identifier = GapIdentifier(self.config)

    def build_result(self, reviews: Sequence[Review]) -> AnalysisResult:
        """
        Run the deterministic analysis (no AI).

        Raises:
            InvalidReviewInput: if reviews is empty
        """
        if not reviews:
            raise InvalidReviewInput("No reviews to analyze")

        stats = self.bucketer.compute_stats(reviews)
        buckets = self.bucketer.bucket(reviews)

        positive_themes = self.theme_extractor.extract_themes(buckets.positive)
        negative_themes = self.theme_extractor.extract_themes(buckets.negative)
        market_gaps = self.gap_identifier.identify_gaps(positive_themes, negative_themes)

        return AnalysisResult(
            sentiment_analysis=stats,
            positive_themes=positive_themes,
            negative_themes=negative_themes,
            market_gaps=market_gaps,
            review_count=len(reviews),
            last_updated=self.now().isoformat(),
        )

    async def analyze_reviews(self, reviews: Sequence[Review]) -> AnalysisResult:
        """
        Analyze an app's reviews, with AI insights when available.

        Raises:
            InvalidReviewInput: if reviews is empty
        """
        result = self.build_result(reviews)

        ai_insights = None
        if self.enricher is not None:
            ai_insights = await self.enricher.enrich(
                reviews, result.positive_themes, result.negative_themes
            )

        logger.info(
            f"Analyzed {result.review_count} reviews: "
            f"{result.sentiment_analysis.positive} positive, "
            f"{result.sentiment_analysis.negative} negative, "
            f"{len(result.market_gaps)} gaps, "
            f"ai_insights={'yes' if ai_insights else 'no'}"
        )

        if ai_insights is None:
            return result

        return replace(result, ai_insights=ai_insights)
