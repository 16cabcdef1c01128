"""
GapScope Analysis Pipeline
==========================

Ties the review source, the JSON store and the analyzers together:

    fetch reviews -> store -> analyze per app -> cache
                                      -> compare / market gaps / MVP score

Features:
    - Cached: an app is only re-analyzed when forced
    - Resilient: apps that fail to analyze are skipped in multi-app runs
    - Observable: every stage logs its duration

Usage:
    from gapscope.orchestrator.analysis_pipeline import build_pipeline

    pipeline = build_pipeline()
    result, source = await pipeline.analyze_app("284882215")
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..ai.enricher import build_enricher
from ..cache.analysis_store import AnalysisStore
from ..data.app_store_client import AppStoreClient
from ..data.config import GapScopeConfig, load_config
from ..reviews.review_analyzer import ReviewAnalyzer
from ..reviews.review_models import AnalysisResult, EntityAnalysis, Review
from ..scoring.comparison import compare_analysis
from ..scoring.market_gaps import MarketGapAggregator, MarketGapReport

logger = logging.getLogger(__name__)

SOURCE_CACHE = "cache"
SOURCE_FRESH = "fresh"


class NoReviewsError(Exception):
    """No reviews are available for an app."""

    def __init__(self, app_id: str):
        self.app_id = app_id
        super().__init__(f"No reviews found for app {app_id}")


class InsufficientDataError(Exception):
    """Not enough cached analyses for a multi-app operation."""
    pass


class AnalysisPipeline:
    """
    Per-app and multi-app analysis on top of the JSON store.

    The review client is optional: without one, only reviews already in
    the store can be analyzed.
    """

    def __init__(
        self,
        store: AnalysisStore,
        analyzer: Optional[ReviewAnalyzer] = None,
        aggregator: Optional[MarketGapAggregator] = None,
        review_client: Optional[AppStoreClient] = None,
        reviews_per_app: int = 200,
    ):
        self.store = store
        self.analyzer = analyzer or ReviewAnalyzer()
        self.aggregator = aggregator or MarketGapAggregator()
        self.review_client = review_client
        self.reviews_per_app = reviews_per_app

    # =========================================================================
    # SINGLE APP
    # =========================================================================

    def resolve_app_id(self, identifier: str) -> str:
        """
        Numeric App Store id for a track id or a bundle id.

        Raises:
            AppStoreError: if a bundle id cannot be resolved
        """
        if identifier.isdigit() or self.review_client is None:
            return identifier
        app_id = self.review_client.resolve_app_id(identifier)
        logger.debug(f"Resolved {identifier} to app {app_id}")
        return app_id

    def fetch_reviews(self, app_id: str, limit: Optional[int] = None) -> List[Review]:
        """
        Fetch reviews from the App Store and store them.

        Raises:
            NoReviewsError: if there is no client or the app has no reviews
            AppStoreError: on request failures outside the page retry loop
        """
        if self.review_client is None:
            raise NoReviewsError(app_id)

        start = time.monotonic()
        reviews = self.review_client.fetch_reviews(app_id, limit or self.reviews_per_app)
        if not reviews:
            raise NoReviewsError(app_id)

        self.store.save_reviews(app_id, reviews)
        logger.info(
            f"Stored {len(reviews)} reviews for app {app_id}",
            extra={"app_id": app_id, "stage": "fetch", "duration": round(time.monotonic() - start, 3)},
        )
        return reviews

    def get_reviews(self, app_id: str) -> List[Review]:
        """Stored reviews, fetched first if the store has none."""
        reviews = self.store.load_reviews(app_id)
        if reviews:
            return reviews
        return self.fetch_reviews(app_id)

    async def analyze_app(self, app_id: str, force: bool = False) -> Tuple[AnalysisResult, str]:
        """
        Analysis of one app, from cache unless forced.

        Returns:
            (AnalysisResult, "cache" | "fresh")

        Raises:
            NoReviewsError: if no reviews can be found for the app
        """
        if not force:
            cached = self.store.load_analysis(app_id)
            if cached is not None:
                logger.debug(f"Using cached analysis for app {app_id}")
                return cached, SOURCE_CACHE

        start = time.monotonic()
        # Store reads and App Store paging block; keep them off the event loop
        reviews = await asyncio.to_thread(self.get_reviews, app_id)
        result = await self.analyzer.analyze_reviews(reviews)
        self.store.save_analysis(app_id, result)

        logger.info(
            f"Analyzed app {app_id}: {result.review_count} reviews, {len(result.market_gaps)} gaps",
            extra={"app_id": app_id, "stage": "analyze", "duration": round(time.monotonic() - start, 3)},
        )
        return result, SOURCE_FRESH

    def get_analysis(self, app_id: str) -> Optional[AnalysisResult]:
        return self.store.load_analysis(app_id)

    def list_cached(self) -> List[Dict[str, str]]:
        return self.store.list_cached_analyses()

    # =========================================================================
    # MULTI APP
    # =========================================================================

    def load_entities(self, app_ids: Sequence[str]) -> List[EntityAnalysis]:
        """Cached analyses of the given apps; apps without one are left out."""
        entities = []
        for app_id in dict.fromkeys(app_ids):
            analysis = self.store.load_analysis(app_id)
            if analysis is None:
                logger.warning(f"No cached analysis for app {app_id}, skipping")
                continue
            entities.append(EntityAnalysis(app_id=app_id, analysis=analysis))
        return entities

    def compare(self, app_ids: Sequence[str]) -> Dict[str, Any]:
        """
        Side-by-side comparison of cached analyses.

        Raises:
            InsufficientDataError: if fewer than two apps have an analysis
        """
        entities = self.load_entities(app_ids)
        if len(entities) < 2:
            raise InsufficientDataError("At least two analyzed apps are needed for comparison")
        return compare_analysis(entities)

    def market_gaps(self, app_ids: Sequence[str], save_report: bool = True) -> MarketGapReport:
        """
        Cross-app market gaps of cached analyses.

        Raises:
            InsufficientDataError: if no app has an analysis
        """
        entities = self.load_entities(app_ids)
        if not entities:
            raise InsufficientDataError("No analyzed apps found for market gap analysis")

        start = time.monotonic()
        report = self.aggregator.identify_market_gaps(entities)

        if save_report:
            report_date = datetime.fromisoformat(report.analysis_date).date()
            path = self.store.save_report(report.to_dict(), report_date)
            logger.info(f"Market gap report saved to {path}")

        logger.info(
            f"Market gaps for {report.apps_analyzed} apps: {len(report.market_gaps)} gaps",
            extra={
                "stage": "market_gaps",
                "score": report.mvp_opportunity_score.score,
                "duration": round(time.monotonic() - start, 3),
            },
        )
        return report

    async def mvp_opportunity(self, app_ids: Sequence[str]) -> MarketGapReport:
        """
        Analyze every app lacking a cached analysis, then run market gaps.

        Apps that cannot be analyzed (no reviews, App Store or storage
        failures) are skipped with a warning.

        Raises:
            InsufficientDataError: if no app could be analyzed
        """
        for app_id in dict.fromkeys(app_ids):
            if self.store.load_analysis(app_id) is not None:
                continue
            try:
                await self.analyze_app(app_id)
            except Exception as e:
                logger.warning(
                    f"Skipping app {app_id}: {e}",
                    extra={"app_id": app_id, "stage": "mvp"},
                )

        return self.market_gaps(app_ids)


def build_pipeline(config: Optional[GapScopeConfig] = None) -> AnalysisPipeline:
    """Wire a pipeline from configuration."""
    config = config or load_config()
    enricher = build_enricher(config.llm)
    if enricher is None:
        logger.info("AI insights disabled")

    return AnalysisPipeline(
        store=AnalysisStore(config.storage.path),
        analyzer=ReviewAnalyzer(enricher=enricher),
        aggregator=MarketGapAggregator(),
        review_client=AppStoreClient.from_config(config.app_store),
        reviews_per_app=config.app_store.reviews_per_app,
    )
