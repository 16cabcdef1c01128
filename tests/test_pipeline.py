"""
Integration tests for the analysis pipeline.

Runs store -> analyzer -> aggregator end to end against a temporary
data directory, with a stub review source instead of the App Store.

Usage:
    pytest tests/test_pipeline.py -v
"""

import asyncio
import json
import threading
from datetime import datetime, timezone

import pytest
from gapscope.cache.analysis_store import AnalysisStore
from gapscope.data.app_store_client import AppStoreError
from gapscope.orchestrator.analysis_pipeline import (
    AnalysisPipeline, InsufficientDataError, NoReviewsError, build_pipeline,
)
from gapscope.data.config import GapScopeConfig, LLMConfig, StorageConfig
from gapscope.reviews.review_models import Review
from gapscope.reviews.review_analyzer import ReviewAnalyzer
from gapscope.scoring.market_gaps import MarketGapAggregator


# ============================================================================
# TEST DATA
# ============================================================================

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_review(text: str, rating: int, review_id: str) -> Review:
    return Review(id=review_id, rating=rating, text=text)


APP_REVIEWS = {
    "111": [
        make_review("love the design", 5, "A1"),
        make_review("pricing is too high", 1, "A2"),
        make_review("pricing changed again, sync lost data", 2, "A3"),
    ],
    "222": [
        make_review("clean design", 4, "B1"),
        make_review("subscription pricing is a scam", 1, "B2"),
        make_review("crashes on launch", 1, "B3"),
    ],
    "333": [
        make_review("works fine", 3, "C1"),
    ],
}


class StubReviewSource:
    """Review source serving canned reviews and counting calls."""

    BUNDLES = {"com.example.notes": "111"}

    def __init__(self, reviews_by_app, failing=()):
        self.reviews_by_app = reviews_by_app
        self.failing = set(failing)
        self.calls = []
        self.threads = []

    def fetch_reviews(self, app_id, limit=200):
        self.calls.append((app_id, limit))
        self.threads.append(threading.get_ident())
        if app_id in self.failing:
            raise RuntimeError(f"feed for {app_id} is broken")
        return list(self.reviews_by_app.get(app_id, []))[:limit]

    def resolve_app_id(self, identifier):
        if identifier not in self.BUNDLES:
            raise AppStoreError(f"No App Store app with bundle id {identifier}")
        return self.BUNDLES[identifier]


def make_pipeline(tmp_path, source=None) -> AnalysisPipeline:
    return AnalysisPipeline(
        store=AnalysisStore(tmp_path),
        analyzer=ReviewAnalyzer(now=lambda: FIXED_NOW),
        aggregator=MarketGapAggregator(now=lambda: FIXED_NOW),
        review_client=source if source is not None else StubReviewSource(APP_REVIEWS),
    )


def run(coro):
    return asyncio.run(coro)


# ============================================================================
# SINGLE APP
# ============================================================================

class TestAnalyzeApp:

    def test_fresh_then_cache(self, tmp_path):
        pipeline = make_pipeline(tmp_path)

        first, source = run(pipeline.analyze_app("111"))
        assert source == "fresh"
        assert first.review_count == 3

        second, source = run(pipeline.analyze_app("111"))
        assert source == "cache"
        assert second.to_dict() == first.to_dict()
        assert len(pipeline.review_client.calls) == 1

    def test_force_recomputes_from_stored_reviews(self, tmp_path):
        pipeline = make_pipeline(tmp_path)
        run(pipeline.analyze_app("111"))

        _, source = run(pipeline.analyze_app("111", force=True))
        assert source == "fresh"
        assert len(pipeline.review_client.calls) == 1

    def test_persists_reviews_and_analysis(self, tmp_path):
        run(make_pipeline(tmp_path).analyze_app("111"))

        assert (tmp_path / "reviews" / "111.json").exists()
        stored = json.loads((tmp_path / "analysis" / "111.json").read_text())
        assert stored["reviewCount"] == 3
        assert stored["lastUpdated"] == FIXED_NOW.isoformat()

    def test_no_reviews(self, tmp_path):
        with pytest.raises(NoReviewsError):
            run(make_pipeline(tmp_path).analyze_app("999"))

    def test_no_source_and_nothing_stored(self, tmp_path):
        pipeline = AnalysisPipeline(store=AnalysisStore(tmp_path))
        with pytest.raises(NoReviewsError):
            run(pipeline.analyze_app("111"))

    def test_fetch_reviews_limit(self, tmp_path):
        pipeline = make_pipeline(tmp_path)
        reviews = pipeline.fetch_reviews("111", limit=2)

        assert len(reviews) == 2
        assert pipeline.review_client.calls == [("111", 2)]
        assert len(pipeline.store.load_reviews("111")) == 2

    def test_list_cached(self, tmp_path):
        pipeline = make_pipeline(tmp_path)
        run(pipeline.analyze_app("111"))
        run(pipeline.analyze_app("222"))

        assert sorted(e["appId"] for e in pipeline.list_cached()) == ["111", "222"]
        assert pipeline.get_analysis("333") is None

    def test_reviews_load_off_the_event_loop(self, tmp_path):
        pipeline = make_pipeline(tmp_path)

        async def analyze():
            loop_thread = threading.get_ident()
            await pipeline.analyze_app("111")
            return loop_thread

        loop_thread = run(analyze())
        assert pipeline.review_client.threads
        assert loop_thread not in pipeline.review_client.threads


class TestResolveAppId:

    def test_numeric_id_unchanged(self, tmp_path):
        assert make_pipeline(tmp_path).resolve_app_id("284882215") == "284882215"

    def test_bundle_id(self, tmp_path):
        assert make_pipeline(tmp_path).resolve_app_id("com.example.notes") == "111"

    def test_unknown_bundle(self, tmp_path):
        with pytest.raises(AppStoreError):
            make_pipeline(tmp_path).resolve_app_id("com.example.missing")

    def test_without_client(self, tmp_path):
        pipeline = AnalysisPipeline(store=AnalysisStore(tmp_path))
        assert pipeline.resolve_app_id("com.example.notes") == "com.example.notes"


# ============================================================================
# MULTI APP
# ============================================================================

class TestMultiApp:

    def setup_method(self):
        self.source = StubReviewSource(APP_REVIEWS)

    def test_compare_needs_two_analyses(self, tmp_path):
        pipeline = make_pipeline(tmp_path, self.source)
        run(pipeline.analyze_app("111"))

        with pytest.raises(InsufficientDataError):
            pipeline.compare(["111", "222"])

        run(pipeline.analyze_app("222"))
        comparison = pipeline.compare(["111", "222"])
        assert comparison["appIds"] == ["111", "222"]

    def test_market_gaps_needs_an_analysis(self, tmp_path):
        with pytest.raises(InsufficientDataError):
            make_pipeline(tmp_path, self.source).market_gaps(["111"])

    def test_market_gaps_shared_complaint(self, tmp_path):
        pipeline = make_pipeline(tmp_path, self.source)
        run(pipeline.analyze_app("111"))
        run(pipeline.analyze_app("222"))

        report = pipeline.market_gaps(["111", "222"])

        assert [g.feature for g in report.market_gaps] == ["pricing"]
        assert report.market_gaps[0].affected_apps == {"111": 2, "222": 1}
        assert report.apps_analyzed == 2

    def test_market_gaps_writes_dated_report(self, tmp_path):
        pipeline = make_pipeline(tmp_path, self.source)
        run(pipeline.analyze_app("111"))
        pipeline.market_gaps(["111"])

        report_path = tmp_path / "reports" / "market_gaps_2026-03-01.json"
        assert json.loads(report_path.read_text())["appsAnalyzed"] == 1

    def test_market_gaps_without_saving(self, tmp_path):
        pipeline = make_pipeline(tmp_path, self.source)
        run(pipeline.analyze_app("111"))
        pipeline.market_gaps(["111"], save_report=False)
        assert not (tmp_path / "reports").exists()

    def test_mvp_opportunity_analyzes_missing_apps(self, tmp_path):
        pipeline = make_pipeline(tmp_path, self.source)
        report = run(pipeline.mvp_opportunity(["111", "222", "999"]))

        assert report.apps_analyzed == 2
        assert 5 <= report.mvp_opportunity_score.score <= 10
        assert pipeline.get_analysis("111") is not None

    def test_mvp_opportunity_nothing_to_analyze(self, tmp_path):
        with pytest.raises(InsufficientDataError):
            run(make_pipeline(tmp_path, self.source).mvp_opportunity(["999"]))

    def test_mvp_opportunity_survives_failing_app(self, tmp_path):
        source = StubReviewSource(APP_REVIEWS, failing={"666"})
        pipeline = make_pipeline(tmp_path, source)

        report = run(pipeline.mvp_opportunity(["111", "666", "222"]))

        assert report.apps_analyzed == 2
        assert pipeline.get_analysis("666") is None
        assert [call[0] for call in source.calls] == ["111", "666", "222"]

    def test_repeated_ids_counted_once(self, tmp_path):
        pipeline = make_pipeline(tmp_path, self.source)
        run(pipeline.analyze_app("111"))
        assert pipeline.market_gaps(["111", "111"]).apps_analyzed == 1


# ============================================================================
# WIRING
# ============================================================================

class TestBuildPipeline:

    def test_build_from_config(self, tmp_path):
        config = GapScopeConfig(
            storage=StorageConfig(data_dir=str(tmp_path)),
            llm=LLMConfig(enabled=False),
        )
        pipeline = build_pipeline(config)

        assert pipeline.store.data_dir == tmp_path
        assert pipeline.analyzer.enricher is None
        assert pipeline.review_client is not None
        assert pipeline.reviews_per_app == config.app_store.reviews_per_app
