"""
GapScope CLI
============

Command-line interface for the review analysis pipeline.

Commands:
    search       - Search App Store apps
    fetch        - Fetch and store reviews of an app
    analyze      - Analyze an app (cached unless --force)
    show         - Show a cached analysis
    cached       - List cached analyses
    compare      - Compare cached analyses of several apps
    market-gaps  - Cross-app market gaps of cached analyses
    mvp          - Analyze missing apps, then score the MVP opportunity

Usage:
    python -m gapscope.orchestrator.cli search "habit tracker"
    python -m gapscope.orchestrator.cli analyze 284882215 --force
    python -m gapscope.orchestrator.cli market-gaps 284882215 389801252 --json
    python -m gapscope.orchestrator.cli mvp 284882215 389801252
"""

import argparse
import asyncio
import json
import logging
import sys

from .analysis_pipeline import InsufficientDataError, NoReviewsError, build_pipeline
from .logging_config import setup_logging
from ..ai.enricher import insight_summary
from ..cache.analysis_store import StorageError
from ..data.app_store_client import AppStoreError
from ..reviews.review_models import AnalysisResult
from ..scoring.market_gaps import MarketGapReport

logger = logging.getLogger(__name__)

KNOWN_ERRORS = (NoReviewsError, InsufficientDataError, AppStoreError, StorageError)


def print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def print_header(title: str) -> None:
    print("=" * 60)
    print(title)
    print("=" * 60)


def print_analysis(app_id: str, result: AnalysisResult, source: str = "cache") -> None:
    stats = result.sentiment_analysis

    print_header(f"ANALYSIS: {app_id} ({source})")
    print(f"Reviews: {result.review_count}")
    print(f"Average rating: {stats.average_score:.2f}")
    print(
        f"Sentiment: {stats.positive} positive / {stats.neutral} neutral / "
        f"{stats.negative} negative ({stats.positive_percentage:.0f}% positive)"
    )
    print(f"Last updated: {result.last_updated}")
    print()

    print("Top positive themes:")
    for theme in result.positive_themes[:10]:
        print(f"  + {theme.word:20} {theme.count}")
    print()
    print("Top negative themes:")
    for theme in result.negative_themes[:10]:
        print(f"  - {theme.word:20} {theme.count}")
    print()

    print("Market gaps:")
    for i, gap in enumerate(result.market_gaps, 1):
        print(f"  {i}. {gap.feature} [{gap.opportunity_score}/10]")
        print(f"     {gap.pain_point}")

    recommendations = insight_summary(result.ai_insights)
    if recommendations:
        print()
        print("AI recommendations:")
        for line in recommendations:
            print(f"  * {line}")


def print_report(report: MarketGapReport) -> None:
    score = report.mvp_opportunity_score
    features = report.mvp_recommended_features

    print_header(f"MARKET GAPS ({report.apps_analyzed} apps)")
    for i, gap in enumerate(report.market_gaps, 1):
        print(f"{i}. {gap.feature}")
        print(f"   Opportunity: {gap.opportunity_score}/10")
        if gap.affected_apps is not None:
            print(f"   Affected apps: {gap.affected_apps}, mentions: {gap.user_mentions}")
        print(f"   {gap.pain_point}")
    print()

    print(f"MVP opportunity score: {score.score}/10")
    print(f"  {score.reasoning}")
    print()

    for label, tier in (
        ("Core features", features.core),
        ("Differentiators", features.differentiators),
        ("Potential features", features.potential),
    ):
        if not tier:
            continue
        print(f"{label}:")
        for rec in tier:
            print(f"  - {rec.feature}: {rec.description}")


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_search(args, pipeline):
    """Search apps."""
    apps = pipeline.review_client.search(args.term, category=args.category, limit=args.limit)

    if args.json:
        print_json([a.to_dict() for a in apps])
        return 0

    if not apps:
        print(f"No apps found for '{args.term}'")
        return 0

    print_header(f"APPS MATCHING '{args.term}'")
    for i, app in enumerate(apps, 1):
        print(f"{i}. {app.name} ({app.app_id})")
        print(f"   {app.score:.1f} stars, {app.rating_count} ratings, {app.genre or 'N/A'}")
    return 0


def cmd_fetch(args, pipeline):
    """Fetch and store reviews."""
    app_id = pipeline.resolve_app_id(args.app_id)
    reviews = pipeline.fetch_reviews(app_id, args.limit)

    if args.json:
        print_json({"appId": app_id, "reviewsFetched": len(reviews)})
    else:
        print(f"Fetched {len(reviews)} reviews for app {app_id}")
    return 0


def cmd_analyze(args, pipeline):
    """Analyze one app."""
    app_id = pipeline.resolve_app_id(args.app_id)
    result, source = asyncio.run(pipeline.analyze_app(app_id, force=args.force))

    if args.json:
        print_json({"success": True, "data": result.to_dict(), "source": source})
    else:
        print_analysis(app_id, result, source)
    return 0


def cmd_show(args, pipeline):
    """Show a cached analysis."""
    app_id = pipeline.resolve_app_id(args.app_id)
    result = pipeline.get_analysis(app_id)
    if result is None:
        print(f"No cached analysis for app {app_id}")
        return 1

    if args.json:
        print_json(result.to_dict())
    else:
        print_analysis(app_id, result)
    return 0


def cmd_cached(args, pipeline):
    """List cached analyses."""
    entries = pipeline.list_cached()

    if args.json:
        print_json(entries)
        return 0

    if not entries:
        print("No cached analyses.")
        return 0

    for entry in entries:
        print(f"  {entry['appId']:15} {entry['lastUpdated']}")
    print(f"Total: {len(entries)} analyses")
    return 0


def cmd_compare(args, pipeline):
    """Compare several apps."""
    comparison = pipeline.compare(args.app_ids)

    if args.json:
        print_json(comparison)
        return 0

    print_header("SENTIMENT COMPARISON")
    for row in comparison["sentimentComparison"]:
        print(
            f"  {row['appId']:15} {row['positivePercentage']:5.1f}% positive  "
            f"{row['negativePercentage']:5.1f}% negative  avg {row['averageScore']:.2f}"
        )
    print()
    print("Shared negative themes:")
    for row in comparison["negativeThemeComparison"]:
        if len(row["counts"]) > 1:
            counts = ", ".join(f"{app}={count}" for app, count in row["counts"].items())
            print(f"  - {row['theme']}: {counts}")
    return 0


def cmd_market_gaps(args, pipeline):
    """Cross-app market gaps."""
    report = pipeline.market_gaps(args.app_ids, save_report=not args.no_save)

    if args.json:
        print_json(report.to_dict())
    else:
        print_report(report)
    return 0


def cmd_mvp(args, pipeline):
    """Analyze missing apps and score the MVP opportunity."""
    report = asyncio.run(pipeline.mvp_opportunity(args.app_ids))

    if args.json:
        print_json(report.to_dict())
    else:
        print_report(report)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gapscope",
        description="App Store review analysis and market gap discovery",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Write logs as JSON lines",
    )
    parser.add_argument(
        "--log-file",
        help="Also write logs to this file (rotated)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    search_parser = subparsers.add_parser("search", help="Search App Store apps")
    search_parser.add_argument("term", help="Search term")
    search_parser.add_argument("--category", type=int, help="App Store genre id")
    search_parser.add_argument(
        "--limit",
        type=int,
        default=25,
        help="Maximum apps to request (default: 25)",
    )

    fetch_parser = subparsers.add_parser("fetch", help="Fetch and store reviews")
    fetch_parser.add_argument("app_id", help="App Store id or bundle id")
    fetch_parser.add_argument("--limit", type=int, help="Maximum reviews to fetch")

    analyze_parser = subparsers.add_parser("analyze", help="Analyze an app")
    analyze_parser.add_argument("app_id", help="App Store id or bundle id")
    analyze_parser.add_argument(
        "--force",
        action="store_true",
        help="Re-analyze even if a cached analysis exists",
    )

    show_parser = subparsers.add_parser("show", help="Show a cached analysis")
    show_parser.add_argument("app_id", help="App Store id or bundle id")

    subparsers.add_parser("cached", help="List cached analyses")

    compare_parser = subparsers.add_parser("compare", help="Compare analyzed apps")
    compare_parser.add_argument("app_ids", nargs="+", help="App Store ids")

    gaps_parser = subparsers.add_parser("market-gaps", help="Cross-app market gaps")
    gaps_parser.add_argument("app_ids", nargs="+", help="App Store ids")
    gaps_parser.add_argument(
        "--no-save",
        action="store_true",
        help="Do not write the dated report file",
    )

    mvp_parser = subparsers.add_parser("mvp", help="MVP opportunity of a market")
    mvp_parser.add_argument("app_ids", nargs="+", help="App Store ids")

    return parser


COMMANDS = {
    "search": cmd_search,
    "fetch": cmd_fetch,
    "analyze": cmd_analyze,
    "show": cmd_show,
    "cached": cmd_cached,
    "compare": cmd_compare,
    "market-gaps": cmd_market_gaps,
    "mvp": cmd_mvp,
}


def main(argv=None, pipeline=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        "DEBUG" if args.verbose else "WARNING",
        json_output=args.log_json,
        log_file=args.log_file,
    )

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        pipeline = pipeline or build_pipeline()
        return handler(args, pipeline)
    except KNOWN_ERRORS as e:
        print(f"ERROR: {e}")
        return 1
    except ValueError as e:
        print(f"ERROR: Invalid configuration or input: {e}")
        return 1
    except Exception as e:
        print(f"ERROR: {args.command} failed: {e}")
        logger.exception(f"Command {args.command} failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
