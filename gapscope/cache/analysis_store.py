"""
GapScope JSON Store
===================

File-backed persistence for fetched reviews, per-app analyses and
market gap reports.

Layout under data_dir:
    reviews/<appId>.json                   list of reviews
    analysis/<appId>.json                  AnalysisResult
    reports/market_gaps_<YYYY-MM-DD>.json  MarketGapReport

Reads are forgiving: a missing or unreadable file is a cache miss.
Writes are not: a failed write raises StorageError.

Usage:
    store = AnalysisStore("./data")
    store.save_analysis("284882215", result)
    result = store.load_analysis("284882215")
"""

import json
import logging
import os
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from ..reviews.review_models import AnalysisResult, InvalidReviewInput, Review

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """JSON store write error."""
    pass


class AnalysisStore:
    """JSON files on disk, one per app and kind."""

    REVIEWS_DIR = "reviews"
    ANALYSIS_DIR = "analysis"
    REPORTS_DIR = "reports"

    def __init__(self, data_dir: Union[str, Path] = "./data"):
        self.data_dir = Path(data_dir)

    # =========================================================================
    # LOW LEVEL
    # =========================================================================

    def _path(self, kind: str, name: str) -> Path:
        # Names come from callers (app ids); they must stay inside data_dir/kind
        if not name or name in (".", "..") or Path(name).name != name or "\\" in name:
            raise StorageError(f"Invalid store key: {name!r}")
        return self.data_dir / kind / f"{name}.json"

    def _read_json(self, path: Path) -> Optional[Any]:
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable store file {path}: {e}")
            return None

    def _write_json(self, path: Path, payload: Any) -> Path:
        tmp_path = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except (OSError, TypeError) as e:
            logger.error(f"Failed to write {path}: {e}")
            raise StorageError(f"Failed to write {path}: {e}")
        logger.debug(f"Wrote {path}")
        return path

    # =========================================================================
    # REVIEWS
    # =========================================================================

    def save_reviews(self, app_id: str, reviews: Sequence[Review]) -> Path:
        return self._write_json(
            self._path(self.REVIEWS_DIR, app_id),
            [r.to_dict() for r in reviews],
        )

    def load_reviews(self, app_id: str) -> Optional[List[Review]]:
        """Stored reviews of an app, or None if none were saved."""
        data = self._read_json(self._path(self.REVIEWS_DIR, app_id))
        if not isinstance(data, list):
            return None

        reviews = []
        for item in data:
            try:
                reviews.append(Review.from_dict(item))
            except InvalidReviewInput as e:
                logger.warning(f"Skipping stored review of app {app_id}: {e}")
        return reviews

    # =========================================================================
    # ANALYSIS
    # =========================================================================

    def save_analysis(self, app_id: str, result: AnalysisResult) -> Path:
        return self._write_json(self._path(self.ANALYSIS_DIR, app_id), result.to_dict())

    def load_analysis(self, app_id: str) -> Optional[AnalysisResult]:
        """Cached analysis of an app, or None."""
        data = self._read_json(self._path(self.ANALYSIS_DIR, app_id))
        if not isinstance(data, dict):
            return None
        try:
            return AnalysisResult.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Corrupt cached analysis for app {app_id}: {e}")
            return None

    def list_cached_analyses(self) -> List[Dict[str, str]]:
        """
        List cached analyses as {appId, lastUpdated}, newest first.

        lastUpdated is the file modification time.
        """
        directory = self.data_dir / self.ANALYSIS_DIR
        if not directory.is_dir():
            return []

        entries = []
        for path in directory.glob("*.json"):
            mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
            entries.append({"appId": path.stem, "lastUpdated": mtime.isoformat()})

        return sorted(entries, key=lambda e: (e["lastUpdated"], e["appId"]), reverse=True)

    # =========================================================================
    # REPORTS
    # =========================================================================

    def save_report(self, report: Dict[str, Any], report_date: Optional[date] = None) -> Path:
        """Write a market gap report, one file per day."""
        report_date = report_date or datetime.now(timezone.utc).date()
        name = f"market_gaps_{report_date.isoformat()}"
        return self._write_json(self._path(self.REPORTS_DIR, name), report)

    def load_report(self, report_date: date) -> Optional[Dict[str, Any]]:
        return self._read_json(
            self._path(self.REPORTS_DIR, f"market_gaps_{report_date.isoformat()}")
        )
