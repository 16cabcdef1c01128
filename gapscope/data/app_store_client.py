"""
App Store Client
================

Fetches app reviews and app metadata from Apple's public iTunes endpoints.

Endpoints:
    Reviews: https://itunes.apple.com/{country}/rss/customerreviews/page={n}/id={id}/sortby=mostrecent/json
    Search:  https://itunes.apple.com/search?term=...&entity=software
    Lookup:  https://itunes.apple.com/lookup?id=... | bundleId=...

Strategy:
    Reviews come 50 per page, most recent first, at most 10 pages.
    Pages are fetched until the limit is reached or a page comes back
    empty. A failing page is retried after a longer pause; three
    consecutive failures end the fetch with what was collected.
"""

import logging
import time
import requests
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..reviews.review_models import InvalidReviewInput, Review

logger = logging.getLogger(__name__)


class AppStoreError(Exception):
    """App Store request error."""
    pass


@dataclass
class AppInfo:
    """Basic info about an App Store app."""
    app_id: str
    name: str
    bundle_id: Optional[str] = None
    developer: Optional[str] = None
    genre: Optional[str] = None
    score: float = 0.0
    rating_count: int = 0
    url: Optional[str] = None

    @classmethod
    def from_itunes(cls, data: Dict[str, Any]) -> "AppInfo":
        return cls(
            app_id=str(data.get("trackId", "")),
            name=data.get("trackName", ""),
            bundle_id=data.get("bundleId"),
            developer=data.get("sellerName") or data.get("artistName"),
            genre=data.get("primaryGenreName"),
            score=float(data.get("averageUserRating") or 0.0),
            rating_count=int(data.get("userRatingCount") or 0),
            url=data.get("trackViewUrl"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "appId": self.app_id,
            "name": self.name,
            "bundleId": self.bundle_id,
            "developer": self.developer,
            "genre": self.genre,
            "score": self.score,
            "ratingCount": self.rating_count,
            "url": self.url,
        }


def _label(entry: Dict[str, Any], key: str) -> Optional[str]:
    value = entry.get(key)
    if isinstance(value, dict):
        return value.get("label")
    return None


def parse_review_entry(entry: Dict[str, Any]) -> Optional[Review]:
    """
    Convert one RSS feed entry to a Review.

    Returns None for entries that are not reviews (the app header
    entry) or carry an unusable rating.
    """
    if not isinstance(entry, dict):
        return None
    rating = _label(entry, "im:rating")
    if rating is None:
        return None
    try:
        return Review.from_dict({
            "id": _label(entry, "id"),
            "rating": rating,
            "title": _label(entry, "title"),
            "text": _label(entry, "content"),
            "date": _label(entry, "updated"),
        })
    except InvalidReviewInput as e:
        logger.debug(f"Skipping review entry: {e}")
        return None


class AppStoreClient:
    """Client for the public iTunes search, lookup and review feeds."""

    BASE_URL = "https://itunes.apple.com"
    PAGE_SIZE = 50
    MAX_PAGES = 10
    MAX_FAILURES = 3

    def __init__(
        self,
        country: str = "us",
        timeout: float = 15.0,
        page_delay: float = 1.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.country = country
        self.timeout = timeout
        self.page_delay = page_delay
        self.session = session or requests.Session()
        self.sleep = sleep
        self._requests_made = 0

    @classmethod
    def from_config(cls, config) -> "AppStoreClient":
        """Build a client from an AppStoreConfig."""
        return cls(
            country=config.country,
            timeout=config.request_timeout,
            page_delay=config.page_delay,
        )

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise AppStoreError(f"Request to {url} failed: {e}")
        self._requests_made += 1

        if response.status_code != 200:
            raise AppStoreError(
                f"App Store error: {response.status_code} - {response.text[:200]}"
            )
        try:
            data = response.json()
        except ValueError as e:
            raise AppStoreError(f"Invalid JSON from {url}: {e}")
        if not isinstance(data, dict):
            raise AppStoreError(f"Unexpected {type(data).__name__} payload from {url}")
        return data

    # =========================================================================
    # REVIEWS
    # =========================================================================

    def fetch_review_page(self, app_id: str, page: int) -> List[Review]:
        """Fetch one page (1-based) of the most recent reviews."""
        url = (
            f"{self.BASE_URL}/{self.country}/rss/customerreviews/"
            f"page={page}/id={app_id}/sortby=mostrecent/json"
        )
        data = self._get_json(url)
        feed = data.get("feed")
        entries = feed.get("entry", []) if isinstance(feed, dict) else []
        if isinstance(entries, dict):
            entries = [entries]
        elif not isinstance(entries, list):
            entries = []

        reviews = []
        for entry in entries:
            review = parse_review_entry(entry)
            if review is not None:
                reviews.append(review)
        return reviews

    def fetch_reviews(self, app_id: str, limit: int = 200) -> List[Review]:
        """
        Fetch up to `limit` recent reviews of an app.

        Returns whatever could be collected; an app without reviews
        gives an empty list.
        """
        logger.info(f"Fetching up to {limit} reviews for app {app_id}...")

        reviews: List[Review] = []
        page = 1
        failures = 0

        while len(reviews) < limit and page <= self.MAX_PAGES:
            if page > 1:
                self.sleep(self.page_delay)
            try:
                batch = self.fetch_review_page(app_id, page)
            except AppStoreError as e:
                failures += 1
                logger.warning(f"Review page {page} for app {app_id} failed ({failures}): {e}")
                if failures >= self.MAX_FAILURES:
                    break
                self.sleep(self.page_delay * 5)
                continue

            failures = 0
            if not batch:
                break
            reviews.extend(batch)
            page += 1

        reviews = reviews[:limit]
        logger.info(f"Fetched {len(reviews)} reviews for app {app_id} ({self._requests_made} requests)")
        return reviews

    # =========================================================================
    # APPS
    # =========================================================================

    def search(
        self,
        term: str,
        category: Optional[int] = None,
        limit: int = 25,
        min_score: float = 3.5,
        min_ratings: int = 50,
    ) -> List[AppInfo]:
        """
        Search apps by term, optionally within a genre id.

        Only apps rated at least `min_score` with `min_ratings` ratings
        are returned, best rated first.
        """
        if not term:
            raise AppStoreError("A search term is required")

        params: Dict[str, Any] = {
            "term": term,
            "country": self.country,
            "entity": "software",
            "limit": limit,
        }
        if category:
            params["genreId"] = category

        data = self._get_json(f"{self.BASE_URL}/search", params)
        apps = [AppInfo.from_itunes(item) for item in data.get("results", [])]
        apps = [a for a in apps if a.score >= min_score and a.rating_count >= min_ratings]
        return sorted(apps, key=lambda a: a.score, reverse=True)

    def lookup(
        self,
        app_id: Optional[str] = None,
        bundle_id: Optional[str] = None,
    ) -> Optional[AppInfo]:
        """Look an app up by numeric id or bundle id. None if unknown."""
        if not app_id and not bundle_id:
            raise AppStoreError("lookup needs an app_id or a bundle_id")

        params: Dict[str, Any] = {"country": self.country}
        if app_id:
            params["id"] = app_id
        else:
            params["bundleId"] = bundle_id

        data = self._get_json(f"{self.BASE_URL}/lookup", params)
        results = data.get("results", [])
        if not results:
            return None
        return AppInfo.from_itunes(results[0])

    def resolve_app_id(self, identifier: str) -> str:
        """
        Turn a numeric id or a bundle id into a numeric App Store id.

        Raises:
            AppStoreError: if a bundle id is unknown
        """
        if identifier.isdigit():
            return identifier
        app = self.lookup(bundle_id=identifier)
        if app is None:
            raise AppStoreError(f"No App Store app with bundle id {identifier}")
        return app.app_id
