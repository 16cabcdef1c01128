"""
Review Analysis Data Models
============================

Structured inputs and outputs of the per-app analysis pipeline.
Every output model serializes to the camelCase JSON shape stored in
the analysis cache and returned by the API.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum


class InvalidReviewInput(ValueError):
    """Review data the analysis cannot work with (empty set, bad rating)."""
    pass


class SentimentBucket(str, Enum):
    """Sentiment derived from the star rating alone."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


@dataclass(frozen=True)
class Review:
    """A single user review of an app."""
    id: str
    rating: int                 # 1 to 5 stars
    title: Optional[str] = None
    text: Optional[str] = None
    date: Optional[str] = None  # ISO-8601 as delivered by the source

    @property
    def document(self) -> str:
        """Title and body joined, the unit of theme extraction."""
        return f"{self.title or ''} {self.text or ''}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Review":
        """
        Build a Review from a stored or fetched dict.

        Accepts the App Store 'score' key as an alias of 'rating'.

        Raises:
            InvalidReviewInput: if the rating is missing or outside 1-5
        """
        raw_rating = data.get("rating", data.get("score"))
        try:
            rating = int(raw_rating)
        except (TypeError, ValueError):
            raise InvalidReviewInput(
                f"Review {data.get('id')!r} has no usable rating: {raw_rating!r}"
            )
        if rating != raw_rating and str(rating) != str(raw_rating).strip():
            raise InvalidReviewInput(
                f"Review {data.get('id')!r} has a non-integral rating: {raw_rating!r}"
            )
        if not 1 <= rating <= 5:
            raise InvalidReviewInput(
                f"Review {data.get('id')!r} rating {rating} is outside 1-5"
            )

        date = data.get("date")
        return cls(
            id=str(data.get("id", "")),
            rating=rating,
            title=data.get("title"),
            text=data.get("text"),
            date=str(date) if date is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "rating": self.rating,
            "title": self.title,
            "text": self.text,
            "date": self.date,
        }


@dataclass(frozen=True)
class Theme:
    """A normalized word and how often it was mentioned."""
    word: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"word": self.word, "count": self.count}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Theme":
        return cls(word=data["word"], count=int(data["count"]))


@dataclass(frozen=True)
class SentimentStats:
    """Rating-based sentiment distribution of one app."""
    positive: int
    negative: int
    neutral: int
    total: int
    average_score: float
    sentiment_ratio: float      # positive / max(negative, 1)

    @property
    def positive_percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return self.positive / self.total * 100

    @property
    def negative_percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return self.negative / self.total * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "positive": self.positive,
            "negative": self.negative,
            "neutral": self.neutral,
            "total": self.total,
            "averageScore": self.average_score,
            "sentimentRatio": self.sentiment_ratio,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SentimentStats":
        return cls(
            positive=int(data["positive"]),
            negative=int(data["negative"]),
            neutral=int(data["neutral"]),
            total=int(data["total"]),
            average_score=float(data["averageScore"]),
            sentiment_ratio=float(data["sentimentRatio"]),
        )


@dataclass(frozen=True)
class Gap:
    """
    A market gap: a theme read as an unmet user need.

    Single-app gaps only carry feature, pain_point, count and
    opportunity_score. Cross-app gaps fill the context fields as well.
    Unset fields are left out of the serialized form.
    """
    feature: str
    pain_point: str
    opportunity_score: int      # 0 to 10
    count: Optional[int] = None
    impact: Optional[int] = None
    market_spread: Optional[int] = None
    competition_gap: Optional[int] = None
    avg_competitor_rating: Optional[float] = None
    affected_apps: Optional[Dict[str, int]] = None
    user_mentions: Optional[int] = None

    @property
    def mentions(self) -> int:
        """Best available mention volume, for ranking ties."""
        if self.user_mentions is not None:
            return self.user_mentions
        return self.count or 0

    @property
    def impact_score(self) -> int:
        """Impact, or the raw count for single-app gaps."""
        if self.impact is not None:
            return self.impact
        return self.count or 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "feature": self.feature,
            "painPoint": self.pain_point,
        }
        optional = (
            ("count", self.count),
            ("impact", self.impact),
            ("marketSpread", self.market_spread),
            ("competitionGap", self.competition_gap),
        )
        for key, value in optional:
            if value is not None:
                data[key] = value
        data["opportunityScore"] = self.opportunity_score
        context = (
            ("avgCompetitorRating", self.avg_competitor_rating),
            ("affectedApps", dict(self.affected_apps) if self.affected_apps is not None else None),
            ("userMentions", self.user_mentions),
        )
        for key, value in context:
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Gap":
        rating = data.get("avgCompetitorRating")
        return cls(
            feature=data["feature"],
            pain_point=data.get("painPoint", ""),
            opportunity_score=int(data.get("opportunityScore", 0)),
            count=data.get("count"),
            impact=data.get("impact"),
            market_spread=data.get("marketSpread"),
            competition_gap=data.get("competitionGap"),
            avg_competitor_rating=float(rating) if rating is not None else None,
            affected_apps=data.get("affectedApps"),
            user_mentions=data.get("userMentions"),
        )


@dataclass(frozen=True)
class AnalysisResult:
    """
    Complete analysis of one app's reviews.

    Regenerated wholesale on refresh, never patched in place.
    """
    sentiment_analysis: SentimentStats
    positive_themes: List[Theme]
    negative_themes: List[Theme]
    market_gaps: List[Gap]
    review_count: int
    last_updated: str
    ai_insights: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentimentAnalysis": self.sentiment_analysis.to_dict(),
            "positiveThemes": [t.to_dict() for t in self.positive_themes],
            "negativeThemes": [t.to_dict() for t in self.negative_themes],
            "marketGaps": [g.to_dict() for g in self.market_gaps],
            "aiInsights": self.ai_insights,
            "reviewCount": self.review_count,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisResult":
        return cls(
            sentiment_analysis=SentimentStats.from_dict(data["sentimentAnalysis"]),
            positive_themes=[Theme.from_dict(t) for t in data.get("positiveThemes", [])],
            negative_themes=[Theme.from_dict(t) for t in data.get("negativeThemes", [])],
            market_gaps=[Gap.from_dict(g) for g in data.get("marketGaps", [])],
            review_count=int(data.get("reviewCount", 0)),
            last_updated=data.get("lastUpdated", ""),
            ai_insights=data.get("aiInsights"),
        )


@dataclass(frozen=True)
class EntityAnalysis:
    """An AnalysisResult tagged with the app it belongs to."""
    app_id: str
    analysis: AnalysisResult

    def to_dict(self) -> Dict[str, Any]:
        return {"appId": self.app_id, "analysis": self.analysis.to_dict()}


@dataclass
class EnrichmentRequest:
    """Payload sent to the AI enrichment service."""
    review_sample: List[str] = field(default_factory=list)
    positive_theme_words: List[str] = field(default_factory=list)
    negative_theme_words: List[str] = field(default_factory=list)
    total_reviews: int = 0
