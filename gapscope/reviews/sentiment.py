"""
Sentiment Bucketer
==================

Rating-based sentiment: 4-5 stars positive, 3 neutral, 1-2 negative.
No text classification is involved.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

from .review_models import InvalidReviewInput, Review, SentimentBucket, SentimentStats

logger = logging.getLogger(__name__)

POSITIVE_MIN_RATING = 4
NEGATIVE_MAX_RATING = 2


def classify_rating(rating: int) -> SentimentBucket:
    """Sentiment bucket of a single star rating."""
    if rating >= POSITIVE_MIN_RATING:
        return SentimentBucket.POSITIVE
    if rating <= NEGATIVE_MAX_RATING:
        return SentimentBucket.NEGATIVE
    return SentimentBucket.NEUTRAL


@dataclass
class BucketedReviews:
    """Reviews of one app split by sentiment."""
    positive: List[Review]
    neutral: List[Review]
    negative: List[Review]


class SentimentBucketer:
    """Partitions reviews by rating and summarizes the distribution."""

    def bucket(self, reviews: Sequence[Review]) -> BucketedReviews:
        """Split reviews into positive / neutral / negative lists."""
        buckets = BucketedReviews(positive=[], neutral=[], negative=[])
        for review in reviews:
            sentiment = classify_rating(review.rating)
            if sentiment is SentimentBucket.POSITIVE:
                buckets.positive.append(review)
            elif sentiment is SentimentBucket.NEGATIVE:
                buckets.negative.append(review)
            else:
                buckets.neutral.append(review)
        return buckets

    def compute_stats(self, reviews: Sequence[Review]) -> SentimentStats:
        """
        Compute the sentiment distribution of an app's reviews.

        Raises:
            InvalidReviewInput: if there are no reviews. An empty set is
                an upstream bug, not a zero-review app.
        """
        if not reviews:
            raise InvalidReviewInput("Cannot compute sentiment of an empty review set")

        buckets = self.bucket(reviews)
        total = len(reviews)
        positive = len(buckets.positive)
        negative = len(buckets.negative)

        return SentimentStats(
            positive=positive,
            negative=negative,
            neutral=len(buckets.neutral),
            total=total,
            average_score=sum(r.rating for r in reviews) / total,
            sentiment_ratio=positive / max(negative, 1),
        )
