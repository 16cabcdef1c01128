"""
Theme Extractor (Deterministic)
================================

Turns a set of reviews into a ranked list of recurring words.
Raw term frequency over the whole set drives the ranking.
No LLM required. Fast, explainable, reproducible.

Usage:
    extractor = ThemeExtractor()
    themes = extractor.extract_themes(negative_reviews)
"""

import logging
from collections import Counter
from typing import List, Optional, Sequence

from .review_models import Review, Theme
from .tokenizer import theme_tokens
from ..scoring.scoring_config import ScoringConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)


class ThemeExtractor:
    """
    Bag-of-words theme extractor.

    Every review contributes "title text". Tokens are counted across
    the whole set, not per review, then kept when they clear a
    minimum-mention threshold that shrinks with the sample size.
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.config.validate()

    def min_mentions(self, review_count: int) -> int:
        """
        Minimum number of mentions for a word to become a theme.

        1 for <=5 reviews, 2 for <=20 reviews, 3 above.
        """
        for max_reviews, threshold in self.config.themes.min_mention_tiers:
            if review_count <= max_reviews:
                return threshold
        return self.config.themes.default_min_mentions

    def extract_themes(self, reviews: Sequence[Review]) -> List[Theme]:
        """
        Extract the most frequent words of a review set.

        Args:
            reviews: Reviews of one sentiment bucket.

        Returns:
            Up to max_themes Theme entries, sorted by count descending.
            Ties keep first-appearance order. Empty input gives [].
        """
        if not reviews:
            return []

        all_text = " ".join(review.document for review in reviews)
        tokens = theme_tokens(all_text, self.config.themes.min_token_length)

        word_counts = Counter(tokens)
        threshold = self.min_mentions(len(reviews))

        ranked = sorted(
            (item for item in word_counts.items() if item[1] >= threshold),
            key=lambda item: item[1],
            reverse=True,
        )
        themes = [
            Theme(word=word, count=count)
            for word, count in ranked[:self.config.themes.max_themes]
        ]

        logger.debug(
            f"Extracted {len(themes)} themes from {len(reviews)} reviews "
            f"({len(word_counts)} distinct words, min_mentions={threshold})"
        )
        return themes
