"""
Single-App Gap Identifier
=========================

Compares the positive and negative themes of one app and turns the
complaints that are never echoed positively into candidate gaps.

The fallback ladder is an ordered tuple of strategies. The first one
returning a non-empty list wins, so output is non-empty whenever the
app has any theme at all:

    1. unmatched_negatives   negative words absent from positive words
    2. all_negatives         top negative words, overlap ignored
    3. improvable_positives  top positive words, "could be improved"

Usage:
    identifier = GapIdentifier()
    gaps = identifier.identify_gaps(positive_themes, negative_themes)
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from .review_models import Gap, Theme
from ..scoring.scoring_config import ScoringConfig, DEFAULT_CONFIG, round_half_up

logger = logging.getLogger(__name__)

GapStrategy = Callable[[Sequence[Theme], Sequence[Theme]], List[Gap]]


def complaint_pain_point(word: str) -> str:
    return f'Users complain about "{word}"'


def improvement_pain_point(word: str) -> str:
    return f'Users like "{word}" but it could be improved further'


class GapIdentifier:
    """Deterministic single-app gap finder with a three-tier fallback."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.config.validate()

    @property
    def strategies(self) -> Tuple[Tuple[str, GapStrategy], ...]:
        return (
            ("unmatched_negatives", self.unmatched_negatives),
            ("all_negatives", self.all_negatives),
            ("improvable_positives", self.improvable_positives),
        )

    def identify_gaps(
        self,
        positive_themes: Sequence[Theme],
        negative_themes: Sequence[Theme],
    ) -> List[Gap]:
        """
        Find the gaps of one app.

        Returns:
            At most max_gaps Gap entries. Empty only if both theme
            lists are empty.
        """
        for name, strategy in self.strategies:
            gaps = strategy(positive_themes, negative_themes)
            if gaps:
                logger.debug(f"Gap strategy '{name}' produced {len(gaps)} gaps")
                return gaps[:self.config.gaps.max_gaps]
        return []

    # =========================================================================
    # STRATEGIES
    # =========================================================================

    def unmatched_negatives(
        self,
        positive_themes: Sequence[Theme],
        negative_themes: Sequence[Theme],
    ) -> List[Gap]:
        """Negative themes whose word never shows up among positive themes."""
        positive_words = {theme.word for theme in positive_themes}
        return [
            self._complaint_gap(theme)
            for theme in negative_themes
            if theme.word not in positive_words
        ]

    def all_negatives(
        self,
        positive_themes: Sequence[Theme],
        negative_themes: Sequence[Theme],
    ) -> List[Gap]:
        """Top negative themes even when positives mention them too."""
        top = negative_themes[:self.config.gaps.fallback_size]
        return [self._complaint_gap(theme) for theme in top]

    def improvable_positives(
        self,
        positive_themes: Sequence[Theme],
        negative_themes: Sequence[Theme],
    ) -> List[Gap]:
        """Liked themes described as room for improvement, when nobody complains."""
        if negative_themes:
            return []
        cap = self.config.gaps.positive_score_cap
        top = positive_themes[:self.config.gaps.fallback_size]
        return [
            Gap(
                feature=theme.word,
                pain_point=improvement_pain_point(theme.word),
                count=theme.count,
                opportunity_score=self._scaled_score(theme.count, cap),
            )
            for theme in top
        ]

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _complaint_gap(self, theme: Theme) -> Gap:
        return Gap(
            feature=theme.word,
            pain_point=complaint_pain_point(theme.word),
            count=theme.count,
            opportunity_score=self._scaled_score(
                theme.count, self.config.gaps.negative_score_cap
            ),
        )

    def _scaled_score(self, count: int, cap: int) -> int:
        """min(cap, round(count / 3 * cap))"""
        return min(cap, round_half_up(count / self.config.gaps.count_scale * cap))
