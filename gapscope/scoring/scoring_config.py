"""
Thresholds and weights for the GapScope heuristics.

Every constant used by theme extraction, gap identification, market-gap
aggregation and MVP scoring lives here.

PHILOSOPHY:
- All thresholds are explicit and documented
- No "magic number" in the scoring code
- Adjustable without touching the scoring logic

The weights below are empirical tunable heuristics, not derived from data.
The 5-point floors make every reported opportunity lean optimistic.
Change them only with product sign-off.
"""

import math
from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class ThemeConfig:
    """
    Configuration of theme extraction.

    Small samples get a lower minimum-mention threshold so that a
    handful of reviews still surfaces vocabulary.
    """
    max_themes: int = 30

    # (max_review_count, min_mentions), checked in order
    min_mention_tiers: Tuple[Tuple[int, int], ...] = (
        (5, 1),    # <=5 reviews: every word counts
        (20, 2),   # <=20 reviews: at least 2 mentions
    )
    default_min_mentions: int = 3

    min_token_length: int = 3


@dataclass(frozen=True)
class GapConfig:
    """
    Configuration of single-app gap identification.

    score = min(cap, round(count / count_scale * cap))
    """
    max_gaps: int = 10
    fallback_size: int = 5

    count_scale: float = 3.0
    negative_score_cap: int = 10
    positive_score_cap: int = 8   # "could be improved" gaps never look critical


@dataclass(frozen=True)
class MarketGapConfig:
    """
    Configuration of cross-app market-gap aggregation.

    opportunity = round(impact * impact_weight
                        + spread * spread_weight
                        + rating_factor * rating_weight)
    clamped to [min_opportunity, max_score].
    """
    max_gaps: int = 10
    min_apps_for_overlap: int = 2

    impact_scale: float = 3.0         # userImpact = totalCount / 3
    spread_per_app: float = 2.5       # marketSpread = appCount * 2.5
    competition_per_app: float = 2.0  # competitionGap = appCount * 2

    impact_weight: float = 0.5
    spread_weight: float = 0.2
    rating_weight: float = 3.0

    neutral_rating: float = 3.0
    max_rating: float = 5.0

    min_opportunity: int = 5
    max_score: int = 10

    # Synthesized fields for gaps borrowed from per-app analyses
    synthesized_value: int = 5
    positive_fallback_size: int = 5

    # Last resort when nothing at all can be derived
    default_gap_feature: str = "usability"
    default_gap_pain_point: str = (
        "Users find the user interface confusing or not intuitive"
    )
    default_gap_score: int = 7


@dataclass(frozen=True)
class MVPConfig:
    """
    Configuration of the MVP opportunity score and feature tiers.

    The score is the weighted mean of the top gaps' opportunity scores
    with descending weights 5, 4, 3, 2, 1.
    """
    weights: Tuple[int, ...] = (5, 4, 3, 2, 1)
    min_score: int = 5
    max_score: int = 10
    default_score: int = 6
    base_feature_count: int = 3
    default_base_features: Tuple[str, ...] = ("usability", "performance", "reliability")

    # (min_score, sentence), checked in order
    reasoning_bands: Tuple[Tuple[int, str], ...] = (
        (8, "Strong opportunity for a new MVP with multiple high-impact gaps to address"),
        (6, "Good opportunity for an MVP with several meaningful improvements over existing apps"),
        (4, "Moderate opportunity with some potential areas for improvement"),
        (0, "Limited opportunity in this space as existing apps address most user needs"),
    )
    limited_data_reasoning: str = (
        "Limited data available: no market gaps could be derived from the "
        "analyzed reviews, so a neutral default score is used"
    )

    core_count: int = 3
    differentiator_count: int = 2
    potential_count: int = 5


@dataclass
class ScoringConfig:
    """
    Global scoring configuration.

    Single entry point for calibration.
    """
    themes: ThemeConfig = field(default_factory=ThemeConfig)
    gaps: GapConfig = field(default_factory=GapConfig)
    market: MarketGapConfig = field(default_factory=MarketGapConfig)
    mvp: MVPConfig = field(default_factory=MVPConfig)

    def validate(self) -> bool:
        """Check that the configuration is internally consistent."""
        assert self.themes.max_themes > 0, "max_themes must be positive"
        assert self.gaps.fallback_size <= self.gaps.max_gaps, \
            f"fallback_size ({self.gaps.fallback_size}) > max_gaps ({self.gaps.max_gaps})"
        assert self.market.min_opportunity <= self.market.max_score, \
            "min_opportunity must not exceed max_score"
        assert self.mvp.min_score <= self.mvp.default_score <= self.mvp.max_score, \
            "default MVP score must lie within [min_score, max_score]"
        tiers = self.mvp.core_count + self.mvp.differentiator_count + self.mvp.potential_count
        assert tiers == self.market.max_gaps, \
            f"Feature tiers ({tiers}) != max market gaps ({self.market.max_gaps})"
        return True


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3, 5.5 -> 6)."""
    return int(math.floor(value + 0.5))


DEFAULT_CONFIG = ScoringConfig()
