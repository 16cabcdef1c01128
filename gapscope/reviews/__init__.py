"""
GapScope Review Analysis
========================

Deterministic per-app analysis of app store reviews. No ML required.

Modules:
    review_models    - Data models (Review, Theme, SentimentStats, Gap, AnalysisResult)
    tokenizer        - Word tokens and stopword filtering
    theme_extractor  - Frequency-ranked themes per sentiment bucket
    sentiment        - Rating-based sentiment buckets and stats
    gap_identifier   - Single-app gaps with fallback ladder
    review_analyzer  - Full AnalysisResult of one app
"""

from .review_models import (
    AnalysisResult,
    EntityAnalysis,
    Gap,
    InvalidReviewInput,
    Review,
    SentimentStats,
    Theme,
)
from .theme_extractor import ThemeExtractor
from .sentiment import SentimentBucketer
from .gap_identifier import GapIdentifier
from .review_analyzer import ReviewAnalyzer
