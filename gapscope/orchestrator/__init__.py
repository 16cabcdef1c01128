"""
GapScope Orchestrator Module
============================

Orchestration layer: the analysis pipeline, logging setup and CLI.

Usage:
    from gapscope.orchestrator import build_pipeline

    pipeline = build_pipeline()
    report = pipeline.market_gaps(["284882215", "389801252"])
"""

from .analysis_pipeline import (
    AnalysisPipeline,
    InsufficientDataError,
    NoReviewsError,
    build_pipeline,
)
from .logging_config import setup_logging

__all__ = [
    "AnalysisPipeline",
    "InsufficientDataError",
    "NoReviewsError",
    "build_pipeline",
    "setup_logging",
]
