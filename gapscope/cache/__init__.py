"""
GapScope Storage
================

JSON file store for reviews, analyses and market gap reports.
"""

from .analysis_store import AnalysisStore, StorageError

__all__ = ["AnalysisStore", "StorageError"]
