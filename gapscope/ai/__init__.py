"""
GapScope AI Module
==================

Optional LLM enrichment of review analyses. The deterministic
pipeline never depends on it.
"""

from .llm_client import LLMClient, get_llm_client
from .enricher import AIEnricher, build_enricher

__all__ = [
    "LLMClient",
    "get_llm_client",
    "AIEnricher",
    "build_enricher",
]
