"""
GapScope AI Enricher
====================

Optional LLM pass over a sample of reviews and the extracted themes.

The enricher is an injected capability: callers pass one in, or None
to disable it. It never raises. A transport error, a timeout or a
disabled client all end up as "no insights" (None).

Usage:
    enricher = AIEnricher(get_llm_client(), rng=random.Random(42))
    insights = await enricher.enrich(reviews, positive_themes, negative_themes)
"""

import asyncio
import json
import logging
import random
from typing import Any, Dict, List, Optional, Sequence

from .llm_client import LLMClient, get_llm_client, strip_code_fence
from ..reviews.review_models import EnrichmentRequest, Review, Theme

logger = logging.getLogger(__name__)


ENRICHMENT_SYSTEM = (
    "You are a product analyst specializing in mobile app reviews and "
    "identifying market opportunities for MVP development."
)

ENRICHMENT_PROMPT = """I have {total_reviews} reviews for an iOS app. Here's a sample:

{review_sample}

Positive themes: {positive_themes}
Negative themes: {negative_themes}

Based on these reviews, please provide:
1. What are the main pain points users experience?
2. What features do users love the most?
3. What market gaps or opportunities do you see?
4. What specific features could a new app implement to exploit these gaps?
5. What would be your top 3 recommendations for improving this app?
6. Provide an opportunity score (1-10) for building a new app in this space, with justification.

Format your response as JSON with these keys: painPoints, lovedFeatures, marketGaps, exploitableFeatures, recommendations, opportunityScore, scoreJustification."""

INSIGHT_KEYS = (
    "painPoints",
    "lovedFeatures",
    "marketGaps",
    "exploitableFeatures",
    "recommendations",
    "opportunityScore",
    "scoreJustification",
)


class AIEnricher:
    """
    LLM-backed review enrichment.

    The review sample is drawn with an injected random source so that
    tests can seed it. Sampling never touches the deterministic themes.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        rng: Optional[random.Random] = None,
        sample_size: int = 20,
        timeout: float = 30.0,
    ):
        self.llm_client = llm_client
        self.rng = rng or random.Random()
        self.sample_size = sample_size
        self.timeout = timeout

    def build_request(
        self,
        reviews: Sequence[Review],
        positive_themes: Sequence[Theme],
        negative_themes: Sequence[Theme],
    ) -> EnrichmentRequest:
        """Sample reviews and collect theme words."""
        size = min(len(reviews), self.sample_size)
        sample = self.rng.sample(list(reviews), size)
        return EnrichmentRequest(
            review_sample=[f'"{r.text or ""}" (Rating: {r.rating}/5)' for r in sample],
            positive_theme_words=[t.word for t in positive_themes],
            negative_theme_words=[t.word for t in negative_themes],
            total_reviews=len(reviews),
        )

    def build_prompt(self, request: EnrichmentRequest) -> str:
        return ENRICHMENT_PROMPT.format(
            total_reviews=request.total_reviews,
            review_sample="\n\n".join(request.review_sample),
            positive_themes=", ".join(request.positive_theme_words),
            negative_themes=", ".join(request.negative_theme_words),
        )

    async def enrich(
        self,
        reviews: Sequence[Review],
        positive_themes: Sequence[Theme],
        negative_themes: Sequence[Theme],
    ) -> Optional[Dict[str, Any]]:
        """
        Ask the LLM for insights on an app's reviews.

        Returns:
            The parsed JSON object, {"rawInsights": text} when the answer
            is not JSON, or None on any failure.
        """
        if not reviews:
            return None

        request = self.build_request(reviews, positive_themes, negative_themes)

        try:
            response = await asyncio.wait_for(
                self.llm_client.generate(
                    prompt=self.build_prompt(request),
                    system=ENRICHMENT_SYSTEM,
                    max_tokens=1200,
                    temperature=0.7,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"AI insights timed out after {self.timeout}s")
            return None
        except Exception as e:
            logger.warning(f"AI insights failed: {e}")
            return None

        logger.debug(
            f"AI insights: {response.provider.value}/{response.model}, "
            f"{response.total_tokens} tokens"
        )
        return parse_insights(response.content)


def parse_insights(content: str) -> Dict[str, Any]:
    """Parse an LLM answer, keeping the raw text if it is not a JSON object."""
    try:
        parsed = json.loads(strip_code_fence(content))
    except json.JSONDecodeError:
        return {"rawInsights": content}

    if not isinstance(parsed, dict):
        return {"rawInsights": content}

    missing = [key for key in INSIGHT_KEYS if key not in parsed]
    if missing:
        logger.debug(f"AI insights missing keys: {', '.join(missing)}")
    return parsed


def build_enricher(config, rng: Optional[random.Random] = None) -> Optional[AIEnricher]:
    """
    Build the enricher described by an LLMConfig, or None when disabled.

    Args:
        config: gapscope.data.config.LLMConfig
        rng: Optional seeded random source for review sampling
    """
    if not config.enabled:
        logger.info("AI insights disabled by configuration")
        return None
    if not config.has_credentials:
        logger.info("No LLM API key configured - AI insights disabled")
        return None

    provider = None if config.provider in ("", "auto") else config.provider
    client = get_llm_client(
        provider=provider,
        model=config.model or None,
        openai_api_key=config.openai_api_key,
        anthropic_api_key=config.anthropic_api_key,
        timeout=config.timeout_seconds,
    )
    if client is None:
        return None

    return AIEnricher(
        client,
        rng=rng,
        sample_size=config.sample_size,
        timeout=config.timeout_seconds,
    )


def insight_summary(insights: Optional[Dict[str, Any]]) -> List[str]:
    """Flatten the recommendations of an insights object for display."""
    if not insights:
        return []
    recommendations = insights.get("recommendations") or []
    if isinstance(recommendations, str):
        return [recommendations]
    return [str(r) for r in recommendations]
