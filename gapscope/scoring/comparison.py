"""
Side-by-side comparison of analyzed apps.

Same input as the market gap aggregator, without any scoring:
percentage-normalized sentiment and per-theme count tables.
"""

from typing import Any, Dict, List, Sequence

from ..reviews.review_models import EntityAnalysis, Theme


def _theme_table(
    entities: Sequence[EntityAnalysis],
    positive: bool,
) -> List[Dict[str, Any]]:
    table: Dict[str, Dict[str, int]] = {}
    for entity in entities:
        analysis = entity.analysis
        themes: Sequence[Theme] = analysis.positive_themes if positive else analysis.negative_themes
        for theme in themes:
            table.setdefault(theme.word, {})[entity.app_id] = theme.count
    return [{"theme": word, "counts": counts} for word, counts in table.items()]


def compare_analysis(entities: Sequence[EntityAnalysis]) -> Dict[str, Any]:
    """
    Compare the sentiment and themes of several apps.

    Returns:
        {appIds, sentimentComparison, positiveThemeComparison,
         negativeThemeComparison}
    """
    sentiment_comparison = []
    for entity in entities:
        stats = entity.analysis.sentiment_analysis
        sentiment_comparison.append({
            "appId": entity.app_id,
            "positivePercentage": stats.positive_percentage,
            "negativePercentage": stats.negative_percentage,
            "averageScore": stats.average_score,
        })

    return {
        "appIds": [entity.app_id for entity in entities],
        "sentimentComparison": sentiment_comparison,
        "positiveThemeComparison": _theme_table(entities, positive=True),
        "negativeThemeComparison": _theme_table(entities, positive=False),
    }
