"""
Review Tokenizer
================

Splits review text into normalized word tokens for theme counting.
Pure functions, no state.
"""

import re
from typing import Iterable, List

# Common English stopwords.
_ENGLISH_STOPWORDS = {
    "i", "me", "my", "myself", "we", "our", "ours", "ourselves", "you",
    "your", "yours", "yourself", "yourselves", "he", "him", "his", "himself",
    "she", "her", "hers", "herself", "it", "its", "itself", "they", "them",
    "their", "theirs", "themselves", "what", "which", "who", "whom", "this",
    "that", "these", "those", "am", "is", "are", "was", "were", "be", "been",
    "being", "have", "has", "had", "having", "do", "does", "did", "doing",
    "a", "an", "the", "and", "but", "if", "or", "because", "as", "until",
    "while", "of", "at", "by", "for", "with", "about", "against", "between",
    "into", "through", "during", "before", "after", "above", "below", "to",
    "from", "up", "down", "in", "out", "on", "off", "over", "under", "again",
    "further", "then", "once", "here", "there", "when", "where", "why",
    "how", "all", "any", "both", "each", "few", "more", "most", "other",
    "some", "such", "no", "nor", "not", "only", "own", "same", "so", "than",
    "too", "very", "s", "t", "can", "will", "just", "don", "should", "now",
}

# Words present in nearly every app review that carry no theme.
_DOMAIN_STOPWORDS = {
    "app", "use", "using", "used", "would", "could", "get", "got", "gets",
    "also", "even", "like", "one", "two", "make", "made", "making",
    "time", "day", "days", "week", "month", "year",
}

STOPWORDS = frozenset(_ENGLISH_STOPWORDS | _DOMAIN_STOPWORDS)

MIN_TOKEN_LENGTH = 3

_WORD_RE = re.compile(r"[^\W_]+")


def tokenize(text: str) -> List[str]:
    """Lowercase the text and split it into runs of letters and digits."""
    if not text:
        return []
    return _WORD_RE.findall(text.lower())


def is_theme_token(token: str, min_length: int = MIN_TOKEN_LENGTH) -> bool:
    """
    True if a token may become a theme.

    Rejects short tokens, stopwords and pure numbers.
    """
    return (
        len(token) >= min_length
        and token not in STOPWORDS
        and not token.isdigit()
    )


def filter_tokens(tokens: Iterable[str], min_length: int = MIN_TOKEN_LENGTH) -> List[str]:
    """Keep only the tokens that may become themes, in order."""
    return [t for t in tokens if is_theme_token(t, min_length)]


def theme_tokens(text: str, min_length: int = MIN_TOKEN_LENGTH) -> List[str]:
    """Tokenize and filter in one pass."""
    return filter_tokens(tokenize(text), min_length)
