"""
GapScope
========

App Store review analysis: sentiment, themes, single-app gaps and
cross-app market gaps with an MVP opportunity score.
"""

__version__ = "0.1.0"
