"""
Advice Module

Key concerns and skincare recommendations derived from a feature set.
"""
from .concerns import derive_concerns, NO_CONCERNS
from .recommendations import RecommendationEntry, derive_recommendations

__all__ = [
    "derive_concerns",
    "NO_CONCERNS",
    "RecommendationEntry",
    "derive_recommendations",
]
