"""
Scoring Module

Composite skin metrics and the overall score, computed from a normalized
feature set.
"""
from .tables import round_half_up, METRIC_POLICIES
from .metrics import (
    ComponentScores,
    compute_component_scores,
    hydration_score,
    radiance_score,
    firmness_score,
    texture_score,
    wrinkles_score,
    pores_score,
    pigmentation_score,
)
from .overall import compute_overall_score

__all__ = [
    "round_half_up",
    "METRIC_POLICIES",
    "ComponentScores",
    "compute_component_scores",
    "hydration_score",
    "radiance_score",
    "firmness_score",
    "texture_score",
    "wrinkles_score",
    "pores_score",
    "pigmentation_score",
    "compute_overall_score",
]
