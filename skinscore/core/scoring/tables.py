"""
Scoring Tables

Every weight, threshold, clamp and default used by the scorers. Tuning a
metric means editing this module only.
"""
import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive scores (no banker's rounding)."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class StepTable:
    """
    Non-increasing step function over a count or ratio.

    ``steps`` are (upper_bound, score) pairs checked in order; the first bound
    the input does not exceed wins, otherwise ``otherwise``.
    """
    steps: Tuple[Tuple[float, int], ...]
    otherwise: int

    def score(self, x: float) -> int:
        for bound, score in self.steps:
            if x <= bound:
                return score
        return self.otherwise


@dataclass(frozen=True)
class LevelTable:
    """Score indexed by a severity level; unknown levels get ``unknown``."""
    scores: Tuple[int, ...]
    unknown: int

    def score(self, level: Optional[int]) -> int:
        if level is None or not 0 <= level < len(self.scores):
            return self.unknown
        return self.scores[level]


@dataclass(frozen=True)
class MetricPolicy:
    """Range and empty-input behaviour of one composite metric."""
    default: int
    clamp: Optional[Tuple[int, int]] = None

    def apply_clamp(self, score: int) -> int:
        if self.clamp is None:
            return score
        low, high = self.clamp
        return max(low, min(score, high))


# ---- Per-metric policy ----
# hydration/radiance/firmness clamp to [30, 95]; the four simple averages are
# left unclamped with their own defaults. Consumers rely on both ranges.
METRIC_POLICIES: Dict[str, MetricPolicy] = {
    "hydration": MetricPolicy(default=75, clamp=(30, 95)),
    "radiance": MetricPolicy(default=75, clamp=(30, 95)),
    "firmness": MetricPolicy(default=75, clamp=(30, 95)),
    "texture": MetricPolicy(default=80),
    "wrinkles": MetricPolicy(default=100),
    "pores": MetricPolicy(default=100),
    "pigmentation": MetricPolicy(default=90),
}

# ---- Hydration ----
HYDRATION_WEIGHTS = {"pores": 1.3, "blackhead": 1.2, "closed_comedones": 1.0}
HYDRATION_PORE_RATIO = StepTable(steps=((0.0, 95), (0.25, 85), (0.5, 70), (0.75, 55)), otherwise=40)
HYDRATION_BLACKHEAD = LevelTable(scores=(95, 80, 60, 40), unknown=70)
HYDRATION_COMEDONES = StepTable(steps=((0, 95), (3, 80), (8, 65), (15, 50)), otherwise=35)

# ---- Radiance ----
RADIANCE_WEIGHTS = {"skin_spot": 1.4, "acne": 1.2, "dark_circle": 1.1, "skintone_ita": 1.0}
RADIANCE_SPOTS = StepTable(steps=((0, 95), (3, 85), (8, 70), (15, 55), (25, 40)), otherwise=30)
RADIANCE_ACNE = StepTable(steps=((0, 95), (2, 80), (5, 65), (10, 50)), otherwise=35)
RADIANCE_MISSING_REGION_SCORE = 90
RADIANCE_DARK_CIRCLE = {"none": 95, "present": 65}
RADIANCE_SKINTONE = {"abnormal_lighting": 60, "normal": 85}

# ---- Firmness ----
# Visiting order: static wrinkles, dynamic wrinkles, then eye pouch.
FIRMNESS_WEIGHTS = {
    "forehead_wrinkle": 1.2,
    "glabella_wrinkle": 1.1,
    "crows_feet": 1.4,
    "nasolabial_fold": 1.5,
    "eye_finelines": 1.3,
    "eye_pouch": 1.2,
}
FIRMNESS_BINARY = {"absent": 95, "present": 70}
FIRMNESS_SEVERITY = LevelTable(scores=(75, 60, 45), unknown=70)

# ---- Simple averages ----
LINEAR_PENALTY_PER_LEVEL = 20
LINEAR_PENALTY_FLOOR = 0
PIGMENTATION_SPOT_PENALTY = 3
PIGMENTATION_SPOT_FLOOR = 40
PIGMENTATION_ACNE_PENALTY = 4
PIGMENTATION_ACNE_FLOOR = 50

# ---- Overall score ----
OVERALL_WEIGHTS = {
    "wrinkle": 1.5,
    "eye_pouch": 1.3,
    "dark_circle": 1.2,
    "pores": 1.0,
    "blackhead": 1.2,
    "acne": 1.3,
    "skin_spot": 1.1,
    "closed_comedones": 1.1,
}
OVERALL_BINARY = {"absent": 100, "present": 75}
OVERALL_MULTI_LEVEL = LevelTable(scores=(100, 75, 55, 35), unknown=50)
OVERALL_EYE_POUCH = {"absent": 100, "no_severity": 65}
OVERALL_EYE_POUCH_SEVERITY = LevelTable(scores=(70, 55, 40), unknown=65)
OVERALL_DARK_CIRCLE = {"none": 100, "present": 70}
OVERALL_ACNE = StepTable(steps=((0, 100), (2, 85), (5, 70), (10, 55), (20, 40)), otherwise=30)
OVERALL_SPOTS = StepTable(steps=((0, 100), (3, 85), (8, 70), (15, 55), (25, 45)), otherwise=35)
OVERALL_COMEDONES = StepTable(steps=((0, 100), (3, 80), (8, 65), (15, 50)), otherwise=35)

OVERALL_DEFAULT = 75
OVERALL_CLAMP = (25, 92)
AGE_BONUS_RANGE = (20, 35)
AGE_BONUS = 2
AGE_BONUS_CAP = 100
