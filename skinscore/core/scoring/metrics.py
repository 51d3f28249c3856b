"""
Metric Scorers

Seven independent composite metrics computed from a ``SkinFeatureSet``.
Hydration, radiance and firmness are present-feature-only weighted averages:
a missing feature contributes neither score nor weight. Texture, wrinkles,
pores and pigmentation are plain means over whatever is present.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from skinscore.core.normalization.features import (
    PORE_FIELDS,
    WRINKLE_FIELDS,
    BinaryFeature,
    SeverityFeature,
    SkinFeatureSet,
)
from . import tables as t

ScoreWeight = Tuple[int, float]


@dataclass(frozen=True)
class ComponentScores:
    """The seven composite metrics of one analysis."""
    hydration: int
    radiance: int
    firmness: int
    texture: int
    wrinkles: int
    pores: int
    pigmentation: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "hydration": self.hydration,
            "radiance": self.radiance,
            "firmness": self.firmness,
            "texture": self.texture,
            "wrinkles": self.wrinkles,
            "pores": self.pores,
            "pigmentation": self.pigmentation,
        }


def weighted_average(pairs: List[ScoreWeight]) -> int:
    """round(sum(score*weight) / sum(weight)), accumulated in visiting order."""
    weighted_sum = 0.0
    weight_sum = 0.0
    for score, weight in pairs:
        weighted_sum += score * weight
        weight_sum += weight
    return t.round_half_up(weighted_sum / weight_sum)


def _finish(metric: str, pairs: List[ScoreWeight]) -> int:
    policy = t.METRIC_POLICIES[metric]
    if not pairs:
        return policy.default
    return policy.apply_clamp(weighted_average(pairs))


def _mean(metric: str, scores: List[int]) -> int:
    if not scores:
        return t.METRIC_POLICIES[metric].default
    return t.round_half_up(float(np.mean(scores)))


def _linear(value: int) -> int:
    return max(t.LINEAR_PENALTY_FLOOR, 100 - value * t.LINEAR_PENALTY_PER_LEVEL)


def _severity_level(severity: Optional[SeverityFeature]) -> Optional[int]:
    if severity is None or not severity.is_known:
        return None
    return severity.value


# ---- Weighted metrics ----

def hydration_score(features: SkinFeatureSet) -> int:
    pairs: List[ScoreWeight] = []

    pores = features.pore_features()
    if pores:
        issues = sum(1 for p in pores if p.value == 1)
        ratio = issues / len(pores)
        pairs.append((t.HYDRATION_PORE_RATIO.score(ratio), t.HYDRATION_WEIGHTS["pores"]))

    if features.blackhead is not None:
        level = _severity_level(features.blackhead)
        pairs.append((t.HYDRATION_BLACKHEAD.score(level), t.HYDRATION_WEIGHTS["blackhead"]))

    if features.closed_comedones is not None:
        score = t.HYDRATION_COMEDONES.score(features.closed_comedones.count)
        pairs.append((score, t.HYDRATION_WEIGHTS["closed_comedones"]))

    return _finish("hydration", pairs)


def radiance_score(features: SkinFeatureSet) -> int:
    """
    Spots and acne count as 90 when missing, but only once at least one
    radiance input exists; an input with none of them gets the default.
    """
    inputs = (features.skin_spot, features.acne, features.dark_circle, features.skintone_ita)
    if all(f is None for f in inputs):
        return t.METRIC_POLICIES["radiance"].default

    pairs: List[ScoreWeight] = []

    if features.skin_spot is not None:
        spots = t.RADIANCE_SPOTS.score(features.skin_spot.count)
    else:
        spots = t.RADIANCE_MISSING_REGION_SCORE
    pairs.append((spots, t.RADIANCE_WEIGHTS["skin_spot"]))

    if features.acne is not None:
        acne = t.RADIANCE_ACNE.score(features.acne.count)
    else:
        acne = t.RADIANCE_MISSING_REGION_SCORE
    pairs.append((acne, t.RADIANCE_WEIGHTS["acne"]))

    if features.dark_circle is not None:
        key = "none" if features.dark_circle.value == 0 else "present"
        pairs.append((t.RADIANCE_DARK_CIRCLE[key], t.RADIANCE_WEIGHTS["dark_circle"]))

    if features.skintone_ita is not None:
        key = "abnormal_lighting" if features.skintone_ita.is_abnormal_lighting else "normal"
        pairs.append((t.RADIANCE_SKINTONE[key], t.RADIANCE_WEIGHTS["skintone_ita"]))

    return _finish("radiance", pairs)


def _firmness_wrinkle(name: str, feature: BinaryFeature, features: SkinFeatureSet) -> int:
    if feature.value == 0:
        return t.FIRMNESS_BINARY["absent"]
    if name == "nasolabial_fold" and feature.value == 1:
        level = _severity_level(features.nasolabial_fold_severity)
        if level is not None:
            return t.FIRMNESS_SEVERITY.score(level)
    return t.FIRMNESS_BINARY["present"]


def firmness_score(features: SkinFeatureSet) -> int:
    pairs: List[ScoreWeight] = []

    for name, weight in t.FIRMNESS_WEIGHTS.items():
        if name == "eye_pouch":
            continue
        feature = getattr(features, name)
        if feature is not None:
            pairs.append((_firmness_wrinkle(name, feature, features), weight))

    if features.eye_pouch is not None:
        if features.eye_pouch.value == 1:
            # unknown or missing severity scores 70
            score = t.FIRMNESS_SEVERITY.score(_severity_level(features.eye_pouch_severity))
        else:
            score = t.FIRMNESS_BINARY["absent"]
        pairs.append((score, t.FIRMNESS_WEIGHTS["eye_pouch"]))

    return _finish("firmness", pairs)


# ---- Simple averages (unclamped) ----

def texture_score(features: SkinFeatureSet) -> int:
    scores = [_linear(p.value) for p in features.pore_features()]
    if features.blackhead is not None:
        scores.append(_linear(features.blackhead.value))
    return _mean("texture", scores)


def wrinkles_score(features: SkinFeatureSet) -> int:
    scores = [
        _linear(getattr(features, name).value)
        for name in WRINKLE_FIELDS
        if getattr(features, name) is not None
    ]
    return _mean("wrinkles", scores)


def pores_score(features: SkinFeatureSet) -> int:
    return _mean("pores", [_linear(getattr(features, n).value) for n in PORE_FIELDS if getattr(features, n) is not None])


def pigmentation_score(features: SkinFeatureSet) -> int:
    scores = []
    if features.skin_spot is not None:
        scores.append(max(t.PIGMENTATION_SPOT_FLOOR, 100 - features.skin_spot.count * t.PIGMENTATION_SPOT_PENALTY))
    if features.acne is not None:
        scores.append(max(t.PIGMENTATION_ACNE_FLOOR, 100 - features.acne.count * t.PIGMENTATION_ACNE_PENALTY))
    return _mean("pigmentation", scores)


def compute_component_scores(features: SkinFeatureSet) -> ComponentScores:
    """Run all seven scorers on one feature set."""
    return ComponentScores(
        hydration=hydration_score(features),
        radiance=radiance_score(features),
        firmness=firmness_score(features),
        texture=texture_score(features),
        wrinkles=wrinkles_score(features),
        pores=pores_score(features),
        pigmentation=pigmentation_score(features),
    )
