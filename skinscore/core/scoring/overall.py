"""
Overall Score

Single 25-92 headline score. Each present detection contributes a
sub-score; the weighted mean gets a small bonus for skin age 20-35 before
the final clamp.
"""
from typing import List

from skinscore.core.normalization.features import WRINKLE_FIELDS, SkinFeatureSet
from skinscore.utils import get_logger
from . import tables as t
from .metrics import ScoreWeight, weighted_average

logger = get_logger(__name__)


def _binary(value: int) -> int:
    return t.OVERALL_BINARY["absent"] if value == 0 else t.OVERALL_BINARY["present"]


def _eye_pouch(features: SkinFeatureSet) -> int:
    if features.eye_pouch.value != 1:
        return t.OVERALL_EYE_POUCH["absent"]
    severity = features.eye_pouch_severity
    if severity is None or not severity.is_known:
        return t.OVERALL_EYE_POUCH["no_severity"]
    return t.OVERALL_EYE_POUCH_SEVERITY.score(severity.value)


def _collect(features: SkinFeatureSet) -> List[ScoreWeight]:
    pairs: List[ScoreWeight] = []

    for name in WRINKLE_FIELDS:
        feature = getattr(features, name)
        if feature is not None:
            pairs.append((_binary(feature.value), t.OVERALL_WEIGHTS["wrinkle"]))

    if features.eye_pouch is not None:
        pairs.append((_eye_pouch(features), t.OVERALL_WEIGHTS["eye_pouch"]))

    if features.dark_circle is not None:
        key = "none" if features.dark_circle.value == 0 else "present"
        pairs.append((t.OVERALL_DARK_CIRCLE[key], t.OVERALL_WEIGHTS["dark_circle"]))

    pores = features.pore_features()
    if pores:
        pore_avg = t.round_half_up(sum(_binary(p.value) for p in pores) / len(pores))
        pairs.append((pore_avg, t.OVERALL_WEIGHTS["pores"]))

    if features.blackhead is not None:
        level = features.blackhead.value if features.blackhead.is_known else None
        pairs.append((t.OVERALL_MULTI_LEVEL.score(level), t.OVERALL_WEIGHTS["blackhead"]))

    if features.acne is not None:
        pairs.append((t.OVERALL_ACNE.score(features.acne.count), t.OVERALL_WEIGHTS["acne"]))

    if features.skin_spot is not None:
        pairs.append((t.OVERALL_SPOTS.score(features.skin_spot.count), t.OVERALL_WEIGHTS["skin_spot"]))

    if features.closed_comedones is not None:
        score = t.OVERALL_COMEDONES.score(features.closed_comedones.count)
        pairs.append((score, t.OVERALL_WEIGHTS["closed_comedones"]))

    return pairs


def compute_overall_score(features: SkinFeatureSet) -> int:
    """
    Weighted overall skin score.

    Returns 75 when no scored detection is present. Skin age alone never
    contributes; it only adjusts a score that already exists.
    """
    pairs = _collect(features)
    if not pairs:
        return t.OVERALL_DEFAULT

    score = weighted_average(pairs)

    age = features.skin_age.value if features.skin_age is not None else None
    low, high = t.AGE_BONUS_RANGE
    if age and low <= age <= high:
        score = min(t.AGE_BONUS_CAP, score + t.AGE_BONUS)

    clamp_low, clamp_high = t.OVERALL_CLAMP
    final = max(clamp_low, min(score, clamp_high))
    logger.debug(f"Overall score {final} from {len(pairs)} contributions (age={age})")
    return final
