"""
Summary Builder

Assembles the per-request ``SkinAnalysisSummary`` from a feature set by
running every scorer and deriver exactly once.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from skinscore.core.advice import RecommendationEntry, derive_concerns, derive_recommendations
from skinscore.core.normalization import SkinFeatureSet, warning_codes
from skinscore.core.scoring import ComponentScores, compute_component_scores, compute_overall_score
from skinscore.utils import get_logger

logger = get_logger(__name__)

# Provider warning codes -> user-facing text. The misspelling is the
# provider's own code.
WARNING_MESSAGES = {
    "imporper_headpose": "頭部角度不當,可能影響分析準確度。建議重新拍攝正面照片。",
}

BREAKDOWN_GROUPS = {
    "skin_quality": {"color": "skin_color", "age": "skin_age", "type": "skin_type"},
    "eyes": {
        "eye_pouch": "eye_pouch",
        "eye_pouch_severity": "eye_pouch_severity",
        "dark_circle": "dark_circle",
        "left_eyelids": "left_eyelids",
        "right_eyelids": "right_eyelids",
    },
    "wrinkles": {
        "forehead": "forehead_wrinkle",
        "crows_feet": "crows_feet",
        "eye_finelines": "eye_finelines",
        "glabella": "glabella_wrinkle",
        "nasolabial_fold": "nasolabial_fold",
        "nasolabial_fold_severity": "nasolabial_fold_severity",
    },
    "pores": {
        "forehead": "pores_forehead",
        "left_cheek": "pores_left_cheek",
        "right_cheek": "pores_right_cheek",
        "jaw": "pores_jaw",
    },
    "blemishes": {
        "blackhead": "blackhead",
        "acne": "acne",
        "mole": "mole",
        "skin_spot": "skin_spot",
        "closed_comedones": "closed_comedones",
    },
    "color_analysis": {"skintone_ita": "skintone_ita", "skin_hue_ha": "skin_hue_ha"},
}


@dataclass(frozen=True)
class SkinAnalysisSummary:
    """Read-only result of one analysis."""
    overall_score: int
    component_scores: ComponentScores
    skin_age: Optional[float]
    key_concerns: List[str] = field(default_factory=list)
    recommendations: List[RecommendationEntry] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    tier: str = "pro"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the API response shape."""
        return {
            "overall_score": self.overall_score,
            "skin_age": self.skin_age,
            "scores": self.component_scores.to_dict(),
            "key_concerns": list(self.key_concerns),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "warnings": list(self.warnings),
            "tier": self.tier,
        }


def interpret_warnings(codes: Any) -> List[str]:
    """
    Map provider warning codes to text. Unknown string codes pass through
    as-is; a non-list field or non-string entries are ignored.
    """
    return [WARNING_MESSAGES.get(code, code) for code in warning_codes(codes)]


def feature_breakdown(features: SkinFeatureSet) -> Dict[str, Any]:
    """Grouped, JSON-ready view of the raw features (None where missing)."""
    flat = features.to_dict()
    breakdown: Dict[str, Any] = {
        group: {label: flat[name] for label, name in members.items()}
        for group, members in BREAKDOWN_GROUPS.items()
    }
    breakdown["sensitivity"] = flat["sensitivity"]
    return breakdown


def build_summary(features: SkinFeatureSet, warnings: Any = ()) -> SkinAnalysisSummary:
    """
    Score and describe one feature set.

    Args:
        features: Normalized features
        warnings: Raw provider warning codes

    Returns:
        SkinAnalysisSummary
    """
    components = compute_component_scores(features)
    overall = compute_overall_score(features)
    concerns = derive_concerns(features)
    recommendations = derive_recommendations(features)

    skin_age = features.skin_age.value if features.skin_age is not None else None

    summary = SkinAnalysisSummary(
        overall_score=overall,
        component_scores=components,
        skin_age=skin_age or None,
        key_concerns=concerns,
        recommendations=recommendations,
        warnings=interpret_warnings(warnings),
        tier=features.tier.value,
    )
    logger.info(
        f"Summary built: tier={summary.tier} overall={overall} "
        f"concerns={len(concerns)} recommendations={len(recommendations)}"
    )
    return summary
