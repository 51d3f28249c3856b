"""
Key Concern Derivation

Ordered, human-readable (zh-TW) list of the notable findings in one
analysis. Purely descriptive: no scoring happens here.
"""
from typing import List, Optional, Sequence

from skinscore.core.normalization.features import SeverityFeature, SkinFeatureSet

NO_CONCERNS = "肌膚狀況良好 ✨"

DARK_CIRCLE_TYPES = ("無", "色素型", "血管型", "陰影型")
BLACKHEAD_LEVELS = ("無", "輕度", "中度", "嚴重")
SEVERITY_TEXT = {0: "輕度", 1: "中度", 2: "嚴重"}

SKIN_AGE_CONCERN_THRESHOLD = 40


def _lookup(labels: Sequence[str], index: int, fallback: str) -> str:
    if 0 <= index < len(labels):
        return labels[index] or fallback
    return fallback


def _severity_text(severity: Optional[SeverityFeature]) -> str:
    if severity is None:
        return ""
    return SEVERITY_TEXT.get(severity.value, "")


def _acne_level(count: int) -> str:
    if count > 10:
        return "嚴重"
    if count > 5:
        return "中度"
    return "輕度"


def _format_age(age: float) -> str:
    return str(int(age)) if float(age).is_integer() else str(age)


def derive_concerns(features: SkinFeatureSet) -> List[str]:
    """
    List key concerns in a fixed order.

    Order: acne, spots, dark circles, eye bags, wrinkles (forehead, crow's
    feet, nasolabial, eye fine lines, glabella), blackheads, closed
    comedones, elevated skin age. Never empty.
    """
    concerns: List[str] = []

    if features.acne is not None and features.acne.count > 0:
        count = features.acne.count
        concerns.append(f"{_acne_level(count)}痘痘問題 ({count} 處)")

    if features.skin_spot is not None and features.skin_spot.count > 0:
        count = features.skin_spot.count
        level = "明顯" if count > 15 else "輕微"
        concerns.append(f"{level}斑點色素沉澱 ({count} 處)")

    if features.dark_circle is not None and features.dark_circle.value > 0:
        concerns.append(f"黑眼圈 ({_lookup(DARK_CIRCLE_TYPES, features.dark_circle.value, '未知')})")

    if features.eye_pouch is not None and features.eye_pouch.value >= 1:
        concerns.append(f"{_severity_text(features.eye_pouch_severity)}眼袋問題")

    if features.forehead_wrinkle is not None and features.forehead_wrinkle.value >= 1:
        concerns.append("額頭皺紋")
    if features.crows_feet is not None and features.crows_feet.value >= 1:
        concerns.append("魚尾紋")
    if features.nasolabial_fold is not None and features.nasolabial_fold.value >= 1:
        concerns.append(f"{_severity_text(features.nasolabial_fold_severity)}法令紋")
    if features.eye_finelines is not None and features.eye_finelines.value >= 1:
        concerns.append("眼部細紋")
    if features.glabella_wrinkle is not None and features.glabella_wrinkle.value >= 1:
        concerns.append("眉間紋")

    if features.blackhead is not None and features.blackhead.value > 0:
        concerns.append(f"{_lookup(BLACKHEAD_LEVELS, features.blackhead.value, '')}黑頭問題")

    if features.closed_comedones is not None and features.closed_comedones.count > 0:
        concerns.append(f"閉口粉刺 ({features.closed_comedones.count} 處)")

    age = features.skin_age.value if features.skin_age is not None else None
    if age and age > SKIN_AGE_CONCERN_THRESHOLD:
        concerns.append(f"膚齡偏高 ({_format_age(age)} 歲)")

    return concerns or [NO_CONCERNS]
