"""
Skincare Recommendations

Rule-based routine advice keyed on the detected concerns. Each rule yields at
most one entry; a clean result gets a single maintenance entry.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List

from skinscore.core.normalization.features import SkinFeatureSet

ACNE_RECOMMENDATION_THRESHOLD = 5
SPOT_RECOMMENDATION_THRESHOLD = 3

# Wrinkle field -> label used in the anti-aging entry, in listing order.
WRINKLE_LABELS = (
    ("forehead_wrinkle", "抬頭紋"),
    ("crows_feet", "魚尾紋"),
    ("nasolabial_fold", "法令紋"),
)


@dataclass
class RecommendationEntry:
    """One piece of skincare advice."""
    issue: str
    suggestion: str
    ingredients: List[str] = field(default_factory=list)
    routine: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "issue": self.issue,
            "suggestion": self.suggestion,
            "ingredients": list(self.ingredients),
            "routine": self.routine,
        }


def _acne() -> RecommendationEntry:
    return RecommendationEntry(
        issue="痘痘問題",
        suggestion="建議使用含水楊酸(BHA)或茶樹精油的控油產品 (改善項目: 痘痘)",
        ingredients=["水楊酸", "茶樹精油", "杜鵑花酸"],
        routine="早晚清潔後使用,局部點塗於痘痘處",
    )


def _spots() -> RecommendationEntry:
    return RecommendationEntry(
        issue="斑點色素沉澱",
        suggestion="建議使用美白精華,搭配嚴格防曬 (改善項目: 色斑)",
        ingredients=["維生素C", "熊果素", "傳明酸", "菸鹼醯胺"],
        routine="晚上使用美白精華,白天務必防曬(SPF50+)",
    )


def _dark_circle() -> RecommendationEntry:
    return RecommendationEntry(
        issue="黑眼圈",
        suggestion="建議使用含咖啡因的眼霜,並改善睡眠品質 (改善項目: 黑眼圈)",
        ingredients=["咖啡因", "維生素K", "視黃醇"],
        routine="早晚輕輕拍打於眼周,確保每日睡眠7-8小時",
    )


def _eye_pouch() -> RecommendationEntry:
    return RecommendationEntry(
        issue="眼袋",
        suggestion="建議使用緊緻眼霜,搭配眼周按摩 (改善項目: 眼袋)",
        ingredients=["咖啡因", "勝肽", "玻尿酸"],
        routine="使用眼霜時搭配輕柔按摩,促進淋巴循環",
    )


def _wrinkles(labels: List[str]) -> RecommendationEntry:
    return RecommendationEntry(
        issue="皺紋細紋",
        suggestion=f"建議使用抗老精華,加強保濕 (改善項目: {'、'.join(labels)})",
        ingredients=["視黃醇", "勝肽", "玻尿酸", "維生素E"],
        routine="晚上使用抗老精華(從低濃度開始),搭配防曬",
    )


def _maintenance() -> RecommendationEntry:
    return RecommendationEntry(
        issue="肌膚狀況良好",
        suggestion="繼續保持良好的保養習慣!",
        ingredients=["基礎保濕", "防曬"],
        routine="維持清潔→保濕→防曬的日常保養",
    )


def derive_recommendations(features: SkinFeatureSet) -> List[RecommendationEntry]:
    """Build recommendations in acne, spots, dark circle, eye bag, wrinkle order."""
    entries: List[RecommendationEntry] = []

    if features.acne is not None and features.acne.count > ACNE_RECOMMENDATION_THRESHOLD:
        entries.append(_acne())

    if features.skin_spot is not None and features.skin_spot.count > SPOT_RECOMMENDATION_THRESHOLD:
        entries.append(_spots())

    if features.dark_circle is not None and features.dark_circle.value > 0:
        entries.append(_dark_circle())

    if features.eye_pouch is not None and features.eye_pouch.value >= 1:
        entries.append(_eye_pouch())

    wrinkle_labels = [
        label for name, label in WRINKLE_LABELS
        if getattr(features, name) is not None and getattr(features, name).value >= 1
    ]
    if wrinkle_labels:
        entries.append(_wrinkles(wrinkle_labels))

    if not entries:
        entries.append(_maintenance())

    return entries
