"""
Feature Data Model

Tier-agnostic representation of one skin analysis. Every detection the vision
API can report is a statically declared, independently nullable field of
``SkinFeatureSet``; scorers never look at raw provider JSON.
"""
from dataclasses import dataclass, fields
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from skinscore.core.errors import UnsupportedTierError


class ServiceTier(str, Enum):
    """Service level of the upstream vision API."""
    BASIC = "basic"
    ADVANCED = "advanced"
    PRO = "pro"

    @classmethod
    def from_string(cls, name: Any) -> "ServiceTier":
        """Parse a tier tag. Unknown tags fail fast."""
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise UnsupportedTierError(name)
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise UnsupportedTierError(name)

    @property
    def max_image_mb(self) -> int:
        """Upload size limit enforced by the provider for this tier."""
        return 2 if self is ServiceTier.BASIC else 5


@dataclass(frozen=True)
class BoundingBox:
    """Pixel rectangle of one detection. Coordinates the provider omitted are None."""
    left: Optional[float] = None
    top: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {"left": self.left, "top": self.top, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class BinaryFeature:
    """Presence/absence detection (0 = absent, 1 = present)."""
    value: int
    confidence: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "confidence": self.confidence}


@dataclass(frozen=True)
class SeverityFeature:
    """Multi-level severity. Values above ``max_level`` are unknown."""
    value: int
    confidence: Optional[float] = None
    max_level: int = 3

    @property
    def is_known(self) -> bool:
        return 0 <= self.value <= self.max_level

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "confidence": self.confidence}


@dataclass(frozen=True)
class RegionDetections:
    """
    Variable-count spatial detections (acne, spots, comedones, moles).

    One rectangle per provider entry; ``confidences`` is index-aligned with
    ``rectangles`` (None where the provider gave no usable value).
    """
    rectangles: Tuple[BoundingBox, ...] = ()
    confidences: Tuple[Optional[float], ...] = ()

    @property
    def count(self) -> int:
        """Number of detections, always derived from the rectangles."""
        return len(self.rectangles)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rectangle": [r.to_dict() for r in self.rectangles],
            "confidence": list(self.confidences),
            "count": self.count,
        }


@dataclass(frozen=True)
class ScalarFeature:
    """Single numeric estimate, e.g. skin age in years."""
    value: float
    confidence: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "confidence": self.confidence}


@dataclass(frozen=True)
class SkinToneFeature:
    """ITA angle plus optional categorical skintone (0-5). Category 6 flags bad lighting."""
    ita: float
    skintone: Optional[int] = None

    ABNORMAL_LIGHTING = 6

    @property
    def is_abnormal_lighting(self) -> bool:
        return self.skintone == self.ABNORMAL_LIGHTING

    def to_dict(self) -> Dict[str, Any]:
        return {"ITA": self.ita, "skintone": self.skintone}


PORE_FIELDS = ("pores_forehead", "pores_left_cheek", "pores_right_cheek", "pores_jaw")
WRINKLE_FIELDS = ("forehead_wrinkle", "crows_feet", "nasolabial_fold", "eye_finelines", "glabella_wrinkle")

# Fields the basic tier never reports; normalization forces them to None.
ADVANCED_ONLY_FIELDS = (
    "skin_color",
    "skin_age",
    "eye_pouch_severity",
    "nasolabial_fold_severity",
    "closed_comedones",
    "skintone_ita",
    "skin_hue_ha",
    "sensitivity",
    "face_maps",
)


@dataclass(frozen=True)
class SkinFeatureSet:
    """
    Normalized per-request feature record.

    All detections are optional; a missing field is ``None``, never absent.
    Instances are immutable and carry no identity beyond their values.
    """
    tier: ServiceTier = ServiceTier.PRO

    # Skin quality
    skin_type: Optional[Mapping[str, Any]] = None
    skin_color: Optional[Mapping[str, Any]] = None
    skin_age: Optional[ScalarFeature] = None

    # Eyes
    left_eyelids: Optional[BinaryFeature] = None
    right_eyelids: Optional[BinaryFeature] = None
    eye_pouch: Optional[BinaryFeature] = None
    eye_pouch_severity: Optional[SeverityFeature] = None
    dark_circle: Optional[SeverityFeature] = None

    # Wrinkles
    forehead_wrinkle: Optional[BinaryFeature] = None
    crows_feet: Optional[BinaryFeature] = None
    eye_finelines: Optional[BinaryFeature] = None
    glabella_wrinkle: Optional[BinaryFeature] = None
    nasolabial_fold: Optional[BinaryFeature] = None
    nasolabial_fold_severity: Optional[SeverityFeature] = None

    # Pores
    pores_forehead: Optional[BinaryFeature] = None
    pores_left_cheek: Optional[BinaryFeature] = None
    pores_right_cheek: Optional[BinaryFeature] = None
    pores_jaw: Optional[BinaryFeature] = None

    # Blemishes
    blackhead: Optional[SeverityFeature] = None
    acne: Optional[RegionDetections] = None
    closed_comedones: Optional[RegionDetections] = None
    mole: Optional[RegionDetections] = None
    skin_spot: Optional[RegionDetections] = None

    # Colour analysis
    skintone_ita: Optional[SkinToneFeature] = None
    skin_hue_ha: Optional[Mapping[str, Any]] = None

    # Pass-through extras
    sensitivity: Optional[Mapping[str, Any]] = None
    face_maps: Optional[Mapping[str, Any]] = None

    @classmethod
    def feature_names(cls) -> List[str]:
        """All feature keys (everything except the tier tag)."""
        return [f.name for f in fields(cls) if f.name != "tier"]

    def present_fields(self) -> List[str]:
        return [name for name in self.feature_names() if getattr(self, name) is not None]

    def pore_features(self) -> List[BinaryFeature]:
        """Present pore detections in forehead, left cheek, right cheek, jaw order."""
        return [getattr(self, name) for name in PORE_FIELDS if getattr(self, name) is not None]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with explicit None for every missing field."""
        out: Dict[str, Any] = {"tier": self.tier.value}
        for name in self.feature_names():
            value = getattr(self, name)
            if value is None:
                out[name] = None
            elif isinstance(value, Mapping):
                out[name] = _thaw(value)
            else:
                out[name] = value.to_dict()
        return out


def freeze_mapping(value: Mapping[str, Any]) -> Mapping[str, Any]:
    """Read-only view for pass-through provider objects."""
    return MappingProxyType(dict(value))


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_thaw(v) for v in value]
    return value
