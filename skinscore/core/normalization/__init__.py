"""
Normalization Module

Turns tier-specific vision API payloads into the tier-agnostic feature set
consumed by every scorer.
"""
from .features import (
    ServiceTier,
    BoundingBox,
    BinaryFeature,
    SeverityFeature,
    RegionDetections,
    ScalarFeature,
    SkinToneFeature,
    SkinFeatureSet,
    ADVANCED_ONLY_FIELDS,
    PORE_FIELDS,
    WRINKLE_FIELDS,
)
from .normalizer import FeatureNormalizer, normalize, warning_codes

__all__ = [
    "ServiceTier",
    "BoundingBox",
    "BinaryFeature",
    "SeverityFeature",
    "RegionDetections",
    "ScalarFeature",
    "SkinToneFeature",
    "SkinFeatureSet",
    "ADVANCED_ONLY_FIELDS",
    "PORE_FIELDS",
    "WRINKLE_FIELDS",
    "FeatureNormalizer",
    "normalize",
    "warning_codes",
]
