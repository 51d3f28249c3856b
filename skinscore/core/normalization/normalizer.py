"""
Feature Normalizer

Single point translating untyped provider JSON into a ``SkinFeatureSet``.
All "does this key exist" logic lives here; nothing downstream touches the
raw payload. This is a reshape step only, values are not rescaled.
"""
import math
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from skinscore.core.errors import MissingResultError
from skinscore.utils import get_logger
from .features import (
    ADVANCED_ONLY_FIELDS,
    BinaryFeature,
    BoundingBox,
    RegionDetections,
    ScalarFeature,
    SeverityFeature,
    ServiceTier,
    SkinFeatureSet,
    SkinToneFeature,
    freeze_mapping,
)

logger = get_logger(__name__)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def _as_level(value: Any) -> Optional[int]:
    """Non-negative integral detection value, else None."""
    number = _as_number(value)
    if number is None or number < 0 or number != int(number):
        return None
    return int(number)


def _confidence(raw: Mapping[str, Any]) -> Optional[float]:
    return _as_number(raw.get("confidence"))


def _parse_binary(raw: Any) -> Optional[BinaryFeature]:
    if not isinstance(raw, Mapping):
        return None
    value = _as_level(raw.get("value"))
    if value is None:
        return None
    return BinaryFeature(value=value, confidence=_confidence(raw))


def _severity_parser(max_level: int) -> Callable[[Any], Optional[SeverityFeature]]:
    def _parse(raw: Any) -> Optional[SeverityFeature]:
        if not isinstance(raw, Mapping):
            return None
        value = _as_level(raw.get("value"))
        if value is None:
            return None
        return SeverityFeature(value=value, confidence=_confidence(raw), max_level=max_level)
    return _parse


def _parse_box(raw: Any) -> BoundingBox:
    if not isinstance(raw, Mapping):
        return BoundingBox()
    return BoundingBox(*(_as_number(raw.get(k)) for k in ("left", "top", "width", "height")))


def _parse_regions(raw: Any) -> Optional[RegionDetections]:
    if not isinstance(raw, Mapping):
        return None
    rects = raw.get("rectangle", raw.get("rectangles"))
    if not isinstance(rects, (list, tuple)):
        return None
    confidences = raw.get("confidence", [])
    if not isinstance(confidences, (list, tuple)):
        confidences = []
    if len(confidences) != len(rects):
        logger.debug(f"Region confidence length {len(confidences)} != rectangle count {len(rects)}")
    return RegionDetections(
        rectangles=tuple(_parse_box(r) for r in rects),
        confidences=tuple(
            _as_number(confidences[i]) if i < len(confidences) else None
            for i in range(len(rects))
        ),
    )


def _parse_scalar(raw: Any) -> Optional[ScalarFeature]:
    if not isinstance(raw, Mapping):
        return None
    value = _as_number(raw.get("value"))
    if value is None or value < 0:
        return None
    return ScalarFeature(value=value, confidence=_confidence(raw))


def _parse_skintone(raw: Any) -> Optional[SkinToneFeature]:
    if not isinstance(raw, Mapping):
        return None
    ita = _as_number(raw.get("ITA"))
    if ita is None:
        return None
    return SkinToneFeature(ita=ita, skintone=_as_level(raw.get("skintone")))


def _parse_mapping(raw: Any) -> Optional[Mapping[str, Any]]:
    if not isinstance(raw, Mapping):
        return None
    return freeze_mapping(raw)


# Field -> parser. Order follows the provider's documented result layout.
FIELD_PARSERS: Dict[str, Callable[[Any], Any]] = {
    "skin_color": _parse_mapping,
    "skin_age": _parse_scalar,
    "skin_type": _parse_mapping,
    "left_eyelids": _parse_binary,
    "right_eyelids": _parse_binary,
    "eye_pouch": _parse_binary,
    "eye_pouch_severity": _severity_parser(2),
    "dark_circle": _severity_parser(3),
    "forehead_wrinkle": _parse_binary,
    "crows_feet": _parse_binary,
    "eye_finelines": _parse_binary,
    "glabella_wrinkle": _parse_binary,
    "nasolabial_fold": _parse_binary,
    "nasolabial_fold_severity": _severity_parser(2),
    "pores_forehead": _parse_binary,
    "pores_left_cheek": _parse_binary,
    "pores_right_cheek": _parse_binary,
    "pores_jaw": _parse_binary,
    "blackhead": _severity_parser(3),
    "acne": _parse_regions,
    "closed_comedones": _parse_regions,
    "mole": _parse_regions,
    "skin_spot": _parse_regions,
    "skintone_ita": _parse_skintone,
    "skin_hue_ha": _parse_mapping,
    "sensitivity": _parse_mapping,
    "face_maps": _parse_mapping,
}

# Provided at the payload top level when maps are requested.
TOP_LEVEL_FALLBACK = ("face_maps", "sensitivity")


class FeatureNormalizer:
    """
    Maps tier-specific provider results into the shared feature set.

    The tier is resolved once here; scorers are tier-agnostic.
    """

    def normalize(self, raw_payload: Any, tier: Union[ServiceTier, str]) -> SkinFeatureSet:
        """
        Build a ``SkinFeatureSet`` from a provider payload.

        Args:
            raw_payload: Full provider response body (must contain ``result``)
            tier: basic, advanced or pro

        Raises:
            UnsupportedTierError: tier tag not recognised
            MissingResultError: payload has no ``result`` object
        """
        service_tier = ServiceTier.from_string(tier)

        result = raw_payload.get("result") if isinstance(raw_payload, Mapping) else None
        if not isinstance(result, Mapping):
            request_id = raw_payload.get("request_id") if isinstance(raw_payload, Mapping) else None
            logger.error(f"Provider payload has no result object (request_id={request_id})")
            raise MissingResultError(request_id=request_id)

        if service_tier is ServiceTier.BASIC:
            values = self._map_basic(result)
        else:
            values = self._map_advanced(result, raw_payload)

        features = SkinFeatureSet(tier=service_tier, **values)
        logger.debug(f"Normalized {service_tier.value} result: {len(features.present_fields())} features present")
        return features

    def _map_basic(self, result: Mapping[str, Any]) -> Dict[str, Any]:
        values = {name: parser(result.get(name)) for name, parser in FIELD_PARSERS.items()}
        for name in ADVANCED_ONLY_FIELDS:
            values[name] = None
        return values

    def _map_advanced(self, result: Mapping[str, Any], payload: Mapping[str, Any]) -> Dict[str, Any]:
        values = {name: parser(result.get(name)) for name, parser in FIELD_PARSERS.items()}
        for name in TOP_LEVEL_FALLBACK:
            if values[name] is None:
                values[name] = FIELD_PARSERS[name](payload.get(name))
        return values


_default_normalizer = FeatureNormalizer()


def normalize(raw_payload: Any, tier: Union[ServiceTier, str]) -> SkinFeatureSet:
    """Module-level shortcut using a shared normalizer."""
    return _default_normalizer.normalize(raw_payload, tier)


def warning_codes(raw: Any) -> List[str]:
    """String warning codes from a provider ``warning`` field; anything else is ignored."""
    if not isinstance(raw, (list, tuple)):
        return []
    return [code for code in raw if isinstance(code, str)]
