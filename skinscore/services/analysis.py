"""
Skin Analysis Service - Centralized Analysis Logic
"""
import asyncio
import functools
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from skinscore.config import settings
from skinscore.core.normalization import FeatureNormalizer, ServiceTier, warning_codes
from skinscore.core.provider import AILabClient, AILabConfig
from skinscore.core.summary import SkinAnalysisSummary, build_summary, feature_breakdown
from skinscore.utils import get_logger

logger = get_logger(__name__)

# Element -> (hours, element name, blessing). Checked in this order; the
# first element listing the hour wins, so 9 and 11 resolve to fire.
FENG_SHUI_ELEMENTS = (
    ("fire", (7, 8, 9, 11, 12, 13), "火", "離火時辰,美白提亮正當時,肌膚綻放光彩"),
    ("water", (19, 20, 21, 23, 0, 1), "水", "水元素滋養,深層保濕好時機,肌膚水潤飽滿"),
    ("earth", (14, 15, 16, 17, 18), "土", "土元素穩固,基礎保養最佳時,築牢美麗根基"),
    ("metal", (2, 3, 4, 5, 6), "金", "金元素緊緻,抗老修復好時光,肌膚重現彈性"),
    ("wood", (9, 10, 11), "木", "木元素清新,排毒淨化正當時,肌膚煥然一新"),
)
BALANCED_ELEMENT = ("balanced", "平衡", "陰陽調和,任何時刻都是美麗時刻")


def get_feng_shui_info(hour: int) -> Dict[str, Any]:
    """Element and blessing for the hour of day (0-23)."""
    for key, hours, element, blessing in FENG_SHUI_ELEMENTS:
        if hour in hours:
            return {"element": element, "blessing": blessing, "key": key, "hour": hour}
    key, element, blessing = BALANCED_ELEMENT
    return {"element": element, "blessing": blessing, "key": key, "hour": hour}


def _local_now() -> datetime:
    return datetime.now(timezone(timedelta(hours=settings.utc_offset_hours)))


@dataclass
class AnalysisRecord:
    """One stored analysis."""
    record_id: str
    tier: ServiceTier
    analyzed_at: datetime
    summary: SkinAnalysisSummary
    breakdown: Dict[str, Any]
    feng_shui: Dict[str, Any]
    member_id: Optional[str] = None
    request_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_id": self.record_id,
            "member_id": self.member_id,
            "tier": self.tier.value,
            "analyzed_at": self.analyzed_at.isoformat(),
            "summary": self.summary.to_dict(),
            "breakdown": self.breakdown,
            "feng_shui": dict(self.feng_shui),
            "request_id": self.request_id,
        }


class SkinAnalysisService:
    """
    Service class for the skin analysis pipeline.
    Decouples provider access, normalization and scoring from the endpoints.
    """

    def __init__(
        self,
        client: Optional[AILabClient] = None,
        normalizer: Optional[FeatureNormalizer] = None,
        clock: Optional[Callable[[], datetime]] = None,
        max_records: Optional[int] = None,
    ):
        self.client = client or AILabClient(AILabConfig.from_settings(settings))
        self.normalizer = normalizer or FeatureNormalizer()
        self._clock = clock or _local_now
        self.max_records = max(1, max_records if max_records is not None else settings.max_records)
        self._records: "OrderedDict[str, AnalysisRecord]" = OrderedDict()
        self._lock = threading.Lock()

    async def analyze_image(
        self,
        image: bytes,
        filename: str = "image.jpg",
        tier: Union[ServiceTier, str, None] = None,
        member_id: Optional[str] = None,
    ) -> AnalysisRecord:
        """
        Upload an image to the provider and score the result.

        Args:
            image: JPEG bytes
            filename: Original upload name
            tier: Service tier (defaults to the client's configured tier)
            member_id: Optional owner of the record

        Returns:
            The stored AnalysisRecord
        """
        service_tier = ServiceTier.from_string(tier) if tier is not None else self.client.config.tier
        logger.info(f"Analyzing image '{filename}' ({len(image)} bytes, tier={service_tier.value})")

        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(
            None, functools.partial(self.client.analyze_bytes, image, service_tier, filename)
        )
        return self._store(response.payload, service_tier, member_id, response.request_id, response.warnings)

    def summarize_payload(
        self,
        payload: Dict[str, Any],
        tier: Union[ServiceTier, str],
        member_id: Optional[str] = None,
    ) -> AnalysisRecord:
        """Score an already-fetched provider payload and store the record."""
        service_tier = ServiceTier.from_string(tier)
        if isinstance(payload, dict):
            request_id, warnings = payload.get("request_id"), warning_codes(payload.get("warning"))
        else:
            request_id, warnings = None, []
        return self._store(payload, service_tier, member_id, request_id, warnings)

    def get_record(self, record_id: str) -> Optional[AnalysisRecord]:
        with self._lock:
            return self._records.get(record_id)

    def list_records(
        self,
        member_id: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[AnalysisRecord], int]:
        """
        Page through stored records, newest first.

        Args:
            member_id: Only records owned by this member
            limit: Page size
            offset: Records to skip

        Returns:
            (page of records, total matching records)
        """
        with self._lock:
            records = list(reversed(self._records.values()))
        if member_id is not None:
            records = [r for r in records if r.member_id == member_id]
        return records[offset:offset + limit], len(records)

    def _store(
        self,
        payload: Any,
        tier: ServiceTier,
        member_id: Optional[str],
        request_id: Optional[str],
        warnings: List[str],
    ) -> AnalysisRecord:
        features = self.normalizer.normalize(payload, tier)
        summary = build_summary(features, warnings=warnings)
        analyzed_at = self._clock()

        record = AnalysisRecord(
            record_id=f"ANL-{uuid.uuid4().hex[:8].upper()}",
            tier=tier,
            analyzed_at=analyzed_at,
            summary=summary,
            breakdown=feature_breakdown(features),
            feng_shui=get_feng_shui_info(analyzed_at.hour),
            member_id=member_id,
            request_id=request_id,
        )
        with self._lock:
            self._records[record.record_id] = record
            while len(self._records) > self.max_records:
                evicted, _ = self._records.popitem(last=False)
                logger.debug(f"Evicted {evicted} (max_records={self.max_records})")

        logger.info(
            f"Stored {record.record_id} (member={member_id or 'guest'}, "
            f"overall={summary.overall_score}, element={record.feng_shui['key']})"
        )
        return record
