"""
Unit Tests for the Skin Analysis Service

Tests for the async analysis path, payload scoring, the record store and the
feng shui table.
"""
import re
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from skinscore.core.errors import MissingResultError, ProviderUnavailableError, UnsupportedTierError
from skinscore.core.normalization import ServiceTier
from skinscore.core.provider import ProviderResponse
from skinscore.services.analysis import SkinAnalysisService, get_feng_shui_info

TAIPEI = timezone(timedelta(hours=8))


def acne_payload(count: int = 7) -> dict:
    rects = [{"left": i, "top": 0, "width": 4, "height": 4} for i in range(count)]
    return {
        "error_code": 0,
        "request_id": "req-7",
        "warning": [],
        "result": {"acne": {"rectangle": rects}, "skin_age": {"value": 31}},
    }


# Fixtures
@pytest.fixture
def mock_client() -> MagicMock:
    client = MagicMock()
    client.config.tier = ServiceTier.PRO
    client.analyze_bytes.return_value = ProviderResponse(
        payload=acne_payload(), tier=ServiceTier.PRO, request_id="req-7"
    )
    return client


@pytest.fixture
def service(mock_client) -> SkinAnalysisService:
    return SkinAnalysisService(client=mock_client, clock=lambda: datetime(2026, 3, 1, 8, 30, tzinfo=TAIPEI))


class TestAnalyzeImage:
    """Tests for the async image path."""

    @pytest.mark.asyncio
    async def test_analyze_image(self, service, mock_client):
        record = await service.analyze_image(b"jpeg", filename="me.jpg", member_id="m-1")

        mock_client.analyze_bytes.assert_called_once_with(b"jpeg", ServiceTier.PRO, "me.jpg")
        assert re.fullmatch(r"ANL-[0-9A-F]{8}", record.record_id)
        assert record.member_id == "m-1"
        assert record.request_id == "req-7"
        assert record.summary.key_concerns == ["中度痘痘問題 (7 處)"]
        assert record.feng_shui["key"] == "fire"

    @pytest.mark.asyncio
    async def test_uses_client_warnings(self, service, mock_client):
        mock_client.analyze_bytes.return_value = ProviderResponse(
            payload=dict(acne_payload(), warning="low_light"),
            tier=ServiceTier.PRO,
            warnings=["low_light"],
        )
        record = await service.analyze_image(b"jpeg")
        assert record.summary.warnings == ["low_light"]

    @pytest.mark.asyncio
    async def test_explicit_tier(self, service, mock_client):
        await service.analyze_image(b"jpeg", tier="basic")
        assert mock_client.analyze_bytes.call_args.args[1] is ServiceTier.BASIC

    @pytest.mark.asyncio
    async def test_bad_tier_fails_before_upload(self, service, mock_client):
        with pytest.raises(UnsupportedTierError):
            await service.analyze_image(b"jpeg", tier="gold")
        mock_client.analyze_bytes.assert_not_called()

    @pytest.mark.asyncio
    async def test_provider_errors_propagate(self, service, mock_client):
        mock_client.analyze_bytes.side_effect = ProviderUnavailableError("down", attempts=3)
        with pytest.raises(ProviderUnavailableError):
            await service.analyze_image(b"jpeg")
        assert service.list_records() == ([], 0)


class TestSummarizePayload:
    """Tests for scoring already-fetched payloads."""

    def test_summarize(self, service):
        record = service.summarize_payload(acne_payload(12), "advanced", member_id="m-2")

        assert record.tier is ServiceTier.ADVANCED
        assert record.summary.overall_score == 42
        assert record.analyzed_at.isoformat() == "2026-03-01T08:30:00+08:00"

    def test_to_dict(self, service):
        data = service.summarize_payload(acne_payload(), "pro").to_dict()
        assert data["tier"] == "pro"
        assert data["analyzed_at"].endswith("+08:00")
        assert data["summary"]["scores"]["hydration"] == 75
        assert data["breakdown"]["blemishes"]["acne"]["count"] == 7
        assert data["feng_shui"] == {
            "element": "火",
            "blessing": "離火時辰,美白提亮正當時,肌膚綻放光彩",
            "key": "fire",
            "hour": 8,
        }

    @pytest.mark.parametrize("warning", [{"code": "x"}, 7, "imporper_headpose", [{"code": "x"}, 3]])
    def test_malformed_warning_field(self, service, warning):
        payload = dict(acne_payload(), warning=warning)
        record = service.summarize_payload(payload, "pro")
        assert record.summary.warnings == []

    def test_warning_codes_mapped(self, service):
        payload = dict(acne_payload(), warning=["imporper_headpose", None, "low_light"])
        warnings = service.summarize_payload(payload, "pro").summary.warnings
        assert warnings == ["頭部角度不當,可能影響分析準確度。建議重新拍攝正面照片。", "low_light"]

    def test_missing_result(self, service):
        with pytest.raises(MissingResultError):
            service.summarize_payload({"error_code": 0}, "pro")
        assert service.list_records() == ([], 0)


class TestRecordStore:
    """Tests for the in-memory record store."""

    def test_get_record(self, service):
        record = service.summarize_payload(acne_payload(), "pro")
        assert service.get_record(record.record_id) is record
        assert service.get_record("ANL-00000000") is None

    def test_list_by_member_newest_first(self, service):
        first = service.summarize_payload(acne_payload(), "pro", member_id="a")
        service.summarize_payload(acne_payload(), "pro", member_id="b")
        last = service.summarize_payload(acne_payload(), "pro", member_id="a")

        records, total = service.list_records()
        assert total == 3
        assert records[0] is last

        records, total = service.list_records(member_id="a")
        assert total == 2
        assert records == [last, first]

    def test_list_pages(self, service):
        made = [service.summarize_payload(acne_payload(), "pro") for _ in range(5)]

        records, total = service.list_records(limit=2, offset=2)

        assert total == 5
        assert records == [made[2], made[1]]

    def test_oldest_records_evicted(self, mock_client):
        service = SkinAnalysisService(client=mock_client, max_records=2)
        made = [service.summarize_payload(acne_payload(), "pro") for _ in range(3)]

        assert service.get_record(made[0].record_id) is None
        assert service.get_record(made[2].record_id) is made[2]
        assert service.list_records() == ([made[2], made[1]], 2)


    def test_ids_unique(self, service):
        ids = {service.summarize_payload(acne_payload(), "pro").record_id for _ in range(20)}
        assert len(ids) == 20


class TestFengShui:
    """Tests for the hour -> element table."""

    @pytest.mark.parametrize("hour,key", [
        (7, "fire"),
        (9, "fire"),
        (10, "wood"),
        (11, "fire"),
        (13, "fire"),
        (14, "earth"),
        (18, "earth"),
        (19, "water"),
        (0, "water"),
        (1, "water"),
        (2, "metal"),
        (6, "metal"),
        (22, "balanced"),
    ])
    def test_element_by_hour(self, hour, key):
        info = get_feng_shui_info(hour)
        assert info["key"] == key
        assert info["hour"] == hour

    def test_balanced(self):
        info = get_feng_shui_info(22)
        assert info["element"] == "平衡"
        assert info["blessing"] == "陰陽調和,任何時刻都是美麗時刻"
