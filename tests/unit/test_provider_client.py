"""
Unit Tests for the AILab Provider Client

HTTP is mocked with unittest.mock; no request leaves the process.
"""
import base64
from unittest.mock import MagicMock, patch

import pytest
import requests

from skinscore.core.errors import InvalidImageError, ProviderError, ProviderUnavailableError
from skinscore.core.normalization import ServiceTier
from skinscore.core.provider import AILabClient, AILabConfig, ENDPOINTS

JPEG = b"\xff\xd8\xff\xe0fake-jpeg-body"


def make_response(status_code: int = 200, body=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.reason = "Reason"
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body if body is not None else {}
    return response


def ok_body(**extra) -> dict:
    body = {"error_code": 0, "request_id": "req-1", "log_id": "log-1", "result": {"acne": {"rectangle": []}}}
    body.update(extra)
    return body


# Fixtures
@pytest.fixture
def sleep() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(sleep) -> AILabClient:
    config = AILabConfig(api_key="test-key-123456789", tier="pro", max_retries=3, retry_delay_seconds=1.0)
    return AILabClient(config, sleep=sleep)


class TestConfig:
    """Tests for AILabConfig."""

    def test_from_settings(self):
        settings = MagicMock(
            ailab_api_key="abc",
            ailab_base_url="https://example.test",
            default_tier="basic",
            request_timeout_seconds=5.0,
            max_retries=2,
            retry_delay_seconds=0.5,
        )
        config = AILabConfig.from_settings(settings)
        assert config.tier is ServiceTier.BASIC
        assert config.base_url == "https://example.test"
        assert config.max_retries == 2

    def test_bad_default_tier(self):
        with pytest.raises(ValueError):
            AILabConfig(api_key="k", tier="gold")


class TestRequests:
    """Tests for the outgoing request."""

    @patch("skinscore.core.provider.client.requests.post")
    def test_success(self, mock_post, client):
        mock_post.return_value = make_response(200, ok_body(warning=["imporper_headpose"]))

        response = client.analyze_bytes(JPEG)

        assert response.tier is ServiceTier.PRO
        assert response.request_id == "req-1"
        assert response.log_id == "log-1"
        assert response.warnings == ["imporper_headpose"]
        assert "result" in response.payload
        assert client.request_count == 1

    @patch("skinscore.core.provider.client.requests.post")
    def test_pro_request_shape(self, mock_post, client):
        mock_post.return_value = make_response(200, ok_body())

        client.analyze_bytes(JPEG, filename="face.jpg")

        args, kwargs = mock_post.call_args
        assert args[0] == "https://www.ailabapi.com" + ENDPOINTS[ServiceTier.PRO]
        assert kwargs["headers"] == {"ailabapi-api-key": "test-key-123456789"}
        assert kwargs["files"]["image"] == ("face.jpg", JPEG, "image/jpeg")
        assert kwargs["data"] == {"return_maps": "red_area"}

    @patch("skinscore.core.provider.client.requests.post")
    def test_basic_request_has_no_maps(self, mock_post, client):
        mock_post.return_value = make_response(200, ok_body())

        response = client.analyze_bytes(JPEG, tier="basic")

        args, kwargs = mock_post.call_args
        assert args[0].endswith("/api/portrait/analysis/skin-analysis")
        assert kwargs["data"] == {}
        assert response.tier is ServiceTier.BASIC

    def test_missing_api_key(self, sleep, monkeypatch):
        monkeypatch.delenv("AILAB_API_KEY", raising=False)
        client = AILabClient(AILabConfig(api_key=None), sleep=sleep)
        assert not client.is_configured
        with pytest.raises(ProviderUnavailableError):
            client.analyze_bytes(JPEG)


class TestRetryPolicy:
    """Retries on network errors, 5xx and 429 only."""

    @patch("skinscore.core.provider.client.requests.post")
    def test_retries_server_error(self, mock_post, client, sleep):
        mock_post.side_effect = [make_response(503), make_response(200, ok_body())]

        response = client.analyze_bytes(JPEG)

        assert response.request_id == "req-1"
        assert mock_post.call_count == 2
        sleep.assert_called_once_with(1.0)

    @patch("skinscore.core.provider.client.requests.post")
    def test_retries_network_error(self, mock_post, client, sleep):
        mock_post.side_effect = [requests.ConnectionError("refused"), requests.Timeout("slow"),
                                 make_response(200, ok_body())]

        client.analyze_bytes(JPEG)

        assert mock_post.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    @patch("skinscore.core.provider.client.requests.post")
    def test_retries_truncated_body(self, mock_post, client, sleep):
        mock_post.side_effect = [requests.exceptions.ChunkedEncodingError("connection broken"),
                                 make_response(200, ok_body())]

        response = client.analyze_bytes(JPEG)

        assert response.request_id == "req-1"
        assert mock_post.call_count == 2
        sleep.assert_called_once_with(1.0)

    @pytest.mark.parametrize("error", [
        requests.TooManyRedirects("loop"),
        requests.exceptions.InvalidURL("bad url"),
    ])
    @patch("skinscore.core.provider.client.requests.post")
    def test_other_request_errors_become_provider_error(self, mock_post, error, client, sleep):
        mock_post.side_effect = error

        with pytest.raises(ProviderError) as exc_info:
            client.analyze_bytes(JPEG)

        assert mock_post.call_count == 1
        sleep.assert_not_called()
        assert exc_info.value.code == "REQUEST_FAILED"
        assert exc_info.value.detail == type(error).__name__

    @patch("skinscore.core.provider.client.requests.post")
    def test_rate_limit_exhausts_retries(self, mock_post, client, sleep):
        mock_post.return_value = make_response(429)

        with pytest.raises(ProviderUnavailableError) as exc_info:
            client.analyze_bytes(JPEG)

        assert exc_info.value.attempts == 3
        assert mock_post.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    @patch("skinscore.core.provider.client.requests.post")
    def test_client_error_not_retried(self, mock_post, client, sleep):
        mock_post.return_value = make_response(400, {"error_code": 1001, "error_msg": "bad image"})

        with pytest.raises(ProviderError) as exc_info:
            client.analyze_bytes(JPEG)

        assert mock_post.call_count == 1
        sleep.assert_not_called()
        assert exc_info.value.http_status == 400
        assert exc_info.value.code == 1001
        assert exc_info.value.message == "bad image"

    @patch("skinscore.core.provider.client.requests.post")
    def test_client_error_without_json(self, mock_post, client):
        mock_post.return_value = make_response(401, ValueError("no json"))

        with pytest.raises(ProviderError) as exc_info:
            client.analyze_bytes(JPEG)

        assert exc_info.value.code == "HTTP_401"


class TestResponseCheck:
    """Tests for provider-level errors inside 200 responses."""

    @patch("skinscore.core.provider.client.requests.post")
    def test_malformed_warning_field_is_ignored(self, mock_post, client):
        mock_post.return_value = make_response(200, ok_body(warning=[{"code": 1}, 5, "low_light"]))
        assert client.analyze_bytes(JPEG).warnings == ["low_light"]

        mock_post.return_value = make_response(200, ok_body(warning="imporper_headpose"))
        assert client.analyze_bytes(JPEG).warnings == []

    @patch("skinscore.core.provider.client.requests.post")
    def test_error_code_raises(self, mock_post, client):
        mock_post.return_value = make_response(200, {
            "error_code": 422, "error_msg": "no face", "request_id": "req-9",
        })

        with pytest.raises(ProviderError) as exc_info:
            client.analyze_bytes(JPEG)

        assert exc_info.value.code == 422
        assert exc_info.value.request_id == "req-9"
        assert exc_info.value.to_dict()["message"] == "no face"

    @patch("skinscore.core.provider.client.requests.post")
    def test_missing_result_left_to_normalizer(self, mock_post, client):
        mock_post.return_value = make_response(200, {"error_code": 0, "request_id": "req-2"})

        response = client.analyze_bytes(JPEG)

        assert "result" not in response.payload

    @patch("skinscore.core.provider.client.requests.post")
    def test_non_json_body(self, mock_post, client):
        mock_post.return_value = make_response(200, ValueError("html"))

        with pytest.raises(ProviderError) as exc_info:
            client.analyze_bytes(JPEG)

        assert exc_info.value.code == "INVALID_RESPONSE"


class TestImageValidation:
    """Tests for upload validation before any request."""

    @patch("skinscore.core.provider.client.requests.post")
    def test_empty_image(self, mock_post, client):
        with pytest.raises(InvalidImageError):
            client.analyze_bytes(b"")
        mock_post.assert_not_called()

    @patch("skinscore.core.provider.client.requests.post")
    def test_size_limit_depends_on_tier(self, mock_post, client):
        mock_post.return_value = make_response(200, ok_body())
        three_mb = b"\xff" * (3 * 1024 * 1024)

        with pytest.raises(InvalidImageError):
            client.analyze_bytes(three_mb, tier="basic")
        mock_post.assert_not_called()

        client.analyze_bytes(three_mb, tier="advanced")
        assert mock_post.call_count == 1

    @patch("skinscore.core.provider.client.requests.post")
    def test_base64_with_data_url_prefix(self, mock_post, client):
        mock_post.return_value = make_response(200, ok_body())
        data = "data:image/jpeg;base64," + base64.b64encode(JPEG).decode()

        client.analyze_base64(data)

        assert mock_post.call_args.kwargs["files"]["image"][1] == JPEG

    def test_invalid_base64(self, client):
        with pytest.raises(InvalidImageError):
            client.analyze_base64("not base64 !!!")
        with pytest.raises(InvalidImageError):
            client.analyze_base64("")

    def test_path_must_be_jpeg(self, client, tmp_path):
        png = tmp_path / "face.png"
        png.write_bytes(JPEG)
        with pytest.raises(InvalidImageError):
            client.analyze_path(str(png))

    def test_missing_path(self, client, tmp_path):
        with pytest.raises(InvalidImageError):
            client.analyze_path(str(tmp_path / "missing.jpg"))

    @patch("skinscore.core.provider.client.requests.post")
    def test_path_upload(self, mock_post, client, tmp_path):
        mock_post.return_value = make_response(200, ok_body())
        jpg = tmp_path / "Face.JPEG"
        jpg.write_bytes(JPEG)

        client.analyze_path(str(jpg))

        assert mock_post.call_args.kwargs["files"]["image"] == ("Face.JPEG", JPEG, "image/jpeg")
