"""
AILabTools Skin Analysis Client

Thin HTTP client for the tiered skin-analysis endpoints. Validates the
upload, retries transient failures and hands the raw JSON body back to the
normalizer untouched.
"""
import base64
import binascii
import os
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

import requests

from skinscore.core.errors import InvalidImageError, ProviderError, ProviderUnavailableError
from skinscore.core.normalization import ServiceTier, warning_codes
from skinscore.utils import get_logger, mask_secret

logger = get_logger(__name__)

ENDPOINTS = {
    ServiceTier.BASIC: "/api/portrait/analysis/skin-analysis",
    ServiceTier.ADVANCED: "/api/portrait/analysis/skin-analysis-advanced",
    ServiceTier.PRO: "/api/portrait/analysis/skin-analysis-pro",
}

API_KEY_HEADER = "ailabapi-api-key"
ALLOWED_EXTENSIONS = (".jpg", ".jpeg")
DATA_URL_PREFIX = re.compile(r"^data:image/\w+;base64,")
RETRYABLE_STATUS = 429
RETRYABLE_EXCEPTIONS = (
    requests.ConnectionError,
    requests.Timeout,
    requests.exceptions.ChunkedEncodingError,
)


@dataclass
class AILabConfig:
    """Connection settings for the AILabTools API."""
    api_key: Optional[str] = None
    base_url: str = "https://www.ailabapi.com"
    tier: ServiceTier = ServiceTier.PRO

    # Request settings
    timeout_seconds: float = 30.0
    max_retries: int = 3
    retry_delay_seconds: float = 1.0

    def __post_init__(self):
        self.tier = ServiceTier.from_string(self.tier)
        if self.api_key is None:
            self.api_key = os.environ.get("AILAB_API_KEY")

    @classmethod
    def from_settings(cls, settings) -> "AILabConfig":
        return cls(
            api_key=settings.ailab_api_key,
            base_url=settings.ailab_base_url,
            tier=settings.default_tier,
            timeout_seconds=settings.request_timeout_seconds,
            max_retries=settings.max_retries,
            retry_delay_seconds=settings.retry_delay_seconds,
        )


@dataclass
class ProviderResponse:
    """Successful provider answer; ``payload`` is the untouched JSON body."""
    payload: Dict[str, Any]
    tier: ServiceTier
    request_id: Optional[str] = None
    log_id: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tier": self.tier.value,
            "request_id": self.request_id,
            "log_id": self.log_id,
            "warnings": list(self.warnings),
        }


class AILabClient:
    """
    Client for the AILabTools skin analysis API.

    All ``analyze_*`` methods block; callers on an event loop should run them
    in an executor.
    """

    def __init__(self, config: Optional[AILabConfig] = None, sleep: Callable[[float], None] = time.sleep):
        self.config = config or AILabConfig()
        self._sleep = sleep
        self._request_count = 0
        logger.info(
            f"AILabClient initialized (tier={self.config.tier.value}, "
            f"key={mask_secret(self.config.api_key)})"
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    @property
    def request_count(self) -> int:
        return self._request_count

    def endpoint_url(self, tier: ServiceTier) -> str:
        return f"{self.config.base_url.rstrip('/')}{ENDPOINTS[tier]}"

    # ---- Input variants ----

    def analyze_path(self, path: str, tier: Union[ServiceTier, str, None] = None) -> ProviderResponse:
        """Analyze a JPEG file on disk."""
        ext = os.path.splitext(path)[1].lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise InvalidImageError(f"File format must be JPG or JPEG, got '{ext or path}'")
        if not os.path.isfile(path):
            raise InvalidImageError(f"File does not exist: {path}")
        with open(path, "rb") as fh:
            image = fh.read()
        return self.analyze_bytes(image, tier=tier, filename=os.path.basename(path))

    def analyze_base64(self, data: str, tier: Union[ServiceTier, str, None] = None) -> ProviderResponse:
        """Analyze a base64 image, with or without a ``data:image/...`` prefix."""
        if not isinstance(data, str) or not data.strip():
            raise InvalidImageError("Base64 image data is empty")
        stripped = DATA_URL_PREFIX.sub("", data.strip())
        try:
            image = base64.b64decode(stripped, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidImageError(f"Invalid base64 image data: {e}")
        return self.analyze_bytes(image, tier=tier, filename="image.jpg")

    def analyze_bytes(
        self,
        image: bytes,
        tier: Union[ServiceTier, str, None] = None,
        filename: str = "image.jpg",
    ) -> ProviderResponse:
        """
        Upload raw image bytes and return the provider response.

        Args:
            image: JPEG bytes
            tier: Service tier (defaults to the configured tier)
            filename: Name sent with the multipart upload

        Raises:
            InvalidImageError: empty or oversize image
            ProviderError: provider rejected the request
            ProviderUnavailableError: retries exhausted or no API key
        """
        service_tier = ServiceTier.from_string(tier) if tier is not None else self.config.tier
        self._validate_image(image, service_tier)

        if not self.is_configured:
            raise ProviderUnavailableError("AILab API key is not configured", attempts=0)

        response = self._post_with_retries(image, filename, service_tier)
        return self.process_response(response, service_tier)

    # ---- Internals ----

    def _validate_image(self, image: bytes, tier: ServiceTier) -> None:
        if not image:
            raise InvalidImageError("Image data is empty")
        size_mb = len(image) / (1024 * 1024)
        if size_mb > tier.max_image_mb:
            raise InvalidImageError(
                f"File size ({size_mb:.2f} MB) exceeds {tier.max_image_mb} MB limit for {tier.value} tier"
            )

    def _post_with_retries(self, image: bytes, filename: str, tier: ServiceTier) -> requests.Response:
        url = self.endpoint_url(tier)
        headers = {API_KEY_HEADER: self.config.api_key}
        data = {} if tier is ServiceTier.BASIC else {"return_maps": "red_area"}
        attempts = max(1, self.config.max_retries)
        last_error = ""

        for attempt in range(attempts):
            try:
                response = requests.post(
                    url,
                    headers=headers,
                    files={"image": (filename, image, "image/jpeg")},
                    data=data,
                    timeout=self.config.timeout_seconds,
                )
                self._request_count += 1
            except RETRYABLE_EXCEPTIONS as e:
                last_error = f"{type(e).__name__}: {str(e)[:200]}"
                logger.warning(f"AILab request failed (attempt {attempt + 1}/{attempts}): {last_error}")
            except requests.RequestException as e:
                logger.error(f"AILab request could not be sent: {type(e).__name__}: {e}")
                raise ProviderError(
                    code="REQUEST_FAILED",
                    message=f"Request to provider failed: {str(e)[:200]}",
                    detail=type(e).__name__,
                ) from e
            else:
                status = response.status_code
                if status < 400:
                    return response
                if status >= 500 or status == RETRYABLE_STATUS:
                    last_error = f"HTTP {status}"
                    logger.warning(f"AILab returned {status} (attempt {attempt + 1}/{attempts})")
                else:
                    raise self._client_error(response)

            if attempt < attempts - 1:
                self._sleep(self.config.retry_delay_seconds * (2 ** attempt))

        logger.error(f"AILab unavailable after {attempts} attempts: {last_error}")
        raise ProviderUnavailableError(f"Provider unavailable after {attempts} attempts ({last_error})", attempts)

    def _client_error(self, response: requests.Response) -> ProviderError:
        body = _json_or_none(response)
        body = body if isinstance(body, dict) else {}
        message = body.get("error_msg") or response.reason or "Request rejected"
        logger.error(f"AILab rejected request: HTTP {response.status_code} {message}")
        return ProviderError(
            code=body.get("error_code", f"HTTP_{response.status_code}"),
            message=message,
            http_status=response.status_code,
            detail=body.get("error_detail"),
            request_id=body.get("request_id"),
        )

    def process_response(self, response: requests.Response, tier: ServiceTier) -> ProviderResponse:
        """
        Check a 2xx response body for provider-level errors.

        A missing ``result`` is not checked here; the normalizer owns that.
        """
        body = _json_or_none(response)
        if not isinstance(body, dict):
            raise ProviderError(
                code="INVALID_RESPONSE",
                message="Provider returned a non-JSON body",
                http_status=response.status_code,
            )

        error_code = body.get("error_code")
        if error_code is not None and error_code != 0:
            logger.error(f"AILab error_code={error_code}: {body.get('error_msg')}")
            raise ProviderError(
                code=error_code,
                message=body.get("error_msg") or "Unknown provider error",
                http_status=response.status_code,
                detail=body.get("error_detail"),
                request_id=body.get("request_id"),
            )

        return ProviderResponse(
            payload=body,
            tier=tier,
            request_id=body.get("request_id"),
            log_id=body.get("log_id"),
            warnings=warning_codes(body.get("warning")),
        )


def _json_or_none(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
