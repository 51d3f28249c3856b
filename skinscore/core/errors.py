"""
Error taxonomy for the analysis pipeline.

Normalization and provider failures are distinct types so callers can choose
between retrying and showing a user-facing message.
"""
from typing import Any, Dict, Optional


class SkinScoreError(Exception):
    """Base class for all pipeline errors."""


class MissingResultError(SkinScoreError):
    """Provider payload has no ``result`` object; normalization cannot proceed."""

    def __init__(self, message: str = "Provider response is missing the result field",
                 request_id: Optional[str] = None):
        super().__init__(message)
        self.request_id = request_id


class UnsupportedTierError(SkinScoreError, ValueError):
    """Tier tag is not one of basic/advanced/pro."""

    def __init__(self, tier: Any):
        super().__init__(f"Unsupported service tier: {tier!r}. Valid: basic, advanced, pro")
        self.tier = tier


class InvalidImageError(SkinScoreError, ValueError):
    """Image is empty, too large for the tier, or not a JPEG."""


class ProviderError(SkinScoreError):
    """The vision API answered with an error."""

    def __init__(
        self,
        code: Any,
        message: str,
        http_status: Optional[int] = None,
        detail: Any = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(f"Provider error {code}: {message}")
        self.code = code
        self.message = message
        self.http_status = http_status
        self.detail = detail
        self.request_id = request_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "http_status": self.http_status,
            "detail": self.detail,
            "request_id": self.request_id,
        }


class ProviderUnavailableError(SkinScoreError):
    """Network failures or retryable statuses persisted after all retries."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts
