"""
Provider Module

HTTP client for the upstream vision API.
"""
from .client import AILabClient, AILabConfig, ProviderResponse, ENDPOINTS

__all__ = [
    "AILabClient",
    "AILabConfig",
    "ProviderResponse",
    "ENDPOINTS",
]
