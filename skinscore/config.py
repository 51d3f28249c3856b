"""
Configuration Management for the Skin Analysis Service

Environment-based configuration using Pydantic Settings.
"""
from typing import Optional, List
from pydantic_settings import BaseSettings
from pydantic import Field, ConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra fields from .env file
    )

    # Application
    app_name: str = "SkinScore Analysis API"
    app_version: str = "2.0.0"
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root logging level")

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_prefix: str = "/api/v1"
    cors_origins: List[str] = ["*"]

    # Vision provider (AILabTools skin analysis)
    ailab_api_key: Optional[str] = Field(default=None, description="AILabTools API key")
    ailab_base_url: str = "https://www.ailabapi.com"
    default_tier: str = Field(default="pro", description="basic, advanced or pro")
    request_timeout_seconds: float = 30.0
    max_retries: int = Field(default=3, description="Total attempts per provider request")
    retry_delay_seconds: float = Field(default=1.0, description="Base delay for exponential backoff")

    # Analysis records
    utc_offset_hours: int = Field(default=8, description="Local time offset used for record timestamps")
    max_records: int = Field(default=1000, description="Stored analyses kept in memory; oldest are evicted first")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
