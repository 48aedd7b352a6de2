"""
Module: settings.py
Description: Application configuration using pydantic-settings.

Configures the SQS lifecycle helpers from environment variables with
validation and defaults. Supports .env files for local development.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Logging settings
    log_level: str = Field(default="INFO", description="Logging level")

    # AWS settings
    aws_region: str = Field(default="us-east-1", description="AWS region for the SQS client")
    web_proxy_url: Optional[str] = Field(
        default=None,
        description="Outbound proxy applied to every SQS call"
    )

    # Visibility settings
    visibility_timeout_increment: int = Field(
        default=5,
        ge=0,
        description="Seconds added to the queue visibility timeout per previous delivery"
    )

    # Metrics settings
    metrics_enabled: bool = Field(default=False, description="Publish CloudWatch metrics")
    metrics_namespace: str = Field(default="SQSLifecycle", description="CloudWatch metrics namespace")

    @field_validator('web_proxy_url')
    @classmethod
    def validate_web_proxy_url(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank proxy values as unset and require an HTTP(S) URL otherwise."""
        if v is None or not v.strip():
            return None

        v = v.strip()
        if not v.startswith(('http://', 'https://')):
            raise ValueError("web_proxy_url must be a valid HTTP/HTTPS URL")

        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()


# Global settings instance
settings = Settings()
