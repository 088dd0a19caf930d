"""
Core configuration for the multipart uploader.
Manages environment variables and S3 connection settings.
"""
from typing import List, Optional
from urllib.parse import urlparse
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PART_SIZE = 5 * 1024 * 1024
DEFAULT_MAX_RETRIES = 10
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Uploader settings loaded from environment variables or .env file."""

    # S3 Configuration
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_bucket_name: str = ""
    api_url: Optional[str] = None
    region: str = ""

    # Multipart Configuration
    max_part_size: int = Field(DEFAULT_PART_SIZE, gt=0)
    max_retries: int = Field(DEFAULT_MAX_RETRIES, ge=1)
    retry_backoff_seconds: float = Field(0.0, ge=0)
    retry_backoff_max_seconds: float = Field(30.0, ge=0)
    key_prefix: str = "multipartupload/"

    # Logging
    log_level: str = "INFO"
    log_format: str = "plain"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('api_url')
    @classmethod
    def blank_url_is_default(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        parsed = urlparse(v)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ValueError(f"api_url must be an http(s) URL, got: {v}")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return v

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ('plain', 'json'):
            raise ValueError("log_format must be 'plain' or 'json'")
        return v

    def missing_required(self) -> List[str]:
        """Return the names of required settings that are empty."""
        required = {
            'aws_access_key_id': self.aws_access_key_id,
            'aws_secret_access_key': self.aws_secret_access_key,
            'aws_bucket_name': self.aws_bucket_name,
            'region': self.region,
        }
        return [name for name, value in required.items() if not value or not value.strip()]
