"""
Configuration settings - Infrastructure component for managing client configuration.
Uses pydantic-settings for validation and environment variable loading.
"""

from __future__ import annotations
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ...utils import normalize_keep_alive
from ..http.retry import RetryConfig


DEFAULT_RETRYABLE_STATUS_CODES = [500, 502, 503, 504, 429, 408]


class ClientSettings(BaseSettings):
    """Client configuration, read from OLLAMA_* environment variables and .env."""

    model_config = SettingsConfigDict(
        env_prefix='OLLAMA_',
        env_file='.env',
        case_sensitive=False,
        extra='ignore',
    )

    host: str = Field('http://localhost:11434')
    api_key: Optional[str] = Field(None)

    # Timeouts (seconds)
    timeout_s: float = Field(300.0, gt=0)
    connect_timeout_s: Optional[float] = Field(5.0)

    # Applied to generate/chat/embed requests that carry none
    keep_alive: Optional[str] = Field(None)

    # Retry and resilience
    max_retries: int = Field(2, ge=0)
    retry_backoff_base: float = Field(1.0, ge=0)
    retry_jitter_max: float = Field(0.1, ge=0)
    retryable_status_codes: str = Field('500,502,503,504,429,408')

    @field_validator('host', mode='before')
    @classmethod
    def parse_host(cls, v):
        """OLLAMA_HOST is often set without a scheme (e.g. '127.0.0.1:11434')."""
        text = str(v or '').strip()
        if text and '://' not in text:
            text = f"http://{text}"
        return text.rstrip('/')

    @field_validator('keep_alive', mode='before')
    @classmethod
    def parse_keep_alive(cls, v):
        """Bare seconds gain a unit; '', 'false', '0' and 'no' disable keep-alive."""
        return normalize_keep_alive(v)

    @property
    def status_codes(self) -> List[int]:
        """Parse comma-separated status codes into list."""
        try:
            return [int(code.strip()) for code in self.retryable_status_codes.split(',') if code.strip()]
        except ValueError:
            return list(DEFAULT_RETRYABLE_STATUS_CODES)

    def to_retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_retries=self.max_retries,
            base_delay=self.retry_backoff_base,
            jitter=self.retry_jitter_max,
            retryable_status_codes=self.status_codes,
        )


def get_settings(**overrides) -> ClientSettings:
    """Build settings from the environment, with explicit overrides taking precedence."""
    return ClientSettings(**overrides)
