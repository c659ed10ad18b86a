"""Environment-driven settings for the API layer."""
from __future__ import annotations

from pydantic_settings import BaseSettings

from ..config import DEFAULT_RESULT_PAGE_SIZE, LOG_LEVEL


class ApiSettings(BaseSettings):
    """Immutable settings loaded from environment / .env file."""

    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: str = "http://localhost:5601,http://localhost:8000"
    log_level: str = LOG_LEVEL

    # Search backend
    search_url: str = "http://localhost:9200"
    search_username: str = ""
    search_password: str = ""
    verify_certs: bool = True
    request_timeout_seconds: float = 30.0
    max_retries: int = 2
    retry_backoff_seconds: float = 0.25

    default_page_size: int = DEFAULT_RESULT_PAGE_SIZE

    model_config = {"env_prefix": "INSIGHT_API_"}
