from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import AnyHttpUrl, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic BaseSettings to load configuration with validation and defaults where appropriate.
    """

    # App
    APP_NAME: str = Field(default="JIRA Mediator", description="Application display name")
    APP_ENV: str = Field(default="development", description="Application environment")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    JIRA_LOG_LEVEL: Optional[str] = Field(
        default=None, description="Level for the jira_mediator loggers; defaults to LOG_LEVEL"
    )
    ALLOW_ORIGINS: List[str] = Field(
        default=["*"], description="CORS allowed origins list"
    )

    # Auth for the HTTP surface
    AUTH_STRATEGY: str = Field(
        default="api_key", description="Authentication strategy: 'api_key' or 'none'"
    )
    API_KEY_HEADER_NAME: str = Field(
        default="X-API-Key", description="Header name used to pass API key"
    )
    API_KEYS: List[str] = Field(
        default=[], description="List of allowed API keys for api_key strategy"
    )

    # JIRA
    JIRA_BASE_URL: AnyHttpUrl = Field(
        ..., description="Base URL for JIRA instance, e.g., https://your-domain.atlassian.net"
    )
    JIRA_EMAIL: str = Field(..., description="JIRA account email (or user name) for API auth")
    JIRA_API_TOKEN: str = Field(..., description="JIRA API token (or password) for API auth")
    JIRA_API_PREFIX: str = Field(
        default="/rest/api/2", description="REST API prefix every wire path is resolved against"
    )
    JIRA_PROXY_URL: Optional[str] = Field(
        default=None, description="Optional proxy for outbound JIRA traffic"
    )
    JIRA_VERIFY_SSL: bool = Field(default=True, description="Verify the JIRA server TLS certificate")
    JIRA_SEARCH_PAGE_SIZE: int = Field(
        default=50, ge=1, description="Page size requested when aggregating search results"
    )

    # HTTP
    REQUEST_TIMEOUT_SECONDS: float = Field(
        default=30.0, description="Default request timeout in seconds for outbound HTTP"
    )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    @model_validator(mode="after")
    def _validate_auth(self) -> "Settings":
        strategy = (self.AUTH_STRATEGY or "").lower().strip()
        if strategy not in {"api_key", "none"}:
            raise ValueError("AUTH_STRATEGY must be either 'api_key' or 'none'")
        if strategy == "api_key" and not self.API_KEYS:
            raise ValueError("When AUTH_STRATEGY=api_key, API_KEYS must contain at least one key")
        return self

    @property
    def jira_base_url(self) -> str:
        return str(self.JIRA_BASE_URL).rstrip("/")


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings instance."""
    return Settings()
