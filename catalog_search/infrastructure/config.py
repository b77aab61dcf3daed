"""Catalog search configuration.

Loads settings from environment variables (prefix ``CATALOG_SEARCH_``)
with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Catalog search settings loaded from environment variables."""

    # Backend
    api_base_url: str = Field(
        default="http://localhost:8080",
        description="Search backend base URL",
    )
    api_timeout: float = Field(
        default=10.0,
        description="Request timeout in seconds",
    )
    search_path: str = "/api/search/offers"
    suggest_path: str = "/api/search/suggest"
    categories_path: str = "/api/catalog/categories"
    status_path: str = "/api/search/status"

    # Search
    page_size: int = Field(default=20, gt=0)

    # Suggestions
    suggestion_limit: int = Field(default=8, gt=0)
    suggestion_min_length: int = Field(default=2, ge=1)
    suggestion_debounce_ms: int = Field(default=300, ge=0)

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def suggestion_debounce_seconds(self) -> float:
        return self.suggestion_debounce_ms / 1000


settings = Settings()
