"""Configuration management for the embedsearch backend.

Uses Pydantic Settings for type-safe, environment-based configuration.
"""

from typing import Any

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv(override=True)

# Canned settings served for allowlisted uids while the registry is unreachable
DEGRADED_DEFAULT_SETTINGS: dict[str, Any] = {
    "theme": "default",
    "placeholder": "Search in CME program",
    "title": "AI Search",
    "submitText": "Search",
}


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # App configuration
    app_name: str = Field("embedsearch", alias="EMBEDSEARCH_APP_NAME")
    debug: bool = Field(False, alias="EMBEDSEARCH_DEBUG")
    version: str = Field("0.0.0-dev", alias="EMBEDSEARCH_APP_VERSION")

    # API configuration
    api_v1_prefix: str = "/api/v1"
    embed_prefix: str = "/v1/embed"
    api_host: str = Field("127.0.0.1", alias="EMBEDSEARCH_API_HOST")
    api_port: int = Field(3000, alias="EMBEDSEARCH_API_PORT")
    environment: str = Field("development", alias="EMBEDSEARCH_ENVIRONMENT")

    # Database configuration
    database_url: str = Field(alias="EMBEDSEARCH_DATABASE_URL")
    database_pool_size: int = 20
    database_max_overflow: int = 30
    database_pool_timeout: int = 30
    database_pool_recycle: int = 3600
    seed_demo_plugins: bool = Field(False, alias="EMBEDSEARCH_SEED_DEMO_PLUGINS")

    # Widget configuration
    plugin_type: str = Field("ai-search", alias="EMBEDSEARCH_PLUGIN_TYPE")
    widget_tag: str = Field("ai-search", alias="EMBEDSEARCH_WIDGET_TAG")
    embed_script_max_age: int = Field(3600, alias="EMBEDSEARCH_EMBED_SCRIPT_MAX_AGE")
    # JSON list, e.g. EMBEDSEARCH_DEGRADED_ALLOWLIST='["test-uid-001"]'
    degraded_allowlist: list[str] = Field(
        default_factory=lambda: ["test-uid-001", "test-uid-002", "test-uid-003", "user-123", "search-456"],
        alias="EMBEDSEARCH_DEGRADED_ALLOWLIST",
    )
    uid_max_length: int = 255

    # Ranking model configuration (OpenAI-compatible chat completions)
    openai_api_key: str | None = Field(None, alias="OPENAI_API_KEY")
    openai_base_url: str = Field("https://api.openai.com/v1", alias="EMBEDSEARCH_OPENAI_BASE_URL")
    ai_search_model: str = Field("gpt-3.5-turbo", alias="EMBEDSEARCH_AI_SEARCH_MODEL")
    ai_search_temperature: float = Field(0.1, alias="EMBEDSEARCH_AI_SEARCH_TEMPERATURE")
    ai_search_max_tokens: int = Field(2000, alias="EMBEDSEARCH_AI_SEARCH_MAX_TOKENS")
    ai_search_timeout: float = Field(30.0, alias="EMBEDSEARCH_AI_SEARCH_TIMEOUT")
    # Answer upstream format/provider/timeout failures with keyword-ranked results
    ai_search_fallback_on_error: bool = Field(False, alias="EMBEDSEARCH_AI_SEARCH_FALLBACK_ON_ERROR")

    # Logging configuration
    log_level: str = Field("INFO", alias="EMBEDSEARCH_LOG_LEVEL")
    log_format: str = Field("text", alias="EMBEDSEARCH_LOG_FORMAT")  # text or json
    log_dir: str | None = Field(None, alias="EMBEDSEARCH_LOG_DIR")

    # Security configuration
    allowed_origins: list[str] = ["*"]
    cors_credentials: bool = False

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("text", "json"):
            raise ValueError("Log format must be 'text' or 'json'")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def include_error_details(self) -> bool:
        """Whether error responses may carry debugging details."""
        return self.debug or not self.is_production

    @property
    def ai_search_configured(self) -> bool:
        return bool(self.openai_api_key)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )


def get_settings() -> Settings:
    """Build a fresh settings instance from the environment."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance - will be created when first accessed
settings = None


def get_settings_instance() -> Settings:
    """Get the global settings instance, creating it if necessary."""
    global settings  # noqa: PLW0603
    if settings is None:
        settings = get_settings()
    return settings
