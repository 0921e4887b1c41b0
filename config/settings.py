"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
Import pipeline thresholds and confidence scores live here so they can be
tuned per deployment without code changes.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: Optional[str] = Field(
        None,
        description="Supabase project URL"
    )
    supabase_key: Optional[str] = Field(
        None,
        description="Supabase anon/public key"
    )

    # ===================
    # LINE CLASSIFICATION
    # ===================
    min_line_length: int = Field(
        default=10,
        ge=1,
        le=200,
        description="Lines shorter than this are never product rows"
    )
    fallback_min_line_length: int = Field(
        default=15,
        ge=1,
        le=200,
        description="Relaxed fallback only runs on lines longer than this"
    )
    last_resort_min_line_length: int = Field(
        default=8,
        ge=1,
        le=200,
        description="Last-resort pass ignores lines shorter than this"
    )

    # ===================
    # COLUMN LAYOUT
    # ===================
    layout_min_lines: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Minimum lines before inferring columns without a header"
    )
    layout_sample_lines: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Lines sampled when inferring columns from spacing"
    )
    layout_min_avg_columns: float = Field(
        default=3.0,
        ge=1,
        le=10,
        description="Average 2+ space split count needed to infer a table"
    )

    # ===================
    # EXTRACTION CONFIDENCE
    # ===================
    position_confidence: int = Field(default=95, ge=0, le=100)
    fallback_confidence: int = Field(default=60, ge=0, le=100)
    last_resort_confidence: int = Field(default=40, ge=0, le=100)

    # ===================
    # RECONCILIATION
    # ===================
    fuzzy_match_threshold: float = Field(
        default=0.8,
        ge=0,
        le=1,
        description="Similarity a fuzzy catalog match must exceed"
    )
    exact_match_confidence: int = Field(default=95, ge=0, le=100)
    create_confidence: int = Field(default=70, ge=0, le=100)
    default_mapping_confidence: int = Field(
        default=50,
        ge=0,
        le=100,
        description="Confidence of mappings created with auto-mapping off"
    )
    high_confidence_threshold: int = Field(
        default=80,
        ge=0,
        le=100,
        description="Mappings above this count as high confidence in stats"
    )

    # ===================
    # IMPORT SESSIONS
    # ===================
    import_session_ttl_minutes: int = Field(
        default=30,
        ge=1,
        le=1440,
        description="Minutes an unfinished import session is kept in memory"
    )
    max_document_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1024,
        description="Largest accepted upload"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def supabase_configured(self) -> bool:
        """Check if Supabase credentials are present."""
        return bool(self.supabase_url and self.supabase_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
