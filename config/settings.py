"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Literal, Optional


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
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for deleting auth users)"
    )

    # ===================
    # STORAGE
    # ===================
    variant_images_bucket: str = Field(
        default="saisokuphotos",
        description="Storage bucket holding variant images"
    )
    variant_images_prefix: str = Field(
        default="variant-images",
        description="Path prefix for variant images inside the bucket"
    )
    variant_image_url_ttl_seconds: int = Field(
        default=315360000,
        ge=60,
        description="Lifetime of signed variant image URLs (10 years)"
    )
    payment_proofs_bucket: str = Field(
        default="OrderReceipts",
        description="Storage bucket holding payment proof uploads (case-sensitive)"
    )
    payment_proof_url_ttl_seconds: int = Field(
        default=3600,
        ge=60,
        le=604800,
        description="Lifetime of signed payment proof URLs"
    )

    # ===================
    # CATALOG
    # ===================
    catalog_fetch_limit: int = Field(
        default=1000,
        ge=1,
        le=10000,
        description="Max variants fetched for one grouped listing"
    )
    category_display_rules: dict[str, Literal["grouped", "individual"]] = Field(
        default_factory=lambda: {
            "Tas": "grouped",
            "Boneka": "individual",
            "Gelang": "grouped",
            "Gantungan": "individual",
        },
        description="Fallback display mode per category name (JSON in env)"
    )
    catalog_collapse_individual_variants: bool = Field(
        default=False,
        description="Show only the first variant of individual-mode products in mixed listings"
    )
    low_stock_threshold: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Variants with stock below this (and above 0) count as low stock"
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


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
