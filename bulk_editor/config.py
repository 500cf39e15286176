"""
Configuration management.
Simple .env based config, one store per deployment.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Shopify store
    shopify_shop_domain: str = ""  # e.g. "mystore.myshopify.com"
    shopify_access_token: str = ""  # Admin API token (shpat_...)
    shopify_api_version: str = "2025-01"
    request_timeout: float = 60.0

    # Max remote calls in flight for one bulk edit
    max_concurrency: int = 4

    # Logging
    log_level: str = "INFO"


# Global settings instance
settings = Settings()
