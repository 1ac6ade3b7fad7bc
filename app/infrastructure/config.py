"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str = "postgresql+asyncpg://catalog:catalog_dev_password@db:5432/catalog"

    # Authentication
    auth_enabled: bool = False
    jwt_secret: str = "mySecret"
    jwt_algorithm: str = "HS256"
    access_token_ttl_seconds: int = 60
    refresh_token_ttl_seconds: int = 7 * 24 * 60 * 60

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "https://product-catalog-web-app-frontend.vercel.app",
    ]

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
