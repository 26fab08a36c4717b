"""Application settings and configuration.

This module defines all configuration options for the Fedwork Stage service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Fedwork Stage", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./fedwork.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Federation identity: every actor and activity URI is derived from these
    public_domain: str = Field(default="localhost:8000", alias="PUBLIC_DOMAIN")
    public_scheme: str = Field(default="https", alias="PUBLIC_SCHEME")
    actor_fetch_timeout_seconds: float = Field(
        default=10.0,
        alias="ACTOR_FETCH_TIMEOUT_SECONDS",
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def public_base_url(self) -> str:
        """Return the origin used for every federation identifier.

        The first entry wins when ``PUBLIC_DOMAIN`` holds a comma-separated
        list of hostnames.
        """
        domain = self.public_domain.split(",")[0].strip().rstrip("/")
        return f"{self.public_scheme}://{domain}"

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url


settings = Settings()
