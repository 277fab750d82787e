# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for TripFriend.
Settings are loaded from environment variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from tripfriend.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational database configuration.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        url_override: Full connection URL, used instead of the components when set.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        echo: Log every SQL statement.
        create_tables: Create missing tables at startup (development only).
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "tripfriend"
    password: SecretStr = SecretStr("tripfriend_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "tripfriend"
    url_override: str | None = Field(default=None, validation_alias="DB_URL")
    pool_size: int = 10
    max_overflow: int = 20
    echo: bool = False
    create_tables: bool = False

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        if self.url_override:
            return self.url_override
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class RedisSettings(BaseSettings):
    """Redis configuration for the credential store.

    Attributes:
        host: Redis server host.
        port: Redis server port.
        password: Redis password.
        database: Redis database number.
        max_connections: Maximum connection pool size.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        extra="ignore",
    )

    host: str = "localhost"
    port: int = 6379
    password: SecretStr | None = None
    database: int = 0
    max_connections: int = 50

    @property
    def url(self) -> str:
        """Build the Redis connection URL."""
        if self.password is None:
            return f"redis://{self.host}:{self.port}/{self.database}"
        pwd = self.password.get_secret_value()
        return f"redis://:{pwd}@{self.host}:{self.port}/{self.database}"


class JWTSettings(BaseSettings):
    """JWT authentication configuration.

    Recovery lifetimes apply to tokens issued to a soft-deleted account
    that is still inside its restore window.

    Attributes:
        secret_key: Secret key for signing tokens.
        algorithm: JWT signing algorithm.
        access_token_expire_minutes: Access token expiration time.
        refresh_token_expire_days: Refresh token expiration time.
        recovery_access_token_expire_minutes: Access token expiration in recovery mode.
        recovery_refresh_token_expire_days: Refresh token expiration in recovery mode.
        refresh_rotation_threshold: Fraction of the refresh lifetime below
            which a refresh call also rotates the refresh token.
    """

    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        extra="ignore",
    )

    secret_key: SecretStr = SecretStr("change-this-in-production")
    algorithm: str = "HS512"
    access_token_expire_minutes: int = Field(
        default=30,
        validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    refresh_token_expire_days: int = Field(
        default=7,
        validation_alias="REFRESH_TOKEN_EXPIRE_DAYS",
    )
    recovery_access_token_expire_minutes: int = 10
    recovery_refresh_token_expire_days: int = 1
    refresh_rotation_threshold: float = Field(default=0.3, gt=0.0, lt=1.0)


class AccountSettings(BaseSettings):
    """Account lifecycle configuration.

    Attributes:
        restore_window_days: Days a soft-deleted account stays restorable.
        purge_cron_hour: Hour of the daily purge of expired accounts.
        purge_cron_minute: Minute of the daily purge of expired accounts.
        email_code_ttl_seconds: Lifetime of an email verification code.
    """

    model_config = SettingsConfigDict(
        env_prefix="ACCOUNT_",
        extra="ignore",
    )

    restore_window_days: int = 30
    purge_cron_hour: int = Field(default=0, ge=0, le=23)
    purge_cron_minute: int = Field(default=0, ge=0, le=59)
    email_code_ttl_seconds: int = 300


class MailSettings(BaseSettings):
    """SMTP configuration for outgoing mail.

    Attributes:
        host: SMTP server hostname.
        port: SMTP server port.
        username: SMTP authentication username.
        password: SMTP authentication password.
        use_tls: Use STARTTLS.
        from_email: Sender email address.
    """

    model_config = SettingsConfigDict(
        env_prefix="SMTP_",
        extra="ignore",
    )

    host: str = "localhost"
    port: int = 587
    username: str | None = None
    password: SecretStr | None = None
    use_tls: bool = True
    from_email: str = "no-reply@tripfriend.local"


class OAuthSettings(BaseSettings):
    """Social login configuration.

    A provider is enabled once its client id and secret are set. The
    provider redirects back to ``{callback_base_url}/{provider}/callback``.

    Attributes:
        google_client_id: Google OAuth client id.
        google_client_secret: Google OAuth client secret.
        kakao_client_id: Kakao REST API key.
        kakao_client_secret: Kakao client secret.
        naver_client_id: Naver client id.
        naver_client_secret: Naver client secret.
        callback_base_url: Public URL of the social login routes.
        success_redirect_url: Frontend page opened after a successful login.
        state_ttl_seconds: Lifetime of a pending login state.
        http_timeout_seconds: Timeout for calls to the provider.
    """

    model_config = SettingsConfigDict(
        env_prefix="OAUTH_",
        extra="ignore",
    )

    google_client_id: str | None = None
    google_client_secret: SecretStr | None = None
    kakao_client_id: str | None = None
    kakao_client_secret: SecretStr | None = None
    naver_client_id: str | None = None
    naver_client_secret: SecretStr | None = None
    callback_base_url: str = "http://localhost:8080/api/v1/auth/oauth"
    success_redirect_url: str = "http://localhost:3000/member/login"
    state_ttl_seconds: int = 600
    http_timeout_seconds: float = 10.0

    def credentials(self, provider: str) -> tuple[str, str] | None:
        """Client id and secret for a provider, or None if it is not configured."""
        client_id = getattr(self, f"{provider}_client_id", None)
        client_secret = getattr(self, f"{provider}_client_secret", None)
        if not client_id or client_secret is None:
            return None
        return client_id, client_secret.get_secret_value()


class RateLimitSettings(BaseSettings):
    """Rate limiting configuration.

    Attributes:
        enabled: Whether rate limiting is applied.
        login: Limit string for the login endpoint.
        email_code: Limit string for sending verification codes.
        email_verify: Limit string for confirming verification codes.
    """

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        extra="ignore",
    )

    enabled: bool = True
    login: str = "10/minute"
    email_code: str = "5/minute"
    email_verify: str = "5/minute"


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        host: Host to bind to.
        port: Port to listen on.
        workers: Number of worker processes.
        reload: Whether to enable auto-reload.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 8080
    workers: int = 2
    reload: bool = False


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        scheduler_enabled: Run the background scheduler inside the API process.
        db: Relational database settings.
        redis: Redis settings.
        jwt: JWT authentication settings.
        account: Account lifecycle settings.
        mail: SMTP settings.
        oauth: Social login settings.
        rate_limit: Rate limiting settings.
        cors: CORS settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"
    scheduler_enabled: bool = True

    # Subsettings - loaded with their own env prefixes
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    account: AccountSettings = Field(default_factory=AccountSettings)
    mail: MailSettings = Field(default_factory=MailSettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            default_jwt_secret = "change-this-in-production"
            if self.jwt.secret_key.get_secret_value() == default_jwt_secret:
                raise ValueError(
                    "JWT secret key must be changed from default in production. "
                    "Set JWT_SECRET_KEY environment variable."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
