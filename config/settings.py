"""
Centralized configuration management using Pydantic Settings.

All environment variables and configuration in one place.
Type-safe with validation.
"""

from typing import Optional, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator, model_validator


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==================== Database Configuration ====================
    database_url: str = Field(
        default="postgresql://localhost/mentor_booking",
        description="PostgreSQL (or SQLite for development) connection string"
    )
    db_pool_size: int = Field(default=20, ge=1, le=100, description="Database pool size")
    db_max_overflow: int = Field(default=30, ge=0, le=200, description="Max overflow connections")
    db_pool_recycle: int = Field(default=1800, ge=300, description="Pool recycle time (seconds)")
    db_pool_pre_ping: bool = Field(default=True, description="Enable pool pre-ping")
    db_pool_timeout: int = Field(default=30, ge=1, le=120, description="Pool timeout (seconds)")
    db_echo: bool = Field(default=False, description="Echo SQL queries")

    # ==================== API Configuration ====================
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, ge=1024, le=65535, description="API port")
    api_reload: bool = Field(default=False, description="Enable auto-reload")
    cors_allowed_origins: str = Field(
        default="http://localhost:3000,https://localhost:3000",
        description="Comma-separated list of allowed CORS origins"
    )

    # ==================== Security ====================
    secret_key: str = Field(
        ...,  # Required field - no default
        min_length=32,
        description="Secret key for session JWTs (must be at least 32 characters)"
    )
    reset_secret_key: str = Field(
        ...,
        min_length=32,
        description="Separate secret for password-reset authorization JWTs"
    )
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = Field(
        default="HS256",
        description="JWT signing algorithm"
    )
    session_token_expire_days: int = Field(
        default=1,
        ge=1,
        le=30,
        description="Session token expiry (days)"
    )
    remember_me_expire_days: int = Field(
        default=30,
        ge=1,
        le=30,
        description="Session token expiry when 'remember me' is requested (days)"
    )
    reset_authorization_expire_minutes: int = Field(
        default=10,
        ge=1,
        le=60,
        description="Reset-authorization token expiry (minutes)"
    )
    jwt_leeway_seconds: int = Field(
        default=60,
        ge=0,
        le=300,
        description="Clock skew tolerance when verifying JWTs"
    )
    bcrypt_rounds: int = Field(
        default=12,
        ge=10,
        le=16,
        description="bcrypt cost factor"
    )

    # ==================== Booking ====================
    booking_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Re-validation attempts when a concurrent booking wins the race"
    )

    # ==================== Rate Limiting ====================
    rate_limit_enabled: bool = Field(default=True, description="Enable rate limiting")
    forgot_password_rate_limit: int = Field(
        default=5,
        ge=1,
        description="Forgot-password requests allowed per window per client"
    )
    forgot_password_rate_window_seconds: int = Field(
        default=3600,
        ge=60,
        description="Forgot-password rate limit window (seconds)"
    )
    trusted_proxies: str = Field(
        default="",
        description="Comma-separated proxy IPs allowed to set X-Forwarded-For"
    )

    # ==================== Email Configuration ====================
    email_enabled: bool = Field(default=False, description="Enable email sending")
    email_backend: str = Field(default="smtp", description="Email backend (smtp or console)")
    email_host: str = Field(default="smtp.gmail.com", description="SMTP host")
    email_port: int = Field(default=587, ge=1, le=65535, description="SMTP port")
    email_use_tls: bool = Field(default=True, description="Use TLS for email")
    email_use_ssl: bool = Field(default=False, description="Use SSL for email")
    email_host_user: Optional[str] = Field(default=None, description="Email account username")
    email_host_password: Optional[str] = Field(default=None, description="Email account password or app password")
    email_from_address: str = Field(
        default="noreply@claritycall.app",
        description="Default FROM email address"
    )
    email_from_name: str = Field(
        default="Clarity Call",
        description="Default FROM name"
    )
    password_reset_url: str = Field(
        default="http://localhost:3000/verify-reset-token",
        description="Frontend page the reset link points at"
    )
    password_reset_token_expire_minutes: int = Field(
        default=15,
        ge=1,
        le=1440,
        description="Password reset token expiry (minutes)"
    )

    # ==================== Monitoring & Logging ====================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    # ==================== Development ====================
    debug: bool = Field(default=False, description="Debug mode")
    testing: bool = Field(default=False, description="Testing mode")

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Ensure database URL is valid."""
        if not v.startswith(("postgresql://", "postgresql+asyncpg://", "sqlite://", "sqlite+aiosqlite://")):
            raise ValueError("Database URL must use PostgreSQL or SQLite")
        return v

    @field_validator("secret_key", "reset_secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Validate secret keys for production use."""
        if v in ["change-me-in-production", "development-key-not-secure"]:
            raise ValueError("Secret keys must be changed from default value in production")
        return v

    @model_validator(mode="after")
    def validate_distinct_secrets(self) -> "Settings":
        """Session and reset tokens must not share signing material."""
        if self.secret_key == self.reset_secret_key:
            raise ValueError("RESET_SECRET_KEY must differ from SECRET_KEY")
        return self

    @property
    def async_database_url(self) -> str:
        """Get async database URL for SQLAlchemy."""
        if "asyncpg" in self.database_url or "aiosqlite" in self.database_url:
            return self.database_url
        if self.database_url.startswith("sqlite://"):
            return self.database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    @property
    def is_sqlite(self) -> bool:
        """Check whether the configured database is SQLite."""
        return self.database_url.startswith("sqlite")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug or self.testing

    @property
    def allowed_origins(self) -> list[str]:
        """Parsed CORS origins."""
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]

    @property
    def trusted_proxy_ips(self) -> set[str]:
        """Parsed trusted proxy addresses."""
        return {ip.strip() for ip in self.trusted_proxies.split(",") if ip.strip()}


# Global settings instance
settings = Settings()
