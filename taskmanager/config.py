"""
Task Management API: Application Configuration
==============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the application factory; tests build their own instances.
When:  Loaded once at module import time; validated before the app starts.
"""

from typing import List

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

# HS256 needs a key at least as long as the digest (256 bits)
MIN_SECRET_KEY_BYTES = 32


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have working defaults for local development.
    Production deployments MUST override JWT_SECRET_KEY.

    Attributes are grouped by concern for readability.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # What: Async SQLAlchemy URL. The default keeps everything in process
    # memory; a postgresql+asyncpg:// URL works without code changes.
    database_url: str = Field(
        default="sqlite+aiosqlite:///:memory:",
        description="Async SQLAlchemy connection URL",
    )

    # Pool sizing is only applied to server databases (SQLite uses a static pool)
    db_pool_size: int = Field(default=20, ge=5, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # ── JWT ───────────────────────────────────────────────────────────────
    jwt_secret_key: str = Field(
        default="DevelopmentOnlySecretKeyThatIsAtLeast32CharactersLong",
        description="Symmetric HS256 signing key (at least 32 bytes)",
    )
    jwt_issuer: str = Field(default="TaskManagementAPI")
    jwt_audience: str = Field(default="TaskManagementAPIUsers")
    jwt_expiration_minutes: int = Field(default=60, ge=1, le=1440)

    # What: Tolerance applied to exp/iat checks when verifying bearer tokens
    jwt_clock_skew_seconds: int = Field(default=0, ge=0, le=300)

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Rejects signing keys shorter than 256 bits."""
        if len(v.encode("utf-8")) < MIN_SECRET_KEY_BYTES:
            raise ValueError(
                f"jwt_secret_key must be at least {MIN_SECRET_KEY_BYTES} bytes long"
            )
        return v

    # ── Password Hashing ──────────────────────────────────────────────────
    # What: bcrypt cost factor (2^rounds iterations)
    # Tests drop this to 4 so seeding and logins stay fast.
    bcrypt_rounds: int = Field(default=12, ge=4, le=16)

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # What: Fixed window counter per client (user:<name> or ip:<address>)
    rate_limit_requests: int = Field(default=100, ge=1, le=100000)
    rate_limit_window_minutes: float = Field(default=15, gt=0, le=1440)

    # What: Background sweep of stale counters
    # Counters whose window started more than `retention` minutes ago are evicted
    rate_limit_cleanup_interval_seconds: float = Field(default=300, gt=0)
    rate_limit_retention_minutes: float = Field(default=60, gt=0)

    # ── Performance Monitoring ────────────────────────────────────────────
    slow_request_threshold_ms: int = Field(default=2000, ge=1)
    critical_request_threshold_ms: int = Field(default=5000, ge=1)

    @model_validator(mode="after")
    def validate_thresholds(self) -> "Settings":
        """The critical threshold must sit above the slow threshold."""
        if self.critical_request_threshold_ms <= self.slow_request_threshold_ms:
            raise ValueError(
                "critical_request_threshold_ms must be greater than slow_request_threshold_ms"
            )
        return self

    # ── Demo Data ─────────────────────────────────────────────────────────
    seed_demo_data: bool = Field(default=True)

    # ── Diagnostics ───────────────────────────────────────────────────────
    # What: /diagnostics/slow, /diagnostics/error and /diagnostics/load-test
    # Off by default. They drive the pipeline stages in a running deployment.
    enable_diagnostics: bool = Field(default=False)
    diagnostics_slow_delay_ms: int = Field(default=3000, ge=0, le=60000)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def rate_limit_window_seconds(self) -> float:
        return self.rate_limit_window_minutes * 60

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Singleton instance used by `taskmanager.main:app`
settings = Settings()
