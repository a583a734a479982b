"""
Application configuration.

Loads settings from environment variables and .env file.
All configuration is centralized here: no scattered magic strings.
"""

from decimal import Decimal
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

POSTGRES_SCHEMES = ("postgresql://", "postgres://", "postgresql+")
SQLITE_SCHEME = "sqlite://"


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        environment: "development" or "production".
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        rate_limit_default: Default rate limit for all endpoints.
        rate_limit_auth: Rate limit for sign-in and sign-up endpoints.
        rate_limit_enabled: Global switch for rate limiting.
        database_url: Primary database URL (PostgreSQL URL or SQLite path).
        database_public_url: Fallback database URL.
        database_path: SQLite file used in production when no URL is set.
        session_secret: Key used to sign the session cookie.
        session_max_age_seconds: Session cookie lifetime.
        session_https_only: Send the session cookie over HTTPS only.
        bcrypt_rounds: bcrypt cost factor for password hashing.
        seed_on_startup: Seed demo client and default admins at startup.
        min_deposit_amount: Smallest deposit a client can request.
        external_transfer_fee_rate: Fee charged on external transfers.
        ib_commission_rate: Commission rate of newly created IB wallets.
        default_trading_server: Server label stored on new trading accounts.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    project_name: str = "Broker Portal"
    version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"
    rate_limit_default: str = "60/minute"
    rate_limit_auth: str = "10/minute"
    rate_limit_enabled: bool = True

    database_url: Optional[str] = None
    database_public_url: Optional[str] = None
    database_path: Optional[str] = None

    session_secret: str = "portal-secret-key-change-in-production"
    session_max_age_seconds: int = 60 * 60 * 24 * 7  # 7 days
    session_https_only: bool = False

    bcrypt_rounds: int = 10
    seed_on_startup: bool = True

    min_deposit_amount: Decimal = Decimal("10.00")
    external_transfer_fee_rate: Decimal = Decimal("0.025")
    ib_commission_rate: Decimal = Decimal("0.05")
    default_trading_server: str = "Mekness-Live"

    @property
    def is_production(self) -> bool:
        """Return True when running with production settings."""
        return self.environment.lower() == "production"

    def get_database_url(self) -> str:
        """Return the effective SQLAlchemy database URL.

        Priority:
        1. Explicit `DATABASE_URL`, then `DATABASE_PUBLIC_URL`.
           ``postgres://`` is rewritten to ``postgresql://``; a value that is
           neither a PostgreSQL nor a SQLite URL is treated as a SQLite path.
        2. `DATABASE_PATH` (or /tmp/portal.db) in production.
        3. ./local.db in development.
        """
        raw = self.database_url or self.database_public_url
        if raw:
            if raw.startswith("postgres://"):
                return "postgresql://" + raw[len("postgres://"):]
            if raw.startswith(POSTGRES_SCHEMES) or raw.startswith(SQLITE_SCHEME):
                return raw
            return f"sqlite:///{raw}"

        if self.is_production:
            path = self.database_path or str(Path("/tmp") / "portal.db")
        else:
            path = str(Path.cwd() / "local.db")
        return f"sqlite:///{path}"


settings = Settings()
