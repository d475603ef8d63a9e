"""Application configuration management."""
from decimal import Decimal
from pydantic import model_validator, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from sqlalchemy.engine.url import make_url, URL
from typing import Optional
import logging

SQLITE_LOCAL_URL = "sqlite+aiosqlite:///./roulette.db"
MONEY_QUANTUM = Decimal("0.01")
# Largest amount a Numeric(18, 2) column holds
MONEY_MAX = Decimal("9999999999999999.99")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = SQLITE_LOCAL_URL
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Redis (optional, falls back to in-memory locks)
    redis_url: str = ""

    # Application
    environment: str = "development"
    log_dir: str = "logs"

    # Game constants (currency units with two decimal places)
    starting_funds: Decimal = Decimal("100.00")

    # History and ledger paging
    history_default_take: int = 50
    history_max_take: int = 200
    transactions_page_limit: int = 50

    # Balance mutations
    balance_lock_timeout_seconds: int = 10

    @field_validator("starting_funds")
    @classmethod
    def quantize_starting_funds(cls, value: Decimal) -> Decimal:
        """Starting funds are stored with exactly two decimal places."""
        if value < 0:
            raise ValueError("starting_funds must not be negative")
        return value.quantize(MONEY_QUANTUM)

    @model_validator(mode="after")
    def validate_all_config(self):
        """Validate paging limits and normalize Postgres URLs."""
        logger = logging.getLogger(__name__)

        if self.history_max_take < 1:
            raise ValueError("history_max_take must be at least 1")

        if not 1 <= self.history_default_take <= self.history_max_take:
            raise ValueError("history_default_take must be between 1 and history_max_take")

        if self.balance_lock_timeout_seconds < 1:
            raise ValueError("balance_lock_timeout_seconds must be at least 1 second")

        url = self.database_url
        if not url:
            logger.warning("Empty DATABASE_URL, using SQLite fallback")
            self.database_url = SQLITE_LOCAL_URL
            return self

        parsed: Optional[URL] = None
        try:
            parsed = make_url(url)
        except Exception as e:
            logger.error(f"Failed to parse DATABASE_URL: {e}")
            logger.warning("Invalid DATABASE_URL; falling back to default sqlite database.")
            self.database_url = SQLITE_LOCAL_URL
            return self

        drivername = parsed.drivername
        if drivername.startswith("postgres") and "+asyncpg" not in drivername:
            parsed = parsed.set(drivername="postgresql+asyncpg")
            logger.info(f"Driver normalized: {drivername} -> {parsed.drivername}")

        # Use render_as_string to properly re-encode special characters in password
        self.database_url = parsed.render_as_string(hide_password=False)
        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
