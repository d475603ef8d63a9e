"""Utilities module - lock client and helpers."""
from roulette.config import get_settings
from roulette.utils.lock_client import LockClient
from roulette.utils.datetime_helpers import ensure_utc
from roulette.utils.money import to_money

settings = get_settings()

# Create singleton instances
lock_client = LockClient(settings.redis_url if settings.redis_url else None)

__all__ = ["lock_client", "ensure_utc", "to_money"]
