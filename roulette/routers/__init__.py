"""API routers."""
from roulette.routers import game, health, players

__all__ = [
    "game",
    "health",
    "players",
]
