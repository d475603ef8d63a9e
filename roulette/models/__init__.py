"""Database models."""
from roulette.models.player import Player
from roulette.models.game_round import GameRound
from roulette.models.bet import Bet
from roulette.models.transaction import BalanceTransaction

__all__ = [
    "Player",
    "GameRound",
    "Bet",
    "BalanceTransaction",
]
