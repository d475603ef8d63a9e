from roulette.services.wheel import RouletteWheel, SpinOutcome
from roulette.services.bet_evaluator import (
    BetEvaluation,
    BetSpec,
    ColorBet,
    ColorParityBet,
    ExactNumberAndColorBet,
    build_bet_spec,
    evaluate_bet,
)
from roulette.services.transaction_service import TransactionService, LedgerAudit
from roulette.services.player_service import PlayerService, normalize_player_name
from roulette.services.round_service import RoundService, BetOutcome
from roulette.services.session_service import SessionService, SessionPlay, SessionSaveResult

__all__ = [
    "RouletteWheel",
    "SpinOutcome",
    "BetEvaluation",
    "BetSpec",
    "ColorBet",
    "ColorParityBet",
    "ExactNumberAndColorBet",
    "build_bet_spec",
    "evaluate_bet",
    "TransactionService",
    "LedgerAudit",
    "PlayerService",
    "normalize_player_name",
    "RoundService",
    "BetOutcome",
    "SessionService",
    "SessionPlay",
    "SessionSaveResult",
]
