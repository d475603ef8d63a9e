"""Spin, bet and session schemas."""
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID
from roulette.schemas.base import BaseSchema


class SpinResult(BaseSchema):
    """Outcome of a spin. The round stays open until a bet is committed."""
    round_id: UUID
    number: int
    color: str
    created_at: datetime


class CommitBetRequest(BaseModel):
    """Bet against a previously spun round.

    ``bet_type`` accepts color, color_parity (or colorParity) and
    exact_number_and_color (or exact). Selectors not used by the bet type
    are ignored.
    """
    player_name: str
    round_id: UUID
    wager: Decimal
    bet_type: str
    color: Optional[str] = None
    is_even: Optional[bool] = None
    number: Optional[int] = None


class BetOutcomeResponse(BaseSchema):
    """Settled bet with the player's balance after settlement."""
    round_id: UUID
    bet_id: UUID
    number: int
    color: str
    wager: Decimal
    profit: Decimal
    new_balance: Decimal
    won: bool
    bet_type: str
    criteria: dict[str, Any]


class BetHistoryItem(BaseSchema):
    """Past bet joined with the round it was settled against."""
    round_id: UUID
    bet_id: UUID
    number: int
    color: str
    round_created_at: datetime
    wager: Decimal
    profit: Decimal
    won: bool
    bet_type: str
    criteria: dict[str, Any]


class BetHistoryResponse(BaseSchema):
    """Most recent bets, newest round first."""
    bets: list[BetHistoryItem]


class SaveSessionBetItem(BaseModel):
    """One bet played client-side, with the outcome the client observed."""
    wager: Decimal
    bet_type: str
    color: Optional[str] = None
    is_even: Optional[bool] = None
    number: Optional[int] = None
    number_result: int
    color_result: str
    played_at_utc: Optional[datetime] = None


class SaveSessionRequest(BaseModel):
    """Batch of client-side plays settled in order, all or nothing."""
    player_name: str
    bets: list[SaveSessionBetItem] = Field(default_factory=list)


class SessionSaveResponse(BaseSchema):
    """Funds before and after a saved session with each play's outcome."""
    starting_funds: Decimal
    ending_funds: Decimal
    outcomes: list[BetOutcomeResponse]
