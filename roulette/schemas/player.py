"""Player-related Pydantic schemas."""
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID
from roulette.schemas.base import BaseSchema


class LoginRequest(BaseModel):
    """Name-only login. A new name creates a player with starting funds."""
    player_name: str = Field(..., max_length=200)


class PlayerBalance(BaseSchema):
    """Player balance response."""
    player_id: UUID
    name: str
    funds: Decimal
    created_at: datetime


class TransactionEntry(BaseSchema):
    """Single ledger entry."""
    transaction_id: UUID
    bet_id: Optional[UUID] = None
    type: str
    amount: Decimal
    balance_after: Decimal
    sequence: int
    created_at: datetime


class PlayerTransactionsResponse(BaseSchema):
    """Page of ledger entries, newest first."""
    transactions: list[TransactionEntry]
    limit: int
    offset: int


class LedgerAuditResponse(BaseSchema):
    """Result of replaying a player's ledger against the stored funds."""
    consistent: bool
    entry_count: int
    replayed_funds: Decimal
    current_funds: Decimal
    first_mismatch_sequence: Optional[int] = None
