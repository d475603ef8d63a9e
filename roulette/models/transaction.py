"""Balance transaction ledger model."""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index, UniqueConstraint
import uuid
from datetime import datetime, UTC
from roulette.database import Base
from roulette.models.base import get_uuid_column, get_money_column


class BalanceTransaction(Base):
    """Append-only ledger entry for a single funds change."""
    __tablename__ = "balance_transactions"

    transaction_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    player_id = get_uuid_column(ForeignKey("players.player_id", ondelete="CASCADE"), nullable=False, index=True)
    bet_id = get_uuid_column(ForeignKey("bets.bet_id", ondelete="CASCADE"), nullable=True, index=True)
    type = Column(String(30), nullable=False, index=True)
    # Types: initial_funds, bet_wager, bet_payout, manual_save_delta
    amount = get_money_column(nullable=False)  # Negative for debits, positive for credits
    balance_after = get_money_column(nullable=False)
    sequence = Column(Integer, nullable=False)  # Per-player, starts at 1
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint('player_id', 'sequence', name='uq_balance_transactions_player_sequence'),
        Index('ix_balance_transactions_player_created', 'player_id', 'created_at'),
    )

    def __repr__(self):
        return (f"<BalanceTransaction(transaction_id={self.transaction_id}, amount={self.amount}, "
                f"type={self.type}, balance_after={self.balance_after})>")
