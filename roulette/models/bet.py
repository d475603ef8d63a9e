"""Bet model."""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey
import uuid
from datetime import datetime, UTC
from roulette.database import Base
from roulette.models.base import get_uuid_column, get_money_column


class Bet(Base):
    """Wager settled against a single round."""
    __tablename__ = "bets"

    bet_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    player_id = get_uuid_column(ForeignKey("players.player_id", ondelete="CASCADE"), nullable=False, index=True)
    # Unique: one bet per round
    round_id = get_uuid_column(ForeignKey("game_rounds.round_id", ondelete="CASCADE"), nullable=False, unique=True)
    bet_type = Column(String(30), nullable=False)  # color, color_parity, exact_number_and_color
    wager = get_money_column(nullable=False)
    profit = get_money_column(nullable=True)  # Excludes the returned wager; 0 on a loss
    result_status = Column(String(10), nullable=False)  # won, lost

    # Selectors, populated per bet type
    color = Column(String(10), nullable=True)
    is_even = Column(Boolean, nullable=True)
    number = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    def __repr__(self):
        return (f"<Bet(bet_id={self.bet_id}, type={self.bet_type}, wager={self.wager}, "
                f"result={self.result_status})>")
