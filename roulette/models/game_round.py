"""Game round model."""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Index
import uuid
from datetime import datetime, UTC
from roulette.database import Base
from roulette.models.base import get_uuid_column


class GameRound(Base):
    """One wheel spin owned by a player. Accepts at most one bet."""
    __tablename__ = "game_rounds"

    round_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    player_id = get_uuid_column(ForeignKey("players.player_id", ondelete="CASCADE"), nullable=False, index=True)
    number = Column(Integer, nullable=False)  # 0-36
    color = Column(String(10), nullable=False)  # red, black
    bet_committed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False, index=True)

    __table_args__ = (
        Index('ix_game_rounds_player_created', 'player_id', 'created_at'),
    )

    def __repr__(self):
        return (f"<GameRound(round_id={self.round_id}, number={self.number}, "
                f"color={self.color}, bet_committed={self.bet_committed})>")
