"""Player model."""
from sqlalchemy import Column, String, DateTime
import uuid
from datetime import datetime, UTC
from roulette.database import Base
from roulette.models.base import get_uuid_column, get_money_column


class Player(Base):
    """Player account identified by a case-insensitive name.

    ``funds`` is only ever changed together with a ledger entry; the
    non-negative rule is enforced by the transaction service, not the schema.
    """
    __tablename__ = "players"

    player_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    normalized_name = Column(String(100), unique=True, nullable=False)
    funds = get_money_column(nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    def __repr__(self):
        return f"<Player(player_id={self.player_id}, name={self.name}, funds={self.funds})>"
