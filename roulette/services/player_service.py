"""Player service: name-based login and lookup."""
import logging
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from roulette.config import get_settings
from roulette.models.base import BalanceTransactionType
from roulette.models.player import Player
from roulette.services.transaction_service import TransactionService
from roulette.utils import to_money
from roulette.utils.exceptions import InvalidArgumentError, PlayerNotRegisteredError

logger = logging.getLogger(__name__)

PLAYER_NAME_MAX_LENGTH = 100


def normalize_player_name(name: str | None) -> str:
    """Return the case-insensitive lookup key for a player name.

    Raises:
        InvalidArgumentError: If the name is blank or too long
    """
    display_name = clean_player_name(name)
    return display_name.upper()


def clean_player_name(name: str | None) -> str:
    """Trim a player name for display, keeping its case."""
    display_name = (name or "").strip()
    if not display_name:
        raise InvalidArgumentError("player_name_required")
    if len(display_name) > PLAYER_NAME_MAX_LENGTH:
        raise InvalidArgumentError("player_name_too_long")
    return display_name


class PlayerService:
    """Service for player accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()

    async def get_player_by_name(self, name: str) -> Player | None:
        """Get player by name (trimmed, case-insensitive).

        Raises:
            InvalidArgumentError: If the name is blank or too long
        """
        normalized_name = normalize_player_name(name)
        result = await self.db.execute(
            select(Player).where(Player.normalized_name == normalized_name)
        )
        return result.scalars().first()

    async def get_registered_player(self, name: str) -> Player:
        """Get player by name, failing when nobody has logged in with it.

        Raises:
            InvalidArgumentError: If the name is blank or too long
            PlayerNotRegisteredError: If no such player exists
        """
        player = await self.get_player_by_name(name)
        if not player:
            raise PlayerNotRegisteredError()
        return player

    async def login(self, name: str) -> Player:
        """Return the player with this name, creating it on first sight.

        A new player is written together with its initial funds ledger entry.
        If a concurrent login creates the same name first, the unique index
        rejects this insert and the existing player is returned instead.
        """
        display_name = clean_player_name(name)
        normalized_name = display_name.upper()

        player = await self.get_player_by_name(display_name)
        if player:
            return player

        starting_funds: Decimal = self.settings.starting_funds
        player = Player(
            player_id=uuid.uuid4(),
            name=display_name,
            normalized_name=normalized_name,
            funds=to_money(0),
        )
        self.db.add(player)

        try:
            await self.db.flush()
            await TransactionService(self.db).create_transaction(
                player.player_id,
                starting_funds,
                BalanceTransactionType.INITIAL_FUNDS,
                auto_commit=False,
                skip_lock=True,  # Nobody else can reference this player yet
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            existing = await self.get_player_by_name(display_name)
            if existing is None:
                raise
            logger.info(f"Concurrent login already created player {existing.player_id}")
            return existing
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Created player {player.player_id} ({display_name}) with starting funds {starting_funds}"
        )
        return player
