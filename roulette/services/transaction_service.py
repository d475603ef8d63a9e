"""Transaction service for atomic balance updates and the funds ledger."""
from dataclasses import dataclass
from datetime import datetime, UTC
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from uuid import UUID
import uuid
import logging

from roulette.config import get_settings
from roulette.models.base import BalanceTransactionType
from roulette.models.player import Player
from roulette.models.transaction import BalanceTransaction
from roulette.utils import lock_client, to_money
from roulette.utils.exceptions import InsufficientFundsError, PlayerNotRegisteredError

logger = logging.getLogger(__name__)


def balance_lock_name(player_id: UUID) -> str:
    """Name of the lock serializing every funds mutation for a player."""
    return f"player_balance:{player_id}"


@dataclass
class LedgerAudit:
    """Result of replaying a player's ledger."""
    consistent: bool
    entry_count: int
    replayed_funds: Decimal
    current_funds: Decimal
    first_mismatch_sequence: int | None = None


class TransactionService:
    """Service for managing player funds and ledger entries."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()

    async def lock_player(self, player_id: UUID) -> Player:
        """Re-read the player row with a row lock, discarding any cached state.

        Raises:
            PlayerNotRegisteredError: If the player does not exist
        """
        result = await self.db.execute(
            select(Player)
            .where(Player.player_id == player_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        player = result.scalar_one_or_none()
        if not player:
            raise PlayerNotRegisteredError()
        return player

    async def _next_sequence(self, player_id: UUID) -> int:
        result = await self.db.execute(
            select(func.max(BalanceTransaction.sequence)).where(BalanceTransaction.player_id == player_id)
        )
        return (result.scalar() or 0) + 1

    async def create_transaction(
        self,
        player_id: UUID,
        amount: Decimal,
        trans_type: BalanceTransactionType,
        bet_id: UUID | None = None,
        auto_commit: bool = True,
        skip_lock: bool = False,
    ) -> BalanceTransaction:
        """
        Create a ledger entry and update the player's funds atomically.

        Uses the player balance lock to prevent race conditions (unless skip_lock=True).

        Args:
            player_id: Player UUID
            amount: Amount (negative for debits, positive for credits)
            trans_type: Ledger entry type
            bet_id: Optional reference to the bet this entry belongs to
            auto_commit: If True, commits immediately. If False, caller must commit.
            skip_lock: If True, assumes caller has already acquired the lock.

        Returns:
            Created transaction

        Raises:
            InsufficientFundsError: If funds would go negative
        """
        amount = to_money(amount)
        trans_type = BalanceTransactionType(trans_type)

        async def _create_transaction_impl():
            player = await self.lock_player(player_id)

            current_funds = to_money(player.funds)
            new_funds = current_funds + amount
            if new_funds < 0:
                logger.warning(
                    f"Rejected {trans_type.value} for player={player_id}: "
                    f"funds {current_funds} + {amount} = {new_funds} < 0"
                )
                raise InsufficientFundsError()

            player.funds = new_funds

            transaction = BalanceTransaction(
                transaction_id=uuid.uuid4(),
                player_id=player_id,
                bet_id=bet_id,
                type=trans_type.value,
                amount=amount,
                balance_after=new_funds,
                sequence=await self._next_sequence(player_id),
                created_at=datetime.now(UTC),
            )

            self.db.add(transaction)
            await self.db.flush()

            if auto_commit:
                await self.db.commit()

            logger.info(
                f"BalanceTransaction created: player={player_id}, amount={amount}, "
                f"type={trans_type.value}, sequence={transaction.sequence}, "
                f"new_funds={new_funds}, auto_commit={auto_commit}"
            )

            return transaction

        if skip_lock:
            return await _create_transaction_impl()

        async with lock_client.lock(
            balance_lock_name(player_id), timeout=self.settings.balance_lock_timeout_seconds
        ):
            return await _create_transaction_impl()

    async def get_player_transactions(
        self,
        player_id: UUID,
        limit: int = 50,
        offset: int = 0,
    ) -> list[BalanceTransaction]:
        """Get player ledger entries, newest first."""
        result = await self.db.execute(
            select(BalanceTransaction)
            .where(BalanceTransaction.player_id == player_id)
            .order_by(BalanceTransaction.sequence.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def audit_player_ledger(self, player_id: UUID) -> LedgerAudit:
        """Replay the ledger in order and compare it with the stored funds.

        Every entry's ``balance_after`` must equal the running sum of amounts,
        and the final sum must equal the player's current funds.
        """
        result = await self.db.execute(
            select(Player.funds).where(Player.player_id == player_id)
        )
        current_funds = result.scalar_one_or_none()
        if current_funds is None:
            raise PlayerNotRegisteredError()
        current_funds = to_money(current_funds)

        result = await self.db.execute(
            select(BalanceTransaction)
            .where(BalanceTransaction.player_id == player_id)
            .order_by(BalanceTransaction.sequence.asc())
        )
        entries = list(result.scalars().all())

        running = to_money(0)
        first_mismatch = None
        for expected_sequence, entry in enumerate(entries, start=1):
            running += to_money(entry.amount)
            if first_mismatch is None and (
                entry.sequence != expected_sequence or to_money(entry.balance_after) != running
            ):
                first_mismatch = entry.sequence

        if first_mismatch is None and running != current_funds:
            first_mismatch = entries[-1].sequence if entries else 0

        audit = LedgerAudit(
            consistent=first_mismatch is None,
            entry_count=len(entries),
            replayed_funds=running,
            current_funds=current_funds,
            first_mismatch_sequence=first_mismatch,
        )
        if not audit.consistent:
            logger.error(
                f"Ledger mismatch for player={player_id}: replayed={running}, "
                f"current={current_funds}, first_mismatch_sequence={first_mismatch}"
            )
        return audit
