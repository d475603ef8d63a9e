"""Round service: spins, bet commits and bet history."""
from dataclasses import dataclass
from datetime import datetime, UTC
from decimal import Decimal
from typing import Any
from uuid import UUID
import uuid
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roulette.config import get_settings
from roulette.models.base import BalanceTransactionType, BetResultStatus, BetType, RouletteColor
from roulette.models.bet import Bet
from roulette.models.game_round import GameRound
from roulette.services.bet_evaluator import (
    BetSpec,
    build_bet_spec,
    describe_criteria,
    evaluate_bet,
    validate_wager,
)
from roulette.services.player_service import PlayerService
from roulette.services.transaction_service import TransactionService, balance_lock_name
from roulette.services.wheel import RouletteWheel
from roulette.utils import lock_client, to_money
from roulette.utils.exceptions import (
    InsufficientFundsError,
    RoundAlreadyCommittedError,
    RoundNotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass
class BetOutcome:
    """Settled bet as reported back to the player."""
    round_id: UUID
    bet_id: UUID
    number: int
    color: RouletteColor
    wager: Decimal
    profit: Decimal
    new_balance: Decimal
    won: bool
    bet_type: BetType
    criteria: dict[str, Any]


def bet_criteria(bet: Bet) -> dict[str, Any]:
    """Normalized selectors of a stored bet."""
    return describe_criteria(build_bet_spec(bet.bet_type, bet.color, bet.is_even, bet.number))


class RoundService:
    """Service for managing roulette rounds and the bets settled against them."""

    def __init__(self, db: AsyncSession, wheel: RouletteWheel | None = None):
        self.db = db
        self.settings = get_settings()
        self.wheel = wheel or RouletteWheel()
        self.player_service = PlayerService(db)
        self.transaction_service = TransactionService(db)

    async def spin(self, player_name: str) -> GameRound:
        """Spin the wheel for a registered player and store the pending round."""
        player = await self.player_service.get_registered_player(player_name)
        outcome = self.wheel.spin()

        round_object = GameRound(
            round_id=uuid.uuid4(),
            player_id=player.player_id,
            number=outcome.number,
            color=outcome.color.value,
            bet_committed=False,
            created_at=datetime.now(UTC),
        )
        self.db.add(round_object)

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Spun round {round_object.round_id} for player {player.player_id}: "
            f"{outcome.number} {outcome.color.value}"
        )
        return round_object

    async def _get_round_for_player(
        self,
        round_id: UUID,
        player_id: UUID,
        for_update: bool = False,
    ) -> GameRound | None:
        stmt = select(GameRound).where(
            GameRound.round_id == round_id,
            GameRound.player_id == player_id,
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def settle_bet(
        self,
        player_id: UUID,
        game_round: GameRound,
        spec: BetSpec,
        wager: Decimal,
    ) -> BetOutcome:
        """Write the bet, its ledger entries and the round flag.

        Runs inside the caller's transaction with the balance lock held and
        never commits. The wager is always debited; the payout (wager plus
        profit) is credited only for a win with positive profit.

        Raises:
            InsufficientFundsError: If the wager exceeds the locked funds
        """
        evaluation = evaluate_bet(game_round.number, RouletteColor(game_round.color), spec, wager)
        criteria = evaluation.criteria

        bet = Bet(
            bet_id=uuid.uuid4(),
            player_id=player_id,
            round_id=game_round.round_id,
            bet_type=evaluation.bet_type.value,
            wager=wager,
            profit=evaluation.profit,
            result_status=(BetResultStatus.WON if evaluation.won else BetResultStatus.LOST).value,
            color=criteria["color"],
            is_even=criteria.get("is_even"),
            number=criteria.get("number"),
            created_at=datetime.now(UTC),
        )
        self.db.add(bet)
        await self.db.flush()

        wager_entry = await self.transaction_service.create_transaction(
            player_id,
            -wager,
            BalanceTransactionType.BET_WAGER,
            bet_id=bet.bet_id,
            auto_commit=False,
            skip_lock=True,
        )
        new_balance = wager_entry.balance_after

        game_round.bet_committed = True

        if evaluation.won and evaluation.profit > 0:
            payout_entry = await self.transaction_service.create_transaction(
                player_id,
                wager + evaluation.profit,
                BalanceTransactionType.BET_PAYOUT,
                bet_id=bet.bet_id,
                auto_commit=False,
                skip_lock=True,
            )
            new_balance = payout_entry.balance_after

        return BetOutcome(
            round_id=game_round.round_id,
            bet_id=bet.bet_id,
            number=game_round.number,
            color=RouletteColor(game_round.color),
            wager=wager,
            profit=evaluation.profit,
            new_balance=to_money(new_balance),
            won=evaluation.won,
            bet_type=evaluation.bet_type,
            criteria=criteria,
        )

    async def commit_bet(
        self,
        player_name: str,
        round_id: UUID,
        wager,
        bet_type: str,
        color: str | None = None,
        is_even: bool | None = None,
        number: int | None = None,
    ) -> BetOutcome:
        """
        Commit a bet against a pending round.

        - Validate the wager and selectors
        - Fast-fail on the cached round flag and funds
        - Under the balance lock and in one transaction: re-read funds and the
          round, re-check both, then settle

        Raises:
            InvalidArgumentError: Bad wager, selectors, bet type or player name
            PlayerNotRegisteredError: Unknown player
            RoundNotFoundError: Round missing or owned by another player
            RoundAlreadyCommittedError: Round already has a bet
            InsufficientFundsError: Wager exceeds funds
        """
        wager = validate_wager(wager)
        spec = build_bet_spec(bet_type, color, is_even, number)

        player = await self.player_service.get_registered_player(player_name)

        game_round = await self._get_round_for_player(round_id, player.player_id)
        if game_round is None:
            logger.warning(f"Round {round_id} not found for player {player.player_id}")
            raise RoundNotFoundError()
        if game_round.bet_committed:
            raise RoundAlreadyCommittedError()
        if to_money(player.funds) < wager:
            raise InsufficientFundsError()

        async with lock_client.lock(
            balance_lock_name(player.player_id), timeout=self.settings.balance_lock_timeout_seconds
        ):
            try:
                locked_player = await self.transaction_service.lock_player(player.player_id)
                game_round = await self._get_round_for_player(round_id, player.player_id, for_update=True)
                if game_round is None:
                    raise RoundNotFoundError()
                if game_round.bet_committed:
                    raise RoundAlreadyCommittedError()
                if to_money(locked_player.funds) < wager:
                    logger.warning(
                        f"Funds changed under player {player.player_id}: "
                        f"{locked_player.funds} < wager {wager}"
                    )
                    raise InsufficientFundsError()

                outcome = await self.settle_bet(player.player_id, game_round, spec, wager)
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

        logger.info(
            f"Committed bet {outcome.bet_id} on round {round_id} for player {player.player_id}: "
            f"type={outcome.bet_type.value}, wager={wager}, won={outcome.won}, "
            f"profit={outcome.profit}, new_balance={outcome.new_balance}"
        )
        return outcome

    def resolve_history_take(self, take: int | None) -> int:
        """Clamp a requested history size, falling back to the default when out of range."""
        if take is None or take < 1 or take > self.settings.history_max_take:
            return self.settings.history_default_take
        return take

    async def get_bet_history(
        self,
        player_name: str,
        take: int | None = None,
    ) -> list[tuple[Bet, GameRound]]:
        """Get a player's recent bets with their rounds, most recent round first."""
        player = await self.player_service.get_registered_player(player_name)
        take = self.resolve_history_take(take)

        result = await self.db.execute(
            select(Bet, GameRound)
            .join(GameRound, Bet.round_id == GameRound.round_id)
            .where(Bet.player_id == player.player_id)
            .order_by(GameRound.created_at.desc(), Bet.created_at.desc())
            .limit(take)
        )
        return [(bet, game_round) for bet, game_round in result.all()]
