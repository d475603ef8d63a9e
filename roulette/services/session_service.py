"""Session service: settles a batch of bets the client played offline."""
from dataclasses import dataclass, field
from datetime import datetime, UTC
from decimal import Decimal
import uuid
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from roulette.config import get_settings
from roulette.models.game_round import GameRound
from roulette.services.bet_evaluator import (
    build_bet_spec,
    parse_color,
    validate_wager,
    validate_wheel_number,
)
from roulette.services.player_service import PlayerService
from roulette.services.round_service import BetOutcome, RoundService
from roulette.services.transaction_service import TransactionService, balance_lock_name
from roulette.utils import ensure_utc, lock_client, to_money
from roulette.utils.exceptions import InsufficientFundsError, InvalidColorError

logger = logging.getLogger(__name__)


@dataclass
class SessionPlay:
    """One bet played on the client, with the outcome the client observed."""
    wager: Decimal
    bet_type: str
    number_result: int
    color_result: str
    color: str | None = None
    is_even: bool | None = None
    number: int | None = None
    played_at: datetime | None = None


@dataclass
class SessionSaveResult:
    starting_funds: Decimal
    ending_funds: Decimal
    outcomes: list[BetOutcome] = field(default_factory=list)


class SessionService:
    """Replays client-side plays through the same settlement path as commits.

    The spin outcomes in a session are reported by the client and are not
    re-validated against anything the server generated.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()
        self.player_service = PlayerService(db)
        self.transaction_service = TransactionService(db)
        self.round_service = RoundService(db)

    async def save_session(self, player_name: str, plays: list[SessionPlay]) -> SessionSaveResult:
        """
        Settle every play in order inside one transaction.

        Each play gets a round that is already marked committed, a bet, a
        wager debit and, when won, a payout credit. A play with a bad wager,
        bad selectors, an unparseable color result or a wager above the
        running funds aborts the whole batch and leaves funds untouched.

        Raises:
            InvalidArgumentError: A play is malformed
            PlayerNotRegisteredError: Unknown player
            InsufficientFundsError: A play would overdraw the running funds
        """
        player = await self.player_service.get_registered_player(player_name)

        async with lock_client.lock(
            balance_lock_name(player.player_id), timeout=self.settings.balance_lock_timeout_seconds
        ):
            try:
                locked_player = await self.transaction_service.lock_player(player.player_id)
                starting_funds = to_money(locked_player.funds)
                running_funds = starting_funds
                outcomes: list[BetOutcome] = []

                for index, play in enumerate(plays):
                    wager = validate_wager(play.wager)
                    spec = build_bet_spec(play.bet_type, play.color, play.is_even, play.number)
                    color_result = parse_color(play.color_result)
                    if color_result is None:
                        raise InvalidColorError("color_result_required")
                    number_result = validate_wheel_number(play.number_result, field="number_result")

                    if running_funds < wager:
                        logger.warning(
                            f"Session play {index} for player {player.player_id} overdraws: "
                            f"funds {running_funds} < wager {wager}"
                        )
                        raise InsufficientFundsError()

                    game_round = GameRound(
                        round_id=uuid.uuid4(),
                        player_id=player.player_id,
                        number=number_result,
                        color=color_result.value,
                        bet_committed=True,
                        created_at=ensure_utc(play.played_at) or datetime.now(UTC),
                    )
                    self.db.add(game_round)
                    await self.db.flush()

                    outcome = await self.round_service.settle_bet(player.player_id, game_round, spec, wager)
                    running_funds = outcome.new_balance
                    outcomes.append(outcome)

                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

        logger.info(
            f"Saved session for player {player.player_id}: {len(outcomes)} plays, "
            f"funds {starting_funds} -> {running_funds}"
        )
        return SessionSaveResult(
            starting_funds=starting_funds,
            ending_funds=running_funds,
            outcomes=outcomes,
        )
