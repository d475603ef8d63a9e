"""
Tests for RoundService - spins, bet commits and bet history.
"""
import asyncio
import uuid
from decimal import Decimal

import pytest
from sqlalchemy import select

from roulette.models.base import BalanceTransactionType, BetType, RouletteColor
from roulette.models.bet import Bet
from roulette.models.game_round import GameRound
from roulette.models.player import Player
from roulette.services.round_service import RoundService
from roulette.services.transaction_service import TransactionService
from roulette.services.wheel import RouletteWheel, SpinOutcome
from roulette.utils.exceptions import (
    InsufficientFundsError,
    InvalidBetError,
    PlayerNotRegisteredError,
    RoundAlreadyCommittedError,
    RoundNotFoundError,
    UnsupportedBetTypeError,
)


class FixedWheel(RouletteWheel):
    """Wheel that replays a scripted list of outcomes."""

    def __init__(self, *outcomes: tuple[int, RouletteColor]):
        super().__init__()
        self._outcomes = [SpinOutcome(number=number, color=color) for number, color in outcomes]

    def spin(self) -> SpinOutcome:
        return self._outcomes.pop(0)


async def _funds(db_session, player_id) -> Decimal:
    result = await db_session.execute(select(Player.funds).where(Player.player_id == player_id))
    return result.scalar_one()


class TestSpin:
    async def test_spin_creates_open_round_in_range(self, db_session, player_factory):
        player = await player_factory()
        service = RoundService(db_session)

        for _ in range(20):
            game_round = await service.spin(player.name)

            assert 0 <= game_round.number <= 36
            assert game_round.color in ("red", "black")
            assert game_round.bet_committed is False
            assert game_round.player_id == player.player_id

    async def test_spin_unknown_player(self, db_session, unique_name):
        with pytest.raises(PlayerNotRegisteredError):
            await RoundService(db_session).spin(unique_name("nobody"))


class TestCommitBet:
    async def test_alice_color_win(self, db_session, unique_name, player_factory):
        alice = await player_factory(unique_name("Alice"))
        service = RoundService(db_session, wheel=FixedWheel((17, RouletteColor.BLACK)))
        game_round = await service.spin(alice.name)

        outcome = await service.commit_bet(alice.name, game_round.round_id, Decimal("20.00"), "color", color="Black")

        assert outcome.won is True
        assert outcome.profit == Decimal("10.00")
        assert outcome.number == 17
        assert outcome.color == RouletteColor.BLACK
        assert outcome.bet_type == BetType.COLOR
        assert outcome.criteria == {"color": "black"}
        # 100.00 - 20.00 wager + 30.00 payout
        assert outcome.new_balance == Decimal("110.00")

        entries = await TransactionService(db_session).get_player_transactions(alice.player_id)
        assert [(entry.type, entry.amount, entry.balance_after) for entry in reversed(entries)] == [
            (BalanceTransactionType.INITIAL_FUNDS.value, Decimal("100.00"), Decimal("100.00")),
            (BalanceTransactionType.BET_WAGER.value, Decimal("-20.00"), Decimal("80.00")),
            (BalanceTransactionType.BET_PAYOUT.value, Decimal("30.00"), Decimal("110.00")),
        ]
        assert all(entry.bet_id == outcome.bet_id for entry in entries[:2])

    async def test_alice_exact_loss_on_color_mismatch(self, db_session, unique_name, player_factory):
        alice = await player_factory(unique_name("Alice"))
        service = RoundService(db_session, wheel=FixedWheel((5, RouletteColor.RED)))
        game_round = await service.spin(alice.name)

        outcome = await service.commit_bet(
            alice.name, game_round.round_id, Decimal("10"), "exact", color="black", number=5
        )

        assert outcome.won is False
        assert outcome.profit == Decimal("0.00")
        assert outcome.new_balance == Decimal("90.00")

        entries = await TransactionService(db_session).get_player_transactions(alice.player_id)
        assert len(entries) == 2
        assert entries[0].type == BalanceTransactionType.BET_WAGER.value

        bet = (await db_session.execute(select(Bet).where(Bet.bet_id == outcome.bet_id))).scalar_one()
        assert bet.result_status == "lost"
        assert bet.number == 5
        assert bet.color == "black"

    async def test_commit_marks_round(self, db_session, player_factory):
        player = await player_factory()
        service = RoundService(db_session, wheel=FixedWheel((2, RouletteColor.RED)))
        game_round = await service.spin(player.name)

        await service.commit_bet(player.name, game_round.round_id, Decimal("1.00"), "color_parity",
                                 color="red", is_even=True)

        stored = (await db_session.execute(
            select(GameRound).where(GameRound.round_id == game_round.round_id)
        )).scalar_one()
        assert stored.bet_committed is True

    async def test_second_commit_conflicts(self, db_session, player_factory):
        player = await player_factory()
        service = RoundService(db_session, wheel=FixedWheel((8, RouletteColor.BLACK)))
        game_round = await service.spin(player.name)
        first = await service.commit_bet(player.name, game_round.round_id, Decimal("5.00"), "color", color="red")

        with pytest.raises(RoundAlreadyCommittedError):
            await service.commit_bet(player.name, game_round.round_id, Decimal("5.00"), "color", color="red")

        assert await _funds(db_session, player.player_id) == first.new_balance

    async def test_unknown_round(self, db_session, player_factory):
        player = await player_factory()

        with pytest.raises(RoundNotFoundError):
            await RoundService(db_session).commit_bet(
                player.name, uuid.uuid4(), Decimal("5.00"), "color", color="red"
            )

    async def test_round_of_another_player_looks_missing(self, db_session, player_factory):
        owner = await player_factory()
        intruder = await player_factory()
        service = RoundService(db_session)
        game_round = await service.spin(owner.name)

        with pytest.raises(RoundNotFoundError):
            await service.commit_bet(intruder.name, game_round.round_id, Decimal("5.00"), "color", color="red")

        assert await _funds(db_session, intruder.player_id) == Decimal("100.00")

    async def test_wager_above_funds(self, db_session, player_factory):
        player = await player_factory()
        service = RoundService(db_session)
        game_round = await service.spin(player.name)

        with pytest.raises(InsufficientFundsError):
            await service.commit_bet(player.name, game_round.round_id, Decimal("100.01"), "color", color="red")

        assert await _funds(db_session, player.player_id) == Decimal("100.00")
        stored = (await db_session.execute(
            select(GameRound.bet_committed).where(GameRound.round_id == game_round.round_id)
        )).scalar_one()
        assert stored is False

    async def test_invalid_bets_rejected_before_any_write(self, db_session, player_factory):
        player = await player_factory()
        service = RoundService(db_session)
        game_round = await service.spin(player.name)

        with pytest.raises(InvalidBetError, match="wager_must_be_positive"):
            await service.commit_bet(player.name, game_round.round_id, Decimal("0"), "color", color="red")
        with pytest.raises(InvalidBetError, match="is_even_required"):
            await service.commit_bet(player.name, game_round.round_id, Decimal("1"), "colorParity", color="red")
        with pytest.raises(UnsupportedBetTypeError):
            await service.commit_bet(player.name, game_round.round_id, Decimal("1"), "corner", color="red")

        assert await _funds(db_session, player.player_id) == Decimal("100.00")

    async def test_concurrent_commits_never_overdraw(self, session_factory, player_factory, db_session):
        player = await player_factory()
        wheel = FixedWheel((1, RouletteColor.RED), (3, RouletteColor.RED))
        service = RoundService(db_session, wheel=wheel)
        rounds = [await service.spin(player.name), await service.spin(player.name)]

        async def _commit(round_id):
            async with session_factory() as session:
                return await RoundService(session).commit_bet(
                    player.name, round_id, Decimal("60.00"), "color", color="black"
                )

        results = await asyncio.gather(
            *(_commit(game_round.round_id) for game_round in rounds),
            return_exceptions=True,
        )

        succeeded = [result for result in results if not isinstance(result, Exception)]
        failed = [result for result in results if isinstance(result, Exception)]
        assert len(succeeded) == 1
        assert len(failed) == 1
        assert isinstance(failed[0], InsufficientFundsError)

        async with session_factory() as session:
            assert await _funds(session, player.player_id) == Decimal("40.00")
            audit = await TransactionService(session).audit_player_ledger(player.player_id)
            assert audit.consistent is True

    async def test_stale_cached_funds_rechecked_under_lock(self, session_factory, player_factory, db_session):
        player = await player_factory()
        player_id = player.player_id
        service = RoundService(db_session, wheel=FixedWheel((1, RouletteColor.RED)))
        game_round = await service.spin(player.name)
        round_id = game_round.round_id

        # Another process drains funds after this session cached the player
        async with session_factory() as other:
            await TransactionService(other).create_transaction(
                player_id, Decimal("-60.00"), BalanceTransactionType.BET_WAGER
            )
        assert player.funds == Decimal("100.00")

        with pytest.raises(InsufficientFundsError):
            await service.commit_bet(player.name, round_id, Decimal("50.00"), "color", color="red")

        async with session_factory() as session:
            assert await _funds(session, player_id) == Decimal("40.00")
            stored = (await session.execute(
                select(GameRound.bet_committed).where(GameRound.round_id == round_id)
            )).scalar_one()
            assert stored is False
            bets = await session.execute(select(Bet).where(Bet.round_id == round_id))
            assert bets.scalars().first() is None
            audit = await TransactionService(session).audit_player_ledger(player_id)
            assert audit.entry_count == 2
            assert audit.consistent is True


class TestBetHistory:
    async def test_most_recent_round_first(self, db_session, player_factory):
        player = await player_factory()
        service = RoundService(db_session, wheel=FixedWheel(
            (1, RouletteColor.RED), (2, RouletteColor.BLACK), (3, RouletteColor.RED),
        ))
        round_ids = []
        for _ in range(3):
            game_round = await service.spin(player.name)
            await service.commit_bet(player.name, game_round.round_id, Decimal("1.00"), "color", color="red")
            round_ids.append(game_round.round_id)

        history = await service.get_bet_history(player.name)

        assert [game_round.round_id for _, game_round in history] == list(reversed(round_ids))
        assert [game_round.number for _, game_round in history] == [3, 2, 1]

    async def test_take_limits_results(self, db_session, player_factory):
        player = await player_factory()
        service = RoundService(db_session)
        for _ in range(3):
            game_round = await service.spin(player.name)
            await service.commit_bet(player.name, game_round.round_id, Decimal("1.00"), "color", color="red")

        history = await service.get_bet_history(player.name, take=2)

        assert len(history) == 2

    async def test_uncommitted_rounds_not_listed(self, db_session, player_factory):
        player = await player_factory()
        service = RoundService(db_session)
        await service.spin(player.name)

        assert await service.get_bet_history(player.name) == []

    @pytest.mark.parametrize("take,expected", [(None, 50), (0, 50), (-3, 50), (201, 50), (1, 1), (200, 200)])
    def test_resolve_history_take(self, take, expected):
        # No database access; the session is never touched
        assert RoundService(None).resolve_history_take(take) == expected
