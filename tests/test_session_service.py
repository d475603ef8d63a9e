"""Tests for SessionService - batch settlement of client-side plays."""
from datetime import datetime, timedelta, UTC
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from roulette.models.base import BalanceTransactionType
from roulette.models.game_round import GameRound
from roulette.models.player import Player
from roulette.models.transaction import BalanceTransaction
from roulette.services.round_service import RoundService
from roulette.services.session_service import SessionPlay, SessionService
from roulette.services.transaction_service import TransactionService
from roulette.utils import ensure_utc
from roulette.utils.exceptions import (
    InsufficientFundsError,
    InvalidBetError,
    InvalidColorError,
    PlayerNotRegisteredError,
    UnsupportedBetTypeError,
)


async def _funds(db_session, player_id) -> Decimal:
    result = await db_session.execute(select(Player.funds).where(Player.player_id == player_id))
    return result.scalar_one()


async def _ledger_size(db_session, player_id) -> int:
    result = await db_session.execute(
        select(func.count()).select_from(BalanceTransaction).where(BalanceTransaction.player_id == player_id)
    )
    return result.scalar()


class TestSaveSession:
    async def test_settles_plays_in_order(self, db_session, player_factory):
        player = await player_factory()
        plays = [
            SessionPlay(wager=Decimal("20.00"), bet_type="color", color="black",
                        number_result=17, color_result="Black"),
            SessionPlay(wager=Decimal("10.00"), bet_type="exact", color="black", number=5,
                        number_result=5, color_result="red"),
            SessionPlay(wager=Decimal("5.00"), bet_type="colorParity", color="red", is_even=True,
                        number_result=12, color_result="RED"),
        ]

        result = await SessionService(db_session).save_session(player.name, plays)

        assert result.starting_funds == Decimal("100.00")
        # +10 win, -10 loss, +5 win
        assert result.ending_funds == Decimal("105.00")
        assert [outcome.won for outcome in result.outcomes] == [True, False, True]
        assert [outcome.new_balance for outcome in result.outcomes] == [
            Decimal("110.00"), Decimal("100.00"), Decimal("105.00"),
        ]
        assert await _funds(db_session, player.player_id) == Decimal("105.00")

        # initial + (wager, payout) + wager + (wager, payout)
        assert await _ledger_size(db_session, player.player_id) == 6
        audit = await TransactionService(db_session).audit_player_ledger(player.player_id)
        assert audit.consistent is True

    async def test_rounds_are_committed_and_use_played_at(self, db_session, player_factory):
        player = await player_factory()
        played_at = datetime.now(UTC) - timedelta(hours=2)

        result = await SessionService(db_session).save_session(player.name, [
            SessionPlay(wager=Decimal("1.00"), bet_type="color", color="red",
                        number_result=0, color_result="red", played_at=played_at),
        ])

        stored = (await db_session.execute(
            select(GameRound).where(GameRound.round_id == result.outcomes[0].round_id)
        )).scalar_one()
        assert stored.bet_committed is True
        assert stored.number == 0
        assert ensure_utc(stored.created_at) == played_at

    async def test_saved_plays_appear_in_history(self, db_session, player_factory):
        player = await player_factory()
        now = datetime.now(UTC)

        await SessionService(db_session).save_session(player.name, [
            SessionPlay(wager=Decimal("1.00"), bet_type="color", color="red",
                        number_result=1, color_result="red", played_at=now - timedelta(minutes=2)),
            SessionPlay(wager=Decimal("1.00"), bet_type="color", color="red",
                        number_result=2, color_result="black", played_at=now - timedelta(minutes=1)),
        ])

        history = await RoundService(db_session).get_bet_history(player.name)
        assert [game_round.number for _, game_round in history] == [2, 1]

    async def test_empty_batch_is_noop(self, db_session, player_factory):
        player = await player_factory()

        result = await SessionService(db_session).save_session(player.name, [])

        assert result.starting_funds == result.ending_funds == Decimal("100.00")
        assert result.outcomes == []
        assert await _ledger_size(db_session, player.player_id) == 1

    async def test_overdraw_rejects_whole_batch(self, db_session, player_factory):
        player = await player_factory()
        player_id = player.player_id
        plays = [
            SessionPlay(wager=Decimal("60.00"), bet_type="color", color="red",
                        number_result=4, color_result="black"),
            SessionPlay(wager=Decimal("50.00"), bet_type="color", color="red",
                        number_result=4, color_result="red"),
        ]

        with pytest.raises(InsufficientFundsError):
            await SessionService(db_session).save_session(player.name, plays)

        assert await _funds(db_session, player_id) == Decimal("100.00")
        assert await _ledger_size(db_session, player_id) == 1
        rounds = await db_session.execute(
            select(func.count()).select_from(GameRound).where(GameRound.player_id == player_id)
        )
        assert rounds.scalar() == 0

    @pytest.mark.parametrize("bad_play,error", [
        (dict(color_result="green"), InvalidColorError),
        (dict(color_result=""), InvalidColorError),
        (dict(number_result=37), InvalidBetError),
        (dict(wager=Decimal("0")), InvalidBetError),
        (dict(bet_type="dozen"), UnsupportedBetTypeError),
    ])
    async def test_bad_play_rejects_whole_batch(self, db_session, player_factory, bad_play, error):
        player = await player_factory()
        player_id = player.player_id
        good = dict(wager=Decimal("10.00"), bet_type="color", color="red", number_result=3, color_result="red")
        plays = [SessionPlay(**good), SessionPlay(**{**good, **bad_play})]

        with pytest.raises(error):
            await SessionService(db_session).save_session(player.name, plays)

        assert await _funds(db_session, player_id) == Decimal("100.00")
        assert await _ledger_size(db_session, player_id) == 1

    async def test_unknown_player(self, db_session, unique_name):
        with pytest.raises(PlayerNotRegisteredError):
            await SessionService(db_session).save_session(unique_name("ghost"), [])

    async def test_ledger_types(self, db_session, player_factory):
        player = await player_factory()

        await SessionService(db_session).save_session(player.name, [
            SessionPlay(wager=Decimal("2.00"), bet_type="color", color="black",
                        number_result=9, color_result="black"),
        ])

        entries = await TransactionService(db_session).get_player_transactions(player.player_id)
        assert [entry.type for entry in entries] == [
            BalanceTransactionType.BET_PAYOUT.value,
            BalanceTransactionType.BET_WAGER.value,
            BalanceTransactionType.INITIAL_FUNDS.value,
        ]
        assert entries[0].amount == Decimal("3.00")
