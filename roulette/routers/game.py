"""Game API router: spins, bet commits, history and session saves."""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from roulette.database import get_db
from roulette.schemas.game import (
    BetHistoryItem,
    BetHistoryResponse,
    BetOutcomeResponse,
    CommitBetRequest,
    SaveSessionRequest,
    SessionSaveResponse,
    SpinResult,
)
from roulette.models.base import BetResultStatus
from roulette.services import BetOutcome, RoundService, SessionPlay, SessionService
from roulette.services.round_service import bet_criteria
from roulette.utils import to_money
from roulette.utils.exceptions import (
    ConflictError,
    InsufficientFundsError,
    InvalidArgumentError,
    LockTimeoutError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/game", tags=["game"])


def _outcome_response(outcome: BetOutcome) -> BetOutcomeResponse:
    return BetOutcomeResponse(
        round_id=outcome.round_id,
        bet_id=outcome.bet_id,
        number=outcome.number,
        color=outcome.color.value,
        wager=outcome.wager,
        profit=outcome.profit,
        new_balance=outcome.new_balance,
        won=outcome.won,
        bet_type=outcome.bet_type.value,
        criteria=outcome.criteria,
    )


@router.post("/spin/{player_name}", response_model=SpinResult)
async def spin(
    player_name: str,
    db: AsyncSession = Depends(get_db),
):
    """Spin the wheel. The returned round accepts exactly one bet."""
    try:
        game_round = await RoundService(db).spin(player_name)
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=400, detail=exc.code) from exc
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail=exc.code) from exc
    except Exception as exc:
        logger.error(f"Error spinning for {player_name!r}: {exc}", exc_info=True)
        raise HTTPException(status_code=500, detail="operation_failed") from exc

    return SpinResult.model_validate(game_round)


@router.post("/commit-bet", response_model=BetOutcomeResponse)
async def commit_bet(
    request: CommitBetRequest,
    db: AsyncSession = Depends(get_db),
):
    """Settle a bet against a spun round and move the player's funds."""
    try:
        outcome = await RoundService(db).commit_bet(
            request.player_name,
            request.round_id,
            request.wager,
            request.bet_type,
            color=request.color,
            is_even=request.is_even,
            number=request.number,
        )
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=400, detail=exc.code) from exc
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail=exc.code) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=exc.code) from exc
    except InsufficientFundsError as exc:
        raise HTTPException(status_code=400, detail=exc.code) from exc
    except LockTimeoutError as exc:
        raise HTTPException(status_code=503, detail=exc.code) from exc
    except Exception as exc:
        logger.error(f"Error committing bet on round {request.round_id}: {exc}", exc_info=True)
        raise HTTPException(status_code=500, detail="operation_failed") from exc

    return _outcome_response(outcome)


@router.get("/history/{player_name}", response_model=BetHistoryResponse)
async def get_history(
    player_name: str,
    take: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Get recent bets, newest round first. Out-of-range ``take`` falls back to the default."""
    try:
        rows = await RoundService(db).get_bet_history(player_name, take)
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=400, detail=exc.code) from exc
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail=exc.code) from exc

    return BetHistoryResponse(
        bets=[
            BetHistoryItem(
                round_id=game_round.round_id,
                bet_id=bet.bet_id,
                number=game_round.number,
                color=game_round.color,
                round_created_at=game_round.created_at,
                wager=to_money(bet.wager),
                profit=to_money(bet.profit or 0),
                won=bet.result_status == BetResultStatus.WON.value,
                bet_type=bet.bet_type,
                criteria=bet_criteria(bet),
            )
            for bet, game_round in rows
        ]
    )


@router.post("/save-session", response_model=SessionSaveResponse)
async def save_session(
    request: SaveSessionRequest,
    db: AsyncSession = Depends(get_db),
):
    """Settle a batch of client-side plays in order. One bad play rejects the batch."""
    plays = [
        SessionPlay(
            wager=item.wager,
            bet_type=item.bet_type,
            number_result=item.number_result,
            color_result=item.color_result,
            color=item.color,
            is_even=item.is_even,
            number=item.number,
            played_at=item.played_at_utc,
        )
        for item in request.bets
    ]

    try:
        result = await SessionService(db).save_session(request.player_name, plays)
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=400, detail=exc.code) from exc
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail=exc.code) from exc
    except InsufficientFundsError as exc:
        raise HTTPException(status_code=400, detail=exc.code) from exc
    except LockTimeoutError as exc:
        raise HTTPException(status_code=503, detail=exc.code) from exc
    except Exception as exc:
        logger.error(f"Error saving session for {request.player_name!r}: {exc}", exc_info=True)
        raise HTTPException(status_code=500, detail="operation_failed") from exc

    return SessionSaveResponse(
        starting_funds=result.starting_funds,
        ending_funds=result.ending_funds,
        outcomes=[_outcome_response(outcome) for outcome in result.outcomes],
    )
