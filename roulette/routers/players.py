"""Player API router."""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from roulette.config import get_settings
from roulette.database import get_db
from roulette.schemas.player import (
    LedgerAuditResponse,
    LoginRequest,
    PlayerBalance,
    PlayerTransactionsResponse,
    TransactionEntry,
)
from roulette.services import PlayerService, TransactionService
from roulette.utils.exceptions import InvalidArgumentError, UnauthorizedError

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api/players", tags=["players"])


@router.post("/login", response_model=PlayerBalance)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Log in by name, creating the player with starting funds on first use."""
    try:
        player = await PlayerService(db).login(request.player_name)
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=400, detail=exc.code) from exc
    except Exception as exc:
        logger.error(f"Error logging in player: {exc}", exc_info=True)
        raise HTTPException(status_code=500, detail="operation_failed") from exc

    return PlayerBalance.model_validate(player)


@router.get("/{name}", response_model=PlayerBalance)
async def get_balance(
    name: str,
    db: AsyncSession = Depends(get_db),
):
    """Get a registered player's current funds."""
    try:
        player = await PlayerService(db).get_registered_player(name)
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=400, detail=exc.code) from exc
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail=exc.code) from exc
    except Exception as exc:
        logger.error(f"Error getting balance for player {name}: {exc}", exc_info=True)
        raise HTTPException(status_code=500, detail="operation_failed") from exc

    return PlayerBalance.model_validate(player)


@router.get("/{name}/transactions", response_model=PlayerTransactionsResponse)
async def get_transactions(
    name: str,
    limit: int = Query(settings.transactions_page_limit, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Page through a player's ledger, newest entry first."""
    try:
        player = await PlayerService(db).get_registered_player(name)
        transactions = await TransactionService(db).get_player_transactions(
            player.player_id, limit=limit, offset=offset
        )
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=400, detail=exc.code) from exc
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail=exc.code) from exc
    except Exception as exc:
        logger.error(f"Error listing transactions for player {name}: {exc}", exc_info=True)
        raise HTTPException(status_code=500, detail="operation_failed") from exc

    return PlayerTransactionsResponse(
        transactions=[TransactionEntry.model_validate(entry) for entry in transactions],
        limit=limit,
        offset=offset,
    )


@router.get("/{name}/ledger-audit", response_model=LedgerAuditResponse)
async def audit_ledger(
    name: str,
    db: AsyncSession = Depends(get_db),
):
    """Replay a player's ledger and report whether it matches the stored funds."""
    try:
        player = await PlayerService(db).get_registered_player(name)
        audit = await TransactionService(db).audit_player_ledger(player.player_id)
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=400, detail=exc.code) from exc
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail=exc.code) from exc
    except Exception as exc:
        logger.error(f"Error auditing ledger for player {name}: {exc}", exc_info=True)
        raise HTTPException(status_code=500, detail="operation_failed") from exc

    return LedgerAuditResponse.model_validate(audit)
