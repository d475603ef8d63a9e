"""Base utilities and enumerations for SQLAlchemy models."""
from enum import Enum
from sqlalchemy import Column, Numeric, Uuid


class RouletteColor(str, Enum):
    """Wheel color. Drawn independently of the wheel number."""
    RED = "red"
    BLACK = "black"


class BetType(str, Enum):
    """Supported bet variants."""
    COLOR = "color"
    COLOR_PARITY = "color_parity"
    EXACT_NUMBER_AND_COLOR = "exact_number_and_color"


class BetResultStatus(str, Enum):
    """Bet result status. Bets are resolved at creation, so PENDING is never stored."""
    PENDING = "pending"
    WON = "won"
    LOST = "lost"


class BalanceTransactionType(str, Enum):
    """Ledger entry type tags."""
    INITIAL_FUNDS = "initial_funds"
    BET_WAGER = "bet_wager"
    BET_PAYOUT = "bet_payout"
    MANUAL_SAVE_DELTA = "manual_save_delta"


def get_uuid_column(*args, **kwargs):
    """Get a UUID column that is native on PostgreSQL and CHAR(32) elsewhere.

    Example:
        player_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
        round_id = get_uuid_column(ForeignKey("game_rounds.round_id"), nullable=False)
    """
    return Column(Uuid(as_uuid=True), *args, **kwargs)


def get_money_column(*args, **kwargs):
    """Get a fixed-point currency column with two decimal places."""
    return Column(Numeric(18, 2, asdecimal=True), *args, **kwargs)
