"""Bet evaluation: pure functions mapping a spin outcome and a bet to a result.

Nothing here touches the database. Request fields arrive loosely typed and are
turned into one of the typed bet specifications by ``build_bet_spec``; from
then on every variant carries exactly the selectors it needs.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from roulette.config import MONEY_MAX
from roulette.models.base import BetType, RouletteColor
from roulette.services.wheel import WHEEL_MAX_NUMBER, WHEEL_MIN_NUMBER
from roulette.utils.exceptions import (
    InvalidBetError,
    InvalidColorError,
    UnsupportedBetTypeError,
)
from roulette.utils.money import has_cent_precision, to_money

BET_TYPE_ALIASES: dict[str, BetType] = {
    "color": BetType.COLOR,
    "colorparity": BetType.COLOR_PARITY,
    "color_parity": BetType.COLOR_PARITY,
    "exact": BetType.EXACT_NUMBER_AND_COLOR,
    "exact_number_and_color": BetType.EXACT_NUMBER_AND_COLOR,
    "exactnumberandcolor": BetType.EXACT_NUMBER_AND_COLOR,
}


@dataclass(frozen=True)
class ColorBet:
    color: RouletteColor

    bet_type = BetType.COLOR


@dataclass(frozen=True)
class ColorParityBet:
    color: RouletteColor
    is_even: bool

    bet_type = BetType.COLOR_PARITY


@dataclass(frozen=True)
class ExactNumberAndColorBet:
    color: RouletteColor
    number: int

    bet_type = BetType.EXACT_NUMBER_AND_COLOR


BetSpec = Union[ColorBet, ColorParityBet, ExactNumberAndColorBet]


@dataclass(frozen=True)
class BetEvaluation:
    """Outcome of evaluating one bet against one spin."""
    bet_type: BetType
    criteria: dict[str, Any]
    profit: Decimal
    won: bool


def parse_color(value: str | None) -> RouletteColor | None:
    """Parse a color case-insensitively.

    Returns None for a missing or blank value.

    Raises:
        InvalidColorError: If the value is neither red nor black
    """
    if value is None or not value.strip():
        return None
    try:
        return RouletteColor(value.strip().lower())
    except ValueError as exc:
        raise InvalidColorError() from exc


def parse_bet_type(value: str | None) -> BetType:
    """Resolve a bet type tag, accepting the legacy client aliases."""
    key = (value or "").strip().lower()
    bet_type = BET_TYPE_ALIASES.get(key)
    if bet_type is None:
        raise UnsupportedBetTypeError()
    return bet_type


def validate_wager(wager) -> Decimal:
    """Return the wager as a two-place Decimal.

    Raises:
        InvalidBetError: If the wager is not a positive amount of whole cents
    """
    try:
        amount = Decimal(str(wager)) if isinstance(wager, float) else Decimal(wager)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidBetError("invalid_wager") from exc

    if not amount.is_finite() or amount <= 0:
        raise InvalidBetError("wager_must_be_positive")
    if amount > MONEY_MAX:
        raise InvalidBetError("wager_out_of_range")
    if not has_cent_precision(amount):
        raise InvalidBetError("wager_precision_exceeded")
    return to_money(amount)


def validate_wheel_number(number: int | None, field: str = "number") -> int:
    if number is None:
        raise InvalidBetError(f"{field}_required")
    if isinstance(number, bool) or not WHEEL_MIN_NUMBER <= number <= WHEEL_MAX_NUMBER:
        raise InvalidBetError(f"{field}_out_of_range")
    return number


def build_bet_spec(
    bet_type: str | None,
    color: str | None = None,
    is_even: bool | None = None,
    number: int | None = None,
) -> BetSpec:
    """Build a typed bet specification from untrusted request fields.

    Selectors that the variant does not use are ignored.

    Raises:
        UnsupportedBetTypeError: Unknown bet type tag
        InvalidColorError: Color present but not red/black
        InvalidBetError: A required selector is missing or out of range
    """
    resolved_type = parse_bet_type(bet_type)
    parsed_color = parse_color(color)
    if parsed_color is None:
        raise InvalidBetError("color_required")

    if resolved_type == BetType.COLOR:
        return ColorBet(color=parsed_color)

    if resolved_type == BetType.COLOR_PARITY:
        if is_even is None:
            raise InvalidBetError("is_even_required")
        return ColorParityBet(color=parsed_color, is_even=bool(is_even))

    return ExactNumberAndColorBet(color=parsed_color, number=validate_wheel_number(number))


def describe_criteria(spec: BetSpec) -> dict[str, Any]:
    """Return the normalized selectors of a bet for API responses."""
    if isinstance(spec, ColorParityBet):
        return {"color": spec.color.value, "is_even": spec.is_even}
    if isinstance(spec, ExactNumberAndColorBet):
        return {"color": spec.color.value, "number": spec.number}
    return {"color": spec.color.value}


def evaluate_bet(
    spin_number: int,
    spin_color: RouletteColor,
    spec: BetSpec,
    wager: Decimal,
) -> BetEvaluation:
    """Evaluate a bet against a spin outcome.

    Payouts on a win (profit excludes the returned wager):
        - Color: wager / 2
        - ColorParity: wager
        - ExactNumberAndColor: wager * 3

    A loss has zero profit; the wager stays forfeited.
    """
    validate_wheel_number(spin_number, field="spin_number")
    spin_color = RouletteColor(spin_color)

    if isinstance(spec, ColorBet):
        won = spin_color == spec.color
        multiplier = Decimal("0.5")
    elif isinstance(spec, ColorParityBet):
        won = spin_color == spec.color and (spin_number % 2 == 0) == spec.is_even
        multiplier = Decimal(1)
    elif isinstance(spec, ExactNumberAndColorBet):
        won = spin_number == spec.number and spin_color == spec.color
        multiplier = Decimal(3)
    else:
        raise UnsupportedBetTypeError()

    profit = to_money(wager * multiplier) if won else to_money(0)
    return BetEvaluation(
        bet_type=spec.bet_type,
        criteria=describe_criteria(spec),
        profit=profit,
        won=won,
    )
