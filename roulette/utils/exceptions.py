"""Business exceptions raised by the roulette services.

Each exception message is a short machine-readable code that routers pass
through as the HTTP ``detail``.
"""


class RouletteException(Exception):
    """Base exception for expected, locally handled business failures."""

    default_message = "roulette_error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def code(self) -> str:
        return str(self)


class UnauthorizedError(RouletteException):
    """Caller is not allowed to act on the requested resource."""

    default_message = "unauthorized"


class PlayerNotRegisteredError(UnauthorizedError):
    """No player exists for the supplied name."""

    default_message = "player_not_registered"


class RoundNotFoundError(UnauthorizedError):
    """Round does not exist or belongs to a different player.

    Both cases share one error so a caller cannot discover other players'
    round ids.
    """

    default_message = "round_not_found"


class InvalidArgumentError(RouletteException):
    """Malformed request."""

    default_message = "invalid_argument"


class InvalidBetError(InvalidArgumentError):
    """Bet wager or selectors are missing or invalid."""

    default_message = "invalid_bet"


class UnsupportedBetTypeError(InvalidBetError):
    """Bet type tag is not one of the supported variants."""

    default_message = "unsupported_bet_type"


class InvalidColorError(InvalidBetError):
    """Color string is neither red nor black."""

    default_message = "invalid_color"


class ConflictError(RouletteException):
    """Request conflicts with the current state of a resource."""

    default_message = "conflict"


class RoundAlreadyCommittedError(ConflictError):
    """A bet has already been settled against the round."""

    default_message = "round_already_committed"


class InsufficientFundsError(RouletteException):
    """Player balance does not cover the requested debit."""

    default_message = "insufficient_funds"


class LockTimeoutError(RouletteException):
    """Named lock could not be acquired in time. Safe to retry."""

    default_message = "lock_timeout"
