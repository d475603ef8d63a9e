"""Randomness source for wheel spins."""
import random
from dataclasses import dataclass

from roulette.models.base import RouletteColor

WHEEL_MIN_NUMBER = 0
WHEEL_MAX_NUMBER = 36


@dataclass(frozen=True)
class SpinOutcome:
    """Result of one spin. The color is drawn independently of the number."""
    number: int
    color: RouletteColor


class RouletteWheel:
    """Uniform roulette wheel.

    Uses ``random.SystemRandom`` unless a seeded generator is supplied.
    """

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.SystemRandom()

    def spin(self) -> SpinOutcome:
        number = self._rng.randint(WHEEL_MIN_NUMBER, WHEEL_MAX_NUMBER)
        color = self._rng.choice((RouletteColor.RED, RouletteColor.BLACK))
        return SpinOutcome(number=number, color=color)
