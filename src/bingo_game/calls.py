from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple

from .errors import ExhaustedPool
from .rng import PyRandomSource, RandomSource

logger = logging.getLogger(__name__)

POOL_SIZE = 75
LETTERS = "BINGO"


def letter_for(number: int) -> str:
    """Category letter of a bingo number: B 1-15, I 16-30, N 31-45, G 46-60, O 61-75."""
    if not 1 <= number <= POOL_SIZE:
        raise ValueError(f"Bingo numbers are 1..{POOL_SIZE}, got {number}")
    return LETTERS[(number - 1) // 15]


@dataclass(frozen=True)
class Call:
    letter: str
    number: int

    @classmethod
    def of(cls, number: int) -> "Call":
        return cls(letter=letter_for(number), number=number)

    def __str__(self) -> str:
        return f"{self.letter}-{self.number}"


class CallEngine:
    """Draws numbers 1..75 without repetition.

    History keeps draw order; ``called`` is the same numbers as a set.
    """

    def __init__(self, rng: Optional[RandomSource] = None):
        self._rng = rng if rng is not None else PyRandomSource()
        self._history: List[int] = []
        self._called: set[int] = set()

    @property
    def called(self) -> FrozenSet[int]:
        return frozenset(self._called)

    @property
    def history(self) -> Tuple[int, ...]:
        return tuple(self._history)

    @property
    def remaining(self) -> int:
        return POOL_SIZE - len(self._called)

    @property
    def exhausted(self) -> bool:
        return self.remaining == 0

    @property
    def current(self) -> Optional[Call]:
        return Call.of(self._history[-1]) if self._history else None

    def is_called(self, number: int) -> bool:
        return number in self._called

    def uncalled(self) -> List[int]:
        return [n for n in range(1, POOL_SIZE + 1) if n not in self._called]

    def recent(self, count: int = 4) -> List[Call]:
        """Last ``count`` calls, newest first."""
        if count <= 0:
            return []
        return [Call.of(n) for n in reversed(self._history[-count:])]

    def draw_next(self) -> Call:
        candidates = self.uncalled()
        if not candidates:
            raise ExhaustedPool()
        number = self._rng.choice(candidates)
        if number in self._called:
            raise RuntimeError(f"Random source returned an already called number: {number}")
        self._called.add(number)
        self._history.append(number)
        call = Call.of(number)
        logger.debug("Called %s (%d remaining)", call, self.remaining)
        return call

    def reset(self) -> None:
        self._called.clear()
        self._history.clear()
