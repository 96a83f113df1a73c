"""Player card state: 25 cells built from a catalog layout plus their marks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .calls import CallEngine
from .catalog import CENTER, FREE, CardCatalog, Layout
from .errors import NotOnCard, NotYetCalled, NotYetWinning
from .win import winning_lines

logger = logging.getLogger(__name__)

FREE_KEY = "free"

CellRef = Union[int, str]


@dataclass
class CardCell:
    row: int
    col: int
    number: Optional[int]  # None for the free space
    marked: bool = False

    @property
    def is_free(self) -> bool:
        return self.number is None


@dataclass(frozen=True)
class MarkOutcome:
    number: Optional[int]
    marked: bool
    changed: bool
    lines: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def bingo(self) -> bool:
        return bool(self.lines)


def is_free_ref(ref: CellRef) -> bool:
    return ref == FREE_KEY or ref == FREE


def _number_of(ref: CellRef) -> int:
    try:
        return int(ref)
    except (TypeError, ValueError):
        raise NotOnCard(ref) from None


def layout_rows(layout: Layout, marked: Iterable[int] = ()) -> List[List[str]]:
    """Text cells for display; marked numbers carry a trailing ``*``."""
    hits = set(marked)
    return [
        [
            "F" if (i, j) == CENTER else f"{v}{'*' if v in hits else ''}"
            for j, v in enumerate(row)
        ]
        for i, row in enumerate(layout)
    ]


class PlayerCard:
    def __init__(self, card_id: int, layout: Layout, engine: CallEngine):
        self.card_id = card_id
        self.layout = layout
        self._engine = engine
        self._cells: List[List[CardCell]] = []
        self._by_number: Dict[int, CardCell] = {}
        for i, row in enumerate(layout):
            cells = []
            for j, value in enumerate(row):
                if (i, j) == CENTER:
                    cell = CardCell(i, j, None, marked=True)
                else:
                    cell = CardCell(i, j, value)
                    self._by_number[value] = cell
                cells.append(cell)
            self._cells.append(cells)

    @classmethod
    def generate(cls, catalog: CardCatalog, card_id: int, engine: CallEngine) -> "PlayerCard":
        """Build the card for ``card_id``; raises UnknownCard when absent."""
        card = cls(card_id, catalog.get(card_id), engine)
        logger.info("Generated player card %d", card_id)
        return card

    @property
    def numbers(self) -> List[int]:
        return list(self._by_number)

    @property
    def cells(self) -> Tuple[Tuple[CardCell, ...], ...]:
        return tuple(tuple(row) for row in self._cells)

    def is_marked(self, ref: CellRef) -> bool:
        if is_free_ref(ref):
            return True
        number = _number_of(ref)
        cell = self._by_number.get(number)
        if cell is None:
            raise NotOnCard(number)
        return cell.marked

    def marked_numbers(self) -> List[int]:
        return [n for n, cell in self._by_number.items() if cell.marked]

    def mark_grid(self) -> List[List[bool]]:
        return [[cell.marked for cell in row] for row in self._cells]

    def completed_lines(self) -> List[str]:
        return winning_lines(self.mark_grid())

    def claim(self) -> List[str]:
        """Completed lines backing a bingo claim; raises NotYetWinning if none."""
        lines = self.completed_lines()
        if not lines:
            raise NotYetWinning()
        return lines

    def toggle_mark(self, ref: CellRef) -> MarkOutcome:
        """Flip the mark on a called number.

        The free space never changes. Raises NotYetCalled for numbers not yet
        drawn, checked first, and NotOnCard for called numbers absent from
        this card or refs that are not numbers.
        """
        if is_free_ref(ref):
            return MarkOutcome(number=None, marked=True, changed=False)
        number = _number_of(ref)
        if not self._engine.is_called(number):
            raise NotYetCalled(number)
        cell = self._by_number.get(number)
        if cell is None:
            raise NotOnCard(number)
        cell.marked = not cell.marked
        lines: Tuple[str, ...] = ()
        if cell.marked:
            lines = tuple(self.completed_lines())
        return MarkOutcome(number=number, marked=cell.marked, changed=True, lines=lines)

    def render_rows(self) -> List[List[str]]:
        return layout_rows(self.layout, self.marked_numbers())
