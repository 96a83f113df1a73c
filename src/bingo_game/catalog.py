"""Fixed table of 5x5 bingo card layouts keyed by card id."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterator, Mapping, Sequence, Tuple

from .errors import InvalidLayout, UnknownCard
from .rng import PyRandomSource, derive_parallel_seed

logger = logging.getLogger(__name__)

SIZE = 5
CENTER = (2, 2)
FREE = 0
CARD_ID_MIN = 1
CARD_ID_MAX = 99
DEFAULT_CATALOG_SEED = 20240615

Layout = Tuple[Tuple[int, ...], ...]


def column_range(col: int) -> range:
    """Numbers allowed in column ``col`` (0 -> 1..15, ..., 4 -> 61..75)."""
    return range(col * 15 + 1, col * 15 + 16)


def validate_layout(layout: Sequence[Sequence[int]]) -> Layout:
    """Check a layout and return it as nested tuples.

    Raises InvalidLayout on wrong shape, a missing or misplaced free space,
    repeated numbers or numbers outside their column range.
    """
    if len(layout) != SIZE or any(len(row) != SIZE for row in layout):
        raise InvalidLayout("Layout must be 5x5")
    seen = set()
    for i, row in enumerate(layout):
        for j, value in enumerate(row):
            if (i, j) == CENTER:
                if value != FREE:
                    raise InvalidLayout("Center cell must hold the free space (0)")
                continue
            if value == FREE:
                raise InvalidLayout(f"Free space outside the center at ({i},{j})")
            if value not in column_range(j):
                raise InvalidLayout(f"{value} at ({i},{j}) is outside column range")
            if value in seen:
                raise InvalidLayout(f"{value} appears more than once")
            seen.add(value)
    return tuple(tuple(int(v) for v in row) for row in layout)


def generate_layout(seed: int) -> Layout:
    """Build one valid layout from a seed: five distinct numbers per column."""
    rng = PyRandomSource(seed)
    columns = [rng.sample(list(column_range(j)), SIZE) for j in range(SIZE)]
    rows = []
    for i in range(SIZE):
        row = [columns[j][i] for j in range(SIZE)]
        if i == CENTER[0]:
            row[CENTER[1]] = FREE
        rows.append(tuple(row))
    return tuple(rows)


class CardCatalog:
    """Read-only mapping from card id to layout."""

    def __init__(self, layouts: Mapping[int, Sequence[Sequence[int]]]):
        cards: Dict[int, Layout] = {}
        for card_id, layout in layouts.items():
            cid = int(card_id)
            if not CARD_ID_MIN <= cid <= CARD_ID_MAX:
                raise ValueError(f"Card id out of range [{CARD_ID_MIN}, {CARD_ID_MAX}]: {cid}")
            try:
                cards[cid] = validate_layout(layout)
            except InvalidLayout as exc:
                raise InvalidLayout(f"card {cid}: {exc}") from exc
        self._cards = cards

    def get(self, card_id: int) -> Layout:
        try:
            return self._cards[card_id]
        except KeyError:
            raise UnknownCard(card_id) from None

    def __contains__(self, card_id: object) -> bool:
        return card_id in self._cards

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._cards))

    def as_dict(self) -> Dict[int, Layout]:
        return dict(self._cards)


def default_catalog(seed: int = DEFAULT_CATALOG_SEED) -> CardCatalog:
    """The built-in table for ids 1..99; identical for the same seed."""
    layouts = {
        cid: generate_layout(derive_parallel_seed(seed, cid, "catalog"))
        for cid in range(CARD_ID_MIN, CARD_ID_MAX + 1)
    }
    return CardCatalog(layouts)


def load_catalog(path: Path) -> CardCatalog:
    """Read a JSON or YAML mapping of ``{card_id: layout}``."""
    from .config import read_mapping_file

    data = read_mapping_file(path)
    # emit_catalog_json nests the table under "cards"
    cards = data.get("cards", data)
    if not isinstance(cards, Mapping):
        raise ValueError("Catalog file must map card ids to layouts")
    catalog = CardCatalog({int(k): v for k, v in cards.items()})
    logger.info("Loaded %d cards from %s", len(catalog), path)
    return catalog
