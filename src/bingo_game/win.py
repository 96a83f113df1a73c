from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

SIZE = 5
CENTER = (2, 2)

Cell = Tuple[int, int]


def _lines() -> Dict[str, Tuple[Cell, ...]]:
    lines: Dict[str, Tuple[Cell, ...]] = {}
    for i in range(SIZE):
        lines[f"row{i}"] = tuple((i, j) for j in range(SIZE))
    for j in range(SIZE):
        lines[f"col{j}"] = tuple((i, j) for i in range(SIZE))
    lines["diag"] = tuple((k, k) for k in range(SIZE))
    lines["anti_diag"] = tuple((k, SIZE - 1 - k) for k in range(SIZE))
    return lines


LINES = _lines()


def _check_shape(grid: Sequence[Sequence[bool]]) -> None:
    if len(grid) != SIZE or any(len(row) != SIZE for row in grid):
        raise ValueError("Mark grid must be 5x5")


def winning_lines(grid: Sequence[Sequence[bool]]) -> List[str]:
    """Names of completed lines; the center always counts as marked."""
    _check_shape(grid)

    def marked(cell: Cell) -> bool:
        return cell == CENTER or bool(grid[cell[0]][cell[1]])

    return [name for name, cells in LINES.items() if all(marked(c) for c in cells)]


def has_win(grid: Sequence[Sequence[bool]]) -> bool:
    return bool(winning_lines(grid))
