from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from bingo_game.win import has_win, winning_lines


def oracle(grid):
    g = [row[:] for row in grid]
    g[2][2] = True
    rows = any(all(row) for row in g)
    cols = any(all(g[i][j] for i in range(5)) for j in range(5))
    diag = all(g[k][k] for k in range(5))
    anti = all(g[k][4 - k] for k in range(5))
    return rows or cols or diag or anti


def empty():
    return [[False] * 5 for _ in range(5)]


@given(cells=st.lists(st.booleans(), min_size=25, max_size=25))
def test_has_win_matches_brute_force(cells):
    grid = [cells[i * 5:(i + 1) * 5] for i in range(5)]
    assert has_win(grid) == oracle(grid)


def test_empty_grid_has_no_win():
    assert not has_win(empty())
    assert winning_lines(empty()) == []


@pytest.mark.parametrize("i", range(5))
def test_each_row_and_column_wins(i):
    row = empty()
    col = empty()
    for k in range(5):
        row[i][k] = True
        col[k][i] = True
    assert f"row{i}" in winning_lines(row)
    assert f"col{i}" in winning_lines(col)


def test_diagonals_count_center_as_marked():
    diag = empty()
    anti = empty()
    for k in range(5):
        if k != 2:
            diag[k][k] = True
            anti[k][4 - k] = True
    assert winning_lines(diag) == ["diag"]
    assert winning_lines(anti) == ["anti_diag"]


def test_four_of_five_is_not_a_win():
    grid = empty()
    for j in range(4):
        grid[4][j] = True
    assert not has_win(grid)


def test_rejects_wrong_shape():
    with pytest.raises(ValueError):
        has_win([[True] * 5] * 4)
