from __future__ import annotations

import pytest

from bingo_game.calls import CallEngine
from bingo_game.card import PlayerCard, layout_rows
from bingo_game.errors import NotOnCard, NotYetCalled, NotYetWinning, UnknownCard
from bingo_game.rng import ScriptedSource


def make_card(catalog, draws=()):
    engine = CallEngine(ScriptedSource(choices=draws))
    card = PlayerCard.generate(catalog, 44, engine)
    return card, engine


def test_generate_card_44(catalog44, card44_layout):
    card, _ = make_card(catalog44)
    grid = card.mark_grid()
    assert grid[2][2] is True
    assert sum(v for row in grid for v in row) == 1
    expected = sorted(v for row in card44_layout for v in row if v)
    assert sorted(card.numbers) == expected
    assert len(card.numbers) == 24
    for i, row in enumerate(card.cells):
        for j, cell in enumerate(row):
            if (i, j) == (2, 2):
                assert cell.is_free and cell.marked
            else:
                assert cell.number == card44_layout[i][j]
                assert not cell.marked


def test_generate_unknown_card(catalog44):
    with pytest.raises(UnknownCard):
        PlayerCard.generate(catalog44, 3, CallEngine())


@pytest.mark.parametrize("ref", ["free", 0])
def test_free_space_never_changes(catalog44, ref):
    card, _ = make_card(catalog44)
    for _ in range(3):
        outcome = card.toggle_mark(ref)
        assert not outcome.changed
        assert card.is_marked("free")
        assert card.mark_grid()[2][2]


def test_mark_requires_called_number(catalog44):
    card, engine = make_card(catalog44, draws=[17])
    with pytest.raises(NotYetCalled):
        card.toggle_mark(17)
    assert not card.is_marked(17)
    engine.draw_next()
    assert card.toggle_mark(17).marked
    assert card.is_marked(17)
    assert not card.toggle_mark(17).marked
    assert not card.is_marked(17)


def test_mark_number_not_on_card(catalog44):
    card, engine = make_card(catalog44, draws=[70])
    engine.draw_next()
    with pytest.raises(NotOnCard):
        card.toggle_mark(70)


def test_uncalled_number_is_reported_before_card_membership(catalog44):
    card, _ = make_card(catalog44)
    with pytest.raises(NotYetCalled):
        card.toggle_mark(70)


@pytest.mark.parametrize("ref", ["abc", None, "", 2.5j])
def test_non_numeric_ref_is_not_on_card(catalog44, ref):
    card, _ = make_card(catalog44)
    with pytest.raises(NotOnCard):
        card.toggle_mark(ref)
    with pytest.raises(NotOnCard):
        card.is_marked(ref)


def test_cells_are_independent(catalog44):
    card, engine = make_card(catalog44, draws=[1, 2])
    engine.draw_next()
    engine.draw_next()
    card.toggle_mark(1)
    card.toggle_mark(2)
    card.toggle_mark(1)
    assert card.marked_numbers() == [2]


def test_row_win_appears_on_fifth_mark(catalog44):
    draws = [5, 20, 34, 50, 65]
    card, engine = make_card(catalog44, draws=draws)
    for _ in draws:
        engine.draw_next()
    for n in draws[:-1]:
        outcome = card.toggle_mark(n)
        assert outcome.marked and not outcome.bingo
        with pytest.raises(NotYetWinning):
            card.claim()
    outcome = card.toggle_mark(65)
    assert outcome.bingo
    assert outcome.lines == ("row4",)
    assert card.claim() == ["row4"]


def test_render_rows_marks_with_star(catalog44):
    card, engine = make_card(catalog44, draws=[1])
    engine.draw_next()
    card.toggle_mark(1)
    rows = card.render_rows()
    assert rows[0][0] == "1*"
    assert rows[2][2] == "F"


def test_layout_rows_without_marks(card44_layout):
    rows = layout_rows(card44_layout)
    assert rows[2][2] == "F"
    assert rows[0][0] == str(card44_layout[0][0])
    assert not any(cell.endswith("*") for row in rows for cell in row)
