from __future__ import annotations

from bingo_game.autoplay import run_simulation
from bingo_game.catalog import default_catalog
from bingo_game.config import SessionSettings
from bingo_game.rng import PyRandomSource
from bingo_game.win import has_win


def test_bot_wins_when_the_game_runs_long_enough():
    settings = SessionSettings(call_interval_seconds=1.0, game_seconds=300, taken_probability=0.0)
    catalog = default_catalog()
    result = run_simulation(settings=settings, catalog=catalog, rng=PyRandomSource(3), card_id=44)
    assert result.outcome == "win"
    assert result.card_id == 44
    assert len(result.calls) == len(set(result.calls))
    assert set(result.marked) <= set(result.calls)
    layout = catalog.get(44)
    grid = [[v in result.marked for v in row] for row in layout]
    assert has_win(grid)
    assert result.events[-1].type == "resolved"


def test_spectator_round_times_out():
    settings = SessionSettings(selection_seconds=5, game_seconds=12)
    result = run_simulation(
        settings=settings, catalog=default_catalog(), rng=PyRandomSource(8), spectator=True
    )
    assert result.outcome == "timeout"
    assert result.card_id is None
    assert result.marked == []
    assert len(result.calls) == 4
    assert result.elapsed == 17
    assert result.summary()["outcome"] == "timeout"


def test_random_card_choice_skips_taken_ids():
    settings = SessionSettings(game_seconds=9, taken_probability=0.5)
    result = run_simulation(settings=settings, catalog=default_catalog(), rng=PyRandomSource(21))
    assert result.card_id is not None
    selection = next(e for e in result.events if e.type == "card_confirmed")
    assert selection.payload["card_id"] == result.card_id
