from __future__ import annotations

import pytest

from bingo_game.catalog import CardCatalog
from bingo_game.config import SessionSettings
from bingo_game.rng import PyRandomSource, ScriptedSource
from bingo_game.session import GameSession
from bingo_game.timers import VirtualScheduler

CARD_44 = [
    [1, 16, 31, 46, 61],
    [2, 17, 32, 47, 62],
    [3, 18, 0, 48, 63],
    [4, 19, 33, 49, 64],
    [5, 20, 34, 50, 65],
]


@pytest.fixture()
def catalog44() -> CardCatalog:
    return CardCatalog({44: CARD_44})


@pytest.fixture()
def make_session(catalog44):
    """Build a session on a virtual clock with scripted draws."""

    def factory(choices=(), **overrides):
        params = dict(
            selection_seconds=5,
            game_seconds=30,
            call_interval_seconds=3.0,
            resolve_hold_seconds=3.0,
            claim_feedback_seconds=1.0,
            taken_probability=0.0,
        )
        params.update(overrides)
        scheduler = VirtualScheduler()
        rng = ScriptedSource(choices=choices, fallback=PyRandomSource(7))
        session = GameSession(
            settings=SessionSettings(**params),
            catalog=catalog44,
            scheduler=scheduler,
            rng=rng,
        )
        return session, scheduler

    return factory


@pytest.fixture()
def card44_layout():
    return [list(row) for row in CARD_44]
