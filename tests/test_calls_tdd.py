from __future__ import annotations

import pytest
from hypothesis import given, settings, strategies as st

from bingo_game.calls import Call, CallEngine, letter_for
from bingo_game.errors import ExhaustedPool
from bingo_game.rng import PyRandomSource, ScriptedSource


@pytest.mark.parametrize(
    "number,letter",
    [(1, "B"), (15, "B"), (16, "I"), (30, "I"), (31, "N"), (45, "N"), (46, "G"), (60, "G"), (61, "O"), (75, "O")],
)
def test_letter_boundaries(number, letter):
    assert letter_for(number) == letter


@pytest.mark.parametrize("number", [0, 76, -3])
def test_letter_rejects_out_of_range(number):
    with pytest.raises(ValueError):
        letter_for(number)


@settings(max_examples=30)
@given(seed=st.integers(min_value=0, max_value=2**32))
def test_draws_never_repeat_and_exhaust_after_75(seed):
    engine = CallEngine(PyRandomSource(seed))
    for _ in range(75):
        engine.draw_next()
        history = engine.history
        assert len(history) == len(set(history))
        assert engine.called == set(history)
    assert engine.exhausted
    assert sorted(engine.history) == list(range(1, 76))
    with pytest.raises(ExhaustedPool):
        engine.draw_next()
    assert len(engine.history) == 75


def test_draw_returns_call_with_letter():
    engine = CallEngine(ScriptedSource(choices=[34]))
    call = engine.draw_next()
    assert call == Call(letter="N", number=34)
    assert str(call) == "N-34"
    assert engine.current == call
    assert engine.remaining == 74


def test_recent_is_newest_first_and_capped():
    engine = CallEngine(ScriptedSource(choices=[5, 20, 34, 50, 65]))
    assert engine.recent() == []
    for _ in range(5):
        engine.draw_next()
    assert [c.number for c in engine.recent(4)] == [65, 50, 34, 20]
    assert [str(c) for c in engine.recent(2)] == ["O-65", "G-50"]


def test_scripted_source_cannot_repeat_a_called_number():
    engine = CallEngine(ScriptedSource(choices=[7, 7]))
    engine.draw_next()
    with pytest.raises(ValueError):
        engine.draw_next()
    assert engine.history == (7,)


def test_reset_clears_called_and_history():
    engine = CallEngine(PyRandomSource(1))
    for _ in range(10):
        engine.draw_next()
    engine.reset()
    assert engine.history == ()
    assert engine.called == frozenset()
    assert engine.current is None
    assert engine.remaining == 75
