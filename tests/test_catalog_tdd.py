from __future__ import annotations

import json
from pathlib import Path

import pytest

from bingo_game.catalog import (
    CardCatalog,
    column_range,
    default_catalog,
    load_catalog,
    validate_layout,
)
from bingo_game.errors import InvalidLayout, UnknownCard
from bingo_game.serialize import emit_catalog_json


def test_default_catalog_covers_ids_and_is_valid():
    catalog = default_catalog()
    assert len(catalog) == 99
    assert list(catalog) == list(range(1, 100))
    for cid in catalog:
        layout = catalog.get(cid)
        assert layout[2][2] == 0
        for j in range(5):
            column = [layout[i][j] for i in range(5) if (i, j) != (2, 2)]
            assert all(v in column_range(j) for v in column)


def test_default_catalog_is_fixed_for_a_seed():
    assert default_catalog(11).as_dict() == default_catalog(11).as_dict()
    assert default_catalog(11).as_dict() != default_catalog(12).as_dict()


def test_lookup_miss_raises_unknown_card(card44_layout):
    catalog = CardCatalog({44: card44_layout})
    assert 44 in catalog
    assert 45 not in catalog
    with pytest.raises(UnknownCard) as err:
        catalog.get(45)
    assert err.value.card_id == 45


def test_validate_layout_accepts_example(card44_layout):
    layout = validate_layout(card44_layout)
    assert layout[4] == (5, 20, 34, 50, 65)


@pytest.mark.parametrize(
    "cell,value",
    [
        ((2, 2), 40),  # center must be free
        ((0, 0), 0),  # free space off center
        ((0, 0), 16),  # outside column range
        ((1, 0), 1),  # duplicate
    ],
)
def test_validate_layout_rejects(card44_layout, cell, value):
    i, j = cell
    card44_layout[i][j] = value
    with pytest.raises(InvalidLayout):
        validate_layout(card44_layout)


def test_catalog_rejects_out_of_range_id(card44_layout):
    with pytest.raises(ValueError):
        CardCatalog({100: card44_layout})


def test_load_catalog_from_yaml(tmp_path: Path, card44_layout):
    rows = "\n".join(f"  - {row}" for row in card44_layout)
    path = tmp_path / "cards.yaml"
    path.write_text(f"44:\n{rows}\n", encoding="utf-8")
    catalog = load_catalog(path)
    assert list(catalog) == [44]
    assert catalog.get(44)[0] == (1, 16, 31, 46, 61)


def test_load_catalog_reads_exported_json(tmp_path: Path):
    out = tmp_path / "out" / "cards.json"
    original = default_catalog()
    emit_catalog_json(out, catalog=original, mkdirs=True, overwrite=False)
    assert json.loads(out.read_text(encoding="utf-8"))["count"] == 99
    assert load_catalog(out).as_dict() == original.as_dict()
    with pytest.raises(FileExistsError):
        emit_catalog_json(out, catalog=original, mkdirs=True, overwrite=False)


def test_load_catalog_reports_bad_card(tmp_path: Path, card44_layout):
    card44_layout[0][0] = 99
    path = tmp_path / "cards.json"
    path.write_text(json.dumps({"7": card44_layout}), encoding="utf-8")
    with pytest.raises(InvalidLayout, match="card 7"):
        load_catalog(path)
