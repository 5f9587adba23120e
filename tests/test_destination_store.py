from __future__ import annotations

import json
import random
from pathlib import Path

import pytest

from globetrotter.core.errors import EmptyStoreError
from globetrotter.destinations.registry import (
    NO_FUN_FACT,
    NO_TRIVIA,
    Destination,
    DestinationLoadError,
    DestinationStore,
    load_destination_store,
    load_destinations_json,
)
from globetrotter.destinations.singleton import get_store


DATA = Path(__file__).resolve().parent / "data" / "destinations.json"


def _write(tmp_path: Path, rows: object) -> Path:
    p = tmp_path / "destinations.json"
    p.write_text(json.dumps(rows), encoding="utf-8")
    return p


def test_store_loads_curator_format_and_looks_up() -> None:
    store = load_destinations_json(DATA)

    assert len(store) == 5
    paris = store.get(1)
    assert paris is not None
    assert paris.city == "Paris"
    assert paris.round_clues == ("Paris clue 1", "Paris clue 2")
    assert paris.first_fun_fact == "Paris fact"

    # City lookup is forgiving about case and whitespace.
    assert store.by_city("  paris ") is paris
    assert store.by_city("Atlantis") is None


def test_empty_facts_fall_back_to_placeholders() -> None:
    lima = load_destinations_json(DATA).by_city("Lima")
    assert lima is not None
    assert lima.first_fun_fact == NO_FUN_FACT
    assert lima.first_trivia == NO_TRIVIA


def test_api_style_fun_fact_key_is_accepted() -> None:
    d = Destination.model_validate({"id": 9, "city": "Rome", "clues": ["a", "b"], "funFact": ["f"]})
    assert d.first_fun_fact == "f"


def test_duplicate_city_is_rejected(tmp_path: Path) -> None:
    rows = [
        {"id": 1, "city": "Paris", "clues": ["a", "b"]},
        {"id": 2, "city": "PARIS", "clues": ["c", "d"]},
    ]
    with pytest.raises(DestinationLoadError, match="Duplicate destination city"):
        load_destinations_json(_write(tmp_path, rows))


def test_duplicate_id_is_rejected(tmp_path: Path) -> None:
    rows = [
        {"id": 1, "city": "Paris", "clues": ["a", "b"]},
        {"id": 1, "city": "Rome", "clues": ["c", "d"]},
    ]
    with pytest.raises(DestinationLoadError, match="Duplicate destination id"):
        load_destinations_json(_write(tmp_path, rows))


def test_fewer_than_two_clues_is_rejected(tmp_path: Path) -> None:
    rows = [{"id": 1, "city": "Paris", "clues": ["only one"]}]
    with pytest.raises(DestinationLoadError, match="Invalid destination #0"):
        load_destinations_json(_write(tmp_path, rows))


def test_missing_file_falls_back_unless_strict(tmp_path: Path) -> None:
    missing = tmp_path / "nope.json"

    store = load_destination_store(path=missing)
    assert {d.city for d in store.destinations} >= {"Paris", "Tokyo", "Cairo", "Lima", "Oslo"}

    with pytest.raises(DestinationLoadError):
        load_destination_store(path=missing, strict=True)


def test_malformed_json_is_a_load_error(tmp_path: Path) -> None:
    p = tmp_path / "destinations.json"
    p.write_text("{not json", encoding="utf-8")
    with pytest.raises(DestinationLoadError, match="Malformed JSON"):
        load_destinations_json(p)


def test_random_destination_draws_from_store() -> None:
    store = get_store()
    rng = random.Random(7)
    drawn = {store.random_destination(rng=rng).city for _ in range(200)}
    assert drawn == {d.city for d in store.destinations}


def test_random_destination_on_empty_store_fails() -> None:
    with pytest.raises(EmptyStoreError):
        DestinationStore.from_records([]).random_destination()


def test_blank_leading_fact_is_a_placeholder() -> None:
    d = Destination.model_validate(
        {"id": 9, "city": "Rome", "clues": ["a", "b"], "fun_fact": ["", "second"], "trivia": ["", "t"]}
    )
    assert d.first_fun_fact == NO_FUN_FACT
    assert d.first_trivia == NO_TRIVIA
