from __future__ import annotations

import json
import logging
import random
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from globetrotter.core.errors import EmptyStoreError


logger = logging.getLogger(__name__)

NO_FUN_FACT = "No fun fact available."
NO_TRIVIA = "No trivia available."


def _norm_key(s: str) -> str:
    return re.sub(r"\s+", " ", s).strip().casefold()


class DestinationLoadError(RuntimeError):
    pass


class Destination(BaseModel):
    """One place the player must identify.

    The on-disk format written by the dataset curator uses `fun_fact`; `funFact`
    is accepted too so API payloads can be fed back in.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    city: str = Field(..., min_length=1)
    country: str = ""
    clues: tuple[str, ...] = Field(..., min_length=2)
    fun_fact: tuple[str, ...] = Field(default=(), alias="funFact")
    trivia: tuple[str, ...] = ()

    @property
    def round_clues(self) -> tuple[str, str]:
        return self.clues[0], self.clues[1]

    @property
    def first_fun_fact(self) -> str:
        return self.fun_fact[0] if self.fun_fact and self.fun_fact[0] else NO_FUN_FACT

    @property
    def first_trivia(self) -> str:
        return self.trivia[0] if self.trivia and self.trivia[0] else NO_TRIVIA


@dataclass(frozen=True, slots=True)
class DestinationStore:
    """Immutable, ordered collection of destinations.

    Read-only after construction, so any number of rounds may share it.
    """

    destinations: tuple[Destination, ...]
    _by_id: dict[int, Destination]
    _city_key_to_id: dict[str, int]

    @staticmethod
    def from_records(rows: Sequence[Destination]) -> "DestinationStore":
        by_id: dict[int, Destination] = {}
        city_key_to_id: dict[str, int] = {}
        for d in rows:
            if d.id in by_id:
                raise DestinationLoadError(f"Duplicate destination id: {d.id}")
            key = _norm_key(d.city)
            if key in city_key_to_id:
                raise DestinationLoadError(f"Duplicate destination city: {d.city}")
            by_id[d.id] = d
            city_key_to_id[key] = d.id
        return DestinationStore(destinations=tuple(rows), _by_id=by_id, _city_key_to_id=city_key_to_id)

    def __len__(self) -> int:
        return len(self.destinations)

    def get(self, id: int) -> Destination | None:
        return self._by_id.get(id)

    def by_city(self, city: str) -> Destination | None:
        did = self._city_key_to_id.get(_norm_key(city))
        return None if did is None else self._by_id[did]

    def random_destination(self, *, rng: random.Random | None = None) -> Destination:
        if not self.destinations:
            raise EmptyStoreError("Destination store is empty")
        return (rng or random).choice(self.destinations)


def parse_destinations(raw: object, *, source: str = "<memory>") -> list[Destination]:
    if not isinstance(raw, list):
        raise DestinationLoadError(f"Expected a JSON array of destinations in {source}")
    out: list[Destination] = []
    for idx, item in enumerate(raw):
        try:
            out.append(Destination.model_validate(item))
        except ValidationError as e:
            raise DestinationLoadError(f"Invalid destination #{idx} in {source}: {e}") from e
    return out


def load_destinations_json(path: Path) -> DestinationStore:
    try:
        raw = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as e:
        raise DestinationLoadError(f"Destination file not found: {path}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise DestinationLoadError(f"Malformed JSON in {path}: {e}") from e

    rows = parse_destinations(data, source=str(path))
    if not rows:
        raise DestinationLoadError(f"Empty destination file: {path}")
    return DestinationStore.from_records(rows)


def _fallback_destinations() -> DestinationStore:
    """Tiny built-in dataset used when the real dataset file is missing."""

    rows = [
        Destination(
            id=1,
            city="Paris",
            country="France",
            clues=("This city is home to a famous tower that sparkles every night.", "Known as the 'City of Love'."),
            fun_fact=("The Eiffel Tower was meant to be dismantled after 20 years.",),
            trivia=("This city is famous for its croissants.",),
        ),
        Destination(
            id=2,
            city="Tokyo",
            country="Japan",
            clues=("The busiest pedestrian crossing on Earth is here.", "A former fishing village once named Edo."),
            fun_fact=("Its metro area is the most populous in the world.",),
            trivia=("It hosted the Summer Olympics twice.",),
        ),
        Destination(
            id=3,
            city="Cairo",
            country="Egypt",
            clues=("Ancient wonders stand just beyond its western edge.", "The Nile flows right through it."),
            fun_fact=("Its name means 'The Victorious'.",),
            trivia=("It is home to the oldest university still operating in Africa.",),
        ),
        Destination(
            id=4,
            city="Lima",
            country="Peru",
            clues=("A coastal capital where it almost never rains.", "Founded by Francisco Pizarro in 1535."),
            fun_fact=("It is sometimes called the gastronomic capital of the Americas.",),
            trivia=("It is the second-largest desert city in the world.",),
        ),
        Destination(
            id=5,
            city="Oslo",
            country="Norway",
            clues=("The Nobel Peace Prize is awarded here.", "A fjord-side capital with a famous opera house roof you can walk on."),
            fun_fact=("It was once named Christiania.",),
            trivia=("It sends a Christmas tree to London every year.",),
        ),
    ]
    return DestinationStore.from_records(rows)


def load_destination_store(*, path: Path, strict: bool = False) -> DestinationStore:
    # Missing/broken dataset falls back to the built-in sample unless strict.
    try:
        return load_destinations_json(path)
    except DestinationLoadError as e:
        if strict:
            raise
        logger.warning("Using built-in sample destinations: %s", e)
        return _fallback_destinations()
