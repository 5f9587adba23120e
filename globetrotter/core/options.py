from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass

from globetrotter.core.errors import InsufficientPoolError
from globetrotter.destinations.registry import Destination


OPTION_COUNT = 4


@dataclass(frozen=True, slots=True)
class OptionSet:
    """The candidate answers offered for one round.

    `options` holds distinct city names in presentation order; `correct` is one of them.
    """

    options: tuple[str, ...]
    correct: str

    def __post_init__(self) -> None:
        if len(set(self.options)) != len(self.options):
            raise ValueError("options must be distinct")
        if self.options.count(self.correct) != 1:
            raise ValueError("correct answer must appear exactly once")

    def __contains__(self, item: object) -> bool:
        return item in self.options

    def __len__(self) -> int:
        return len(self.options)


def sample_options(
    *,
    correct: Destination,
    pool: Sequence[Destination],
    size: int = OPTION_COUNT,
    rng: random.Random | None = None,
) -> OptionSet:
    """Build a shuffled option set containing `correct.city` and `size - 1` decoys.

    Decoys are drawn by rejection sampling from `pool`, so the pool must hold at
    least `size` distinct cities; otherwise `InsufficientPoolError` is raised
    before any drawing happens.
    """

    rng = rng or random.Random()

    cities = {d.city for d in pool}
    if correct.city not in cities:
        raise InsufficientPoolError(f"Pool does not contain the correct destination {correct.city!r}")
    if len(cities) < size:
        raise InsufficientPoolError(f"Need at least {size} distinct cities, pool has {len(cities)}")

    picked = [correct.city]
    while len(picked) < size:
        city = rng.choice(pool).city
        if city not in picked:
            picked.append(city)

    # Fisher-Yates, uniform over permutations.
    rng.shuffle(picked)
    return OptionSet(options=tuple(picked), correct=correct.city)
