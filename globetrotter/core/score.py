from __future__ import annotations

from dataclasses import dataclass

from globetrotter.core.round import Outcome


@dataclass(slots=True)
class Score:
    correct: int = 0
    incorrect: int = 0

    @property
    def total(self) -> int:
        return self.correct + self.incorrect

    def record(self, outcome: Outcome) -> None:
        # Timeouts count against the player.
        if outcome.counts_as_correct:
            self.correct += 1
        else:
            self.incorrect += 1
