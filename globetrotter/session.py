from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID, uuid4

from globetrotter.core.events import RoundEvent
from globetrotter.core.options import sample_options
from globetrotter.core.round import ROUND_SECONDS, Round
from globetrotter.core.score import Score
from globetrotter.destinations.registry import DestinationStore
from globetrotter.fsm import RoundPhase


logger = logging.getLogger(__name__)

RoundListener = Callable[[RoundEvent], None]


@dataclass(frozen=True, slots=True)
class RoundTiming:
    seconds: int = ROUND_SECONDS
    tick_interval: float = 1.0


class PlaySession:
    """Session controller for one player.

    Holds the username, the cumulative score and the current round. Starting a
    new round discards the previous one (its timer is cancelled, the score is
    left alone).
    """

    def __init__(
        self,
        *,
        username: str,
        store: DestinationStore,
        timing: RoundTiming | None = None,
        rng: random.Random | None = None,
        session_id: UUID | None = None,
    ) -> None:
        self.session_id = session_id or uuid4()
        self.username = username
        self.score = Score()
        self.current_round: Round | None = None
        self.round_no = 0
        self._store = store
        self._timing = timing or RoundTiming()
        self._rng = rng or random.Random()
        self._listeners: list[RoundListener] = []
        self._closed = False

    @property
    def phase(self) -> RoundPhase:
        if self.current_round is None:
            return RoundPhase.idle
        return self.current_round.phase

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: RoundListener) -> None:
        self._listeners.append(listener)

    def start_round(self, *, run_timer: bool = True) -> Round:
        if self._closed:
            raise RuntimeError("Session is closed")

        # Draw first so a failing store leaves the previous round untouched.
        destination = self._store.random_destination(rng=self._rng)
        option_set = sample_options(correct=destination, pool=self._store.destinations, rng=self._rng)

        if self.current_round is not None:
            self.current_round.discard()

        play_round = Round(
            destination=destination,
            option_set=option_set,
            seconds=self._timing.seconds,
            tick_interval=self._timing.tick_interval,
            on_tick=self._on_tick,
            on_resolved=self._on_resolved,
        )
        self.round_no += 1
        self.current_round = play_round
        play_round.begin(run_timer=run_timer)

        self._emit(
            RoundEvent.now(
                type="ROUND_STARTED",
                round_no=self.round_no,
                payload={
                    "clues": list(destination.round_clues),
                    "options": list(option_set.options),
                    "seconds_remaining": play_round.seconds_remaining,
                },
            )
        )
        return play_round

    def submit_guess(self, answer: str) -> bool:
        if self.current_round is None:
            return False
        return self.current_round.submit(answer)

    def close(self) -> None:
        self._closed = True
        if self.current_round is not None:
            self.current_round.discard()
        self._listeners.clear()

    def _on_tick(self, play_round: Round) -> None:
        if play_round is not self.current_round:
            return
        self._emit(
            RoundEvent.now(
                type="TICK",
                round_no=self.round_no,
                payload={"seconds_remaining": play_round.seconds_remaining},
            )
        )

    def _on_resolved(self, play_round: Round) -> None:
        if play_round is not self.current_round or play_round.outcome is None:
            return
        self.score.record(play_round.outcome)
        feedback = play_round.feedback
        self._emit(
            RoundEvent.now(
                type="ROUND_RESOLVED",
                round_no=self.round_no,
                payload={
                    "outcome": play_round.outcome.value,
                    "selected_answer": play_round.selected_answer,
                    "correct": play_round.destination.city,
                    "seconds_remaining": play_round.seconds_remaining,
                    "headline": feedback.headline if feedback else None,
                    "fun_fact": feedback.fun_fact if feedback else None,
                    "trivia": feedback.trivia if feedback else None,
                    "score": {"correct": self.score.correct, "incorrect": self.score.incorrect},
                },
            )
        )

    def _emit(self, event: RoundEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
