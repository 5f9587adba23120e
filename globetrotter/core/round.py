from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from globetrotter.core.countdown import Countdown
from globetrotter.core.options import OptionSet
from globetrotter.destinations.registry import Destination
from globetrotter.fsm import RoundFSM, RoundPhase


logger = logging.getLogger(__name__)

ROUND_SECONDS = 10


class Outcome(StrEnum):
    correct = "correct"
    incorrect = "incorrect"
    timeout = "timeout"

    @property
    def counts_as_correct(self) -> bool:
        return self is Outcome.correct


HEADLINES: dict[Outcome, str] = {
    Outcome.correct: "Nice one!",
    Outcome.incorrect: "Oops!",
    Outcome.timeout: "Time's up!",
}


@dataclass(frozen=True, slots=True)
class Feedback:
    headline: str
    fun_fact: str
    trivia: str
    # Only revealed on timeout.
    correct_city: str | None = None


class Round:
    """One clue-to-answer cycle for a single destination.

    Owns its countdown. The countdown is stopped on every way out of
    `awaiting_answer` (guess, timeout, or discard), so a stale tick can never
    touch a later round.
    """

    def __init__(
        self,
        *,
        destination: Destination,
        option_set: OptionSet,
        seconds: int = ROUND_SECONDS,
        tick_interval: float = 1.0,
        on_tick: Callable[[Round], None] | None = None,
        on_resolved: Callable[[Round], None] | None = None,
    ) -> None:
        if option_set.correct != destination.city:
            raise ValueError("option set does not belong to this destination")
        self.destination = destination
        self.option_set = option_set
        self.selected_answer: str | None = None
        self.outcome: Outcome | None = None
        self._on_tick = on_tick
        self._on_resolved = on_resolved
        self._discarded = False
        self.countdown = Countdown(
            seconds=seconds,
            interval=tick_interval,
            on_tick=self._handle_tick,
            on_expire=self._handle_expire,
        )
        self._fsm = RoundFSM(self)

    @property
    def phase(self) -> RoundPhase:
        return self._fsm.phase

    @property
    def seconds_remaining(self) -> int:
        return self.countdown.remaining

    @property
    def discarded(self) -> bool:
        return self._discarded

    @property
    def is_awaiting_answer(self) -> bool:
        return self.phase == RoundPhase.awaiting_answer and not self._discarded

    def begin(self, *, run_timer: bool = True) -> None:
        """Enter awaiting_answer. With `run_timer=False` ticks must be driven by hand."""

        self._fsm.begin()
        if run_timer:
            self.countdown.start()
        logger.debug("Round started for destination %s", self.destination.id)

    def submit(self, answer: str) -> bool:
        """Record the player's guess. Returns False (no-op) if the round no longer accepts one.

        The answer is compared to the city by exact string match. It need not be
        one of the four options; anything else is simply scored incorrect.
        """

        if not self.is_awaiting_answer or self.seconds_remaining <= 0:
            logger.debug("Ignoring guess %r outside the answer window", answer)
            return False
        self.selected_answer = answer
        self.outcome = Outcome.correct if answer == self.destination.city else Outcome.incorrect
        self._fsm.answer()
        return True

    def discard(self) -> None:
        """Abandon the round without resolving it."""

        self._discarded = True
        self.stop_countdown()

    def stop_countdown(self) -> None:
        self.countdown.cancel()

    def notify_resolved(self) -> None:
        logger.info("Round for %s resolved: %s", self.destination.city, self.outcome)
        if self._on_resolved is not None:
            self._on_resolved(self)

    @property
    def feedback(self) -> Feedback | None:
        if self.outcome is None:
            return None
        return Feedback(
            headline=HEADLINES[self.outcome],
            fun_fact=self.destination.first_fun_fact,
            trivia=self.destination.first_trivia,
            correct_city=self.destination.city if self.outcome is Outcome.timeout else None,
        )

    def _handle_tick(self, remaining: int) -> None:
        if self._on_tick is not None and self.is_awaiting_answer:
            self._on_tick(self)

    def _handle_expire(self) -> None:
        if not self.is_awaiting_answer:
            return
        self.outcome = Outcome.timeout
        self._fsm.expire()
