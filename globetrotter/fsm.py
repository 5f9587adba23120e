from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from statemachine import State, StateMachine

if TYPE_CHECKING:
    from globetrotter.core.round import Round


class RoundPhase(StrEnum):
    idle = "idle"
    awaiting_answer = "awaiting_answer"
    resolved = "resolved"


class RoundFSM(StateMachine):
    """FSM guarding the lifecycle of a single round.

    - phases: idle -> awaiting_answer -> resolved
    - `answer` and `expire` are the only ways out of awaiting_answer, and both
      stop the round's countdown on exit.
    """

    idle = State(RoundPhase.idle.value, value=RoundPhase.idle.value, initial=True)
    awaiting_answer = State(RoundPhase.awaiting_answer.value, value=RoundPhase.awaiting_answer.value)
    resolved = State(RoundPhase.resolved.value, value=RoundPhase.resolved.value, final=True)

    begin = idle.to(awaiting_answer)
    answer = awaiting_answer.to(resolved)
    expire = awaiting_answer.to(resolved)

    def __init__(self, play_round: Round):
        self.play_round = play_round
        super().__init__()

    @property
    def phase(self) -> RoundPhase:
        return RoundPhase(str(self.current_state.value))

    def on_exit_awaiting_answer(self) -> None:
        self.play_round.stop_countdown()

    def on_enter_resolved(self) -> None:
        self.play_round.notify_resolved()
