from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from globetrotter.core.round import Outcome
from globetrotter.fsm import RoundPhase


class DestinationRoundResponse(BaseModel):
    """Stateless round payload for the presentation layer."""

    model_config = ConfigDict(populate_by_name=True)

    clues: list[str] = Field(..., min_length=2, max_length=2)
    options: list[str] = Field(..., min_length=4, max_length=4)
    correct: str
    fun_fact: str = Field(..., alias="funFact")
    trivia: str


class ErrorResponse(BaseModel):
    error: str


class SessionCreateRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=40, pattern=r"\S")


class GuessRequest(BaseModel):
    answer: str = Field(..., max_length=200)


class ScoreView(BaseModel):
    correct: int = 0
    incorrect: int = 0


class FeedbackView(BaseModel):
    headline: str
    fun_fact: str
    trivia: str
    correct_city: str | None = None


class RoundView(BaseModel):
    round_no: int
    phase: RoundPhase
    clues: list[str]
    options: list[str]
    seconds_remaining: int

    # Populated once the round is resolved.
    selected_answer: str | None = None
    outcome: Outcome | None = None
    correct: str | None = None
    feedback: FeedbackView | None = None


class SessionState(BaseModel):
    session_id: UUID
    username: str
    phase: RoundPhase
    score: ScoreView
    round: RoundView | None = None


class GuessResponse(BaseModel):
    accepted: bool
    session: SessionState


class ShareLinks(BaseModel):
    message: str
    invite_url: str
    image_url: str
    whatsapp_url: str
