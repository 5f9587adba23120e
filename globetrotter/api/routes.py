from __future__ import annotations

import logging
from urllib.parse import urlencode
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from globetrotter.api.deps import (
    get_destination_store,
    get_session_manager,
    get_share_renderer,
    get_username_registry,
)
from globetrotter.api.models import (
    DestinationRoundResponse,
    ErrorResponse,
    FeedbackView,
    GuessRequest,
    GuessResponse,
    RoundView,
    ScoreView,
    SessionCreateRequest,
    SessionState,
    ShareLinks,
)
from globetrotter.core.errors import (
    GlobetrotterError,
    RenderUnavailableError,
    SessionNotFoundError,
    UsernameTakenError,
)
from globetrotter.core.events import RoundEvent
from globetrotter.core.options import sample_options
from globetrotter.destinations.registry import DestinationStore
from globetrotter.fsm import RoundPhase
from globetrotter.session import PlaySession, RoundListener
from globetrotter.session_store import SessionManager
from globetrotter.share_card import CONTENT_TYPE, ShareCardRenderer, coerce_score
from globetrotter.usernames import UsernameRegistry
from globetrotter.websocket_hub import hub

logger = logging.getLogger(__name__)

router = APIRouter()

ROUND_LOAD_FAILED = "Failed to load a round"
IMAGE_FAILED = "Failed to generate image"
SHARE_CACHE_CONTROL = "public, max-age=31536000"


def _round_view(session: PlaySession) -> RoundView | None:
    play_round = session.current_round
    if play_round is None:
        return None

    view = RoundView(
        round_no=session.round_no,
        phase=play_round.phase,
        clues=list(play_round.destination.round_clues),
        options=list(play_round.option_set.options),
        seconds_remaining=play_round.seconds_remaining,
    )
    # Never leak the answer while the round is still open.
    if play_round.phase == RoundPhase.resolved:
        feedback = play_round.feedback
        view.selected_answer = play_round.selected_answer
        view.outcome = play_round.outcome
        view.correct = play_round.destination.city
        if feedback is not None:
            view.feedback = FeedbackView(
                headline=feedback.headline,
                fun_fact=feedback.fun_fact,
                trivia=feedback.trivia,
                correct_city=feedback.correct_city,
            )
    return view


def _session_state(session: PlaySession) -> SessionState:
    return SessionState(
        session_id=session.session_id,
        username=session.username,
        phase=session.phase,
        score=ScoreView(correct=session.score.correct, incorrect=session.score.incorrect),
        round=_round_view(session),
    )


def _require_session(sessions: SessionManager, session_id: UUID, registry: UsernameRegistry) -> PlaySession:
    try:
        session = sessions.require(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    sessions.touch(session, registry=registry)
    return session


def _hub_listener(session_id: UUID) -> RoundListener:
    sid = str(session_id)

    def _listener(event: RoundEvent) -> None:
        hub.publish(sid, event.as_message(session_id=sid))

    return _listener


@router.websocket("/ws/session/{session_id}")
async def session_updates_ws(websocket: WebSocket, session_id: UUID) -> None:
    sid = str(session_id)
    await hub.connect(sid, websocket)

    try:
        # Inbound frames are ignored; the socket only carries round events.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Session %s socket closed", sid)
    finally:
        await hub.disconnect(sid, websocket)


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/api/destination",
    response_model=DestinationRoundResponse,
    responses={500: {"model": ErrorResponse}},
)
async def destination_route(
    store: DestinationStore = Depends(get_destination_store),
) -> DestinationRoundResponse | JSONResponse:
    try:
        destination = store.random_destination()
        option_set = sample_options(correct=destination, pool=store.destinations)
    except GlobetrotterError:
        logger.exception("Error loading a round")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": ROUND_LOAD_FAILED})

    return DestinationRoundResponse(
        clues=list(destination.round_clues),
        options=list(option_set.options),
        correct=destination.city,
        fun_fact=destination.first_fun_fact,
        trivia=destination.first_trivia,
    )


@router.get(
    "/api/share",
    response_class=Response,
    responses={200: {"content": {CONTENT_TYPE: {}}}, 500: {"model": ErrorResponse}},
)
async def share_image_route(
    username: str | None = None,
    score: str | None = None,
    renderer: ShareCardRenderer = Depends(get_share_renderer),
) -> Response:
    try:
        # Rendering is CPU-bound; keep it off the loop so countdowns keep ticking.
        png = await run_in_threadpool(renderer.render, username, score)
    except RenderUnavailableError:
        logger.exception("Error generating image")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": IMAGE_FAILED})

    return Response(content=png, media_type=CONTENT_TYPE, headers={"Cache-Control": SHARE_CACHE_CONTROL})


@router.post("/api/sessions", response_model=SessionState, status_code=status.HTTP_201_CREATED)
async def create_session_route(
    payload: SessionCreateRequest,
    store: DestinationStore = Depends(get_destination_store),
    sessions: SessionManager = Depends(get_session_manager),
    registry: UsernameRegistry = Depends(get_username_registry),
) -> SessionState:
    try:
        session = sessions.create(username=payload.username, store=store, registry=registry)
    except UsernameTakenError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    session.subscribe(_hub_listener(session.session_id))
    return _session_state(session)


@router.get("/api/sessions/{session_id}", response_model=SessionState)
async def get_session_route(
    session_id: UUID,
    sessions: SessionManager = Depends(get_session_manager),
    registry: UsernameRegistry = Depends(get_username_registry),
) -> SessionState:
    return _session_state(_require_session(sessions, session_id, registry))


@router.post(
    "/api/sessions/{session_id}/rounds",
    response_model=SessionState,
    responses={500: {"model": ErrorResponse}},
)
async def start_round_route(
    session_id: UUID,
    sessions: SessionManager = Depends(get_session_manager),
    registry: UsernameRegistry = Depends(get_username_registry),
) -> SessionState | JSONResponse:
    session = _require_session(sessions, session_id, registry)
    try:
        session.start_round()
    except GlobetrotterError:
        logger.exception("Error starting a round for session %s", session_id)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": ROUND_LOAD_FAILED})
    return _session_state(session)


@router.post("/api/sessions/{session_id}/guess", response_model=GuessResponse)
async def guess_route(
    session_id: UUID,
    payload: GuessRequest,
    sessions: SessionManager = Depends(get_session_manager),
    registry: UsernameRegistry = Depends(get_username_registry),
) -> GuessResponse:
    session = _require_session(sessions, session_id, registry)
    # Stale or duplicate guesses are not errors; they just aren't accepted.
    accepted = session.submit_guess(payload.answer)
    return GuessResponse(accepted=accepted, session=_session_state(session))


@router.delete("/api/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session_route(
    session_id: UUID,
    sessions: SessionManager = Depends(get_session_manager),
    registry: UsernameRegistry = Depends(get_username_registry),
) -> Response:
    try:
        sessions.close(session_id, registry=registry)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/api/sessions/{session_id}/share", response_model=ShareLinks)
async def share_links_route(
    session_id: UUID,
    request: Request,
    sessions: SessionManager = Depends(get_session_manager),
    registry: UsernameRegistry = Depends(get_username_registry),
) -> ShareLinks:
    session = _require_session(sessions, session_id, registry)
    base = str(request.base_url).rstrip("/")
    score = coerce_score(session.score.correct)

    invite_url = f"{base}/play?{urlencode({'invitedBy': session.username, 'score': score})}"
    image_url = f"{base}/api/share?{urlencode({'username': session.username, 'score': score})}"
    message = f"Join me on Globetrotter! I scored {score}. Beat my score: {invite_url}"
    whatsapp_url = f"https://api.whatsapp.com/send?{urlencode({'text': message})}"

    return ShareLinks(message=message, invite_url=invite_url, image_url=image_url, whatsapp_url=whatsapp_url)
