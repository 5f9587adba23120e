from fastapi import FastAPI
import asyncio
import logging

from globetrotter.api.deps import get_settings, get_username_registry
from globetrotter.api.routes import router
from globetrotter.destinations.startup import init_store_for_app
from globetrotter.session import RoundTiming
from globetrotter.session_store import get_sessions, init_sessions

APP_NAME = "globetrotter"
APP_VERSION = "0.1.0"

SWEEP_INTERVAL_SECONDS = 60.0

app = FastAPI(title=APP_NAME, version=APP_VERSION)
app.include_router(router)

logger = logging.getLogger(__name__)

_sweeper: asyncio.Task[None] | None = None


async def _sweep_idle_sessions(interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            get_sessions().sweep(registry=get_username_registry())
        except Exception:
            # Keep sweeping after a failed pass.
            logger.exception("Idle session sweep failed")


@app.on_event("startup")
async def _startup() -> None:
    global _sweeper
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    init_store_for_app(settings)
    init_sessions(
        timing=RoundTiming(seconds=settings.round_seconds, tick_interval=settings.tick_seconds),
        idle_seconds=settings.session_idle_seconds,
    )
    interval = min(SWEEP_INTERVAL_SECONDS, settings.session_idle_seconds / 2)
    _sweeper = asyncio.get_running_loop().create_task(_sweep_idle_sessions(interval))


@app.on_event("shutdown")
async def _shutdown() -> None:
    global _sweeper
    if _sweeper is not None:
        _sweeper.cancel()
        _sweeper = None
    # Cancel every live countdown; nothing is kept across restarts.
    get_sessions().close_all(registry=get_username_registry())


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": APP_NAME, "version": APP_VERSION}
