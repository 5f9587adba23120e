from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_ROUND_SECONDS = 10
DEFAULT_TICK_SECONDS = 1.0
DEFAULT_USERNAME_TTL_SECONDS = 6 * 60 * 60
DEFAULT_SESSION_IDLE_SECONDS = 30 * 60

LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True, slots=True)
class Settings:
    data_path: Path
    strict_data: bool
    round_seconds: int
    tick_seconds: float
    font_path: Path | None
    log_level: str
    username_backend: str
    redis_url: str
    username_ttl_seconds: int
    session_idle_seconds: int


def _flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes"}


def _int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _log_level(raw: str) -> str:
    level = raw.strip().upper()
    return level if level in LOG_LEVELS else "INFO"


def settings_from_env(*, load_env_file: bool = True) -> Settings:
    if load_env_file:
        env_path = PROJECT_ROOT / ".env"
        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=False)

    font = os.environ.get("GLOBETROTTER_FONT_PATH", "").strip()
    data = os.environ.get("GLOBETROTTER_DATA_PATH", "").strip()

    return Settings(
        data_path=Path(data) if data else PROJECT_ROOT / "data" / "destinations.json",
        strict_data=_flag("GLOBETROTTER_STRICT_DATA"),
        round_seconds=_int("GLOBETROTTER_ROUND_SECONDS", DEFAULT_ROUND_SECONDS),
        tick_seconds=_float("GLOBETROTTER_TICK_SECONDS", DEFAULT_TICK_SECONDS),
        font_path=Path(font) if font else None,
        log_level=_log_level(os.environ.get("GLOBETROTTER_LOG_LEVEL", "")),
        username_backend=os.environ.get("GLOBETROTTER_USERNAME_BACKEND", "memory").strip().lower() or "memory",
        redis_url=os.environ.get("REDIS_URL", "redis://localhost:6379/0"),
        username_ttl_seconds=_int("GLOBETROTTER_USERNAME_TTL_SECONDS", DEFAULT_USERNAME_TTL_SECONDS),
        session_idle_seconds=_int("GLOBETROTTER_SESSION_IDLE_SECONDS", DEFAULT_SESSION_IDLE_SECONDS),
    )
