from __future__ import annotations

from functools import lru_cache

from globetrotter.config import Settings, settings_from_env
from globetrotter.destinations.registry import DestinationStore
from globetrotter.destinations.singleton import get_store
from globetrotter.infra.redis_client import create_redis
from globetrotter.session_store import SessionManager, get_sessions
from globetrotter.share_card import ShareCardRenderer
from globetrotter.usernames import InMemoryUsernameRegistry, RedisUsernameRegistry, UsernameRegistry


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return settings_from_env()


def get_destination_store() -> DestinationStore:
    return get_store()


def get_session_manager() -> SessionManager:
    return get_sessions()


_MEMORY_REGISTRY = InMemoryUsernameRegistry()


@lru_cache(maxsize=1)
def _redis_registry(url: str, ttl_seconds: int) -> RedisUsernameRegistry:
    return RedisUsernameRegistry(r=create_redis(url), ttl_seconds=ttl_seconds)


def get_username_registry() -> UsernameRegistry:
    settings = get_settings()
    if settings.username_backend == "redis":
        return _redis_registry(settings.redis_url, settings.username_ttl_seconds)
    return _MEMORY_REGISTRY


def get_share_renderer() -> ShareCardRenderer:
    return ShareCardRenderer(font_path=get_settings().font_path)
