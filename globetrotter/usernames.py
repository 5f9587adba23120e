from __future__ import annotations

import re
import threading
from typing import Protocol

import redis


USERNAME_KEY_PREFIX = "globetrotter:username:"  # + {normalized name}


def normalize_username(name: str) -> str:
    return re.sub(r"\s+", " ", name).strip().casefold()


class UsernameRegistry(Protocol):
    """Check-and-register capability for usernames.

    Every claim carries an `owner` token (the session id); only the owner can
    refresh or release it.
    """

    def register(self, name: str, *, owner: str) -> bool:
        """Claim `name` for `owner`; False if someone else already holds it."""
        ...

    def touch(self, name: str, *, owner: str) -> bool:
        """Keep `owner`'s claim alive. False if another owner holds the name."""
        ...

    def release(self, name: str, *, owner: str) -> None: ...

    def is_taken(self, name: str) -> bool: ...


class InMemoryUsernameRegistry:
    def __init__(self) -> None:
        self._owners: dict[str, str] = {}
        self._lock = threading.Lock()

    def register(self, name: str, *, owner: str) -> bool:
        key = normalize_username(name)
        with self._lock:
            if self._owners.get(key, owner) != owner:
                return False
            self._owners[key] = owner
            return True

    def touch(self, name: str, *, owner: str) -> bool:
        # In-memory claims never expire; idle sessions are swept instead.
        return self.register(name, owner=owner)

    def release(self, name: str, *, owner: str) -> None:
        key = normalize_username(name)
        with self._lock:
            if self._owners.get(key) == owner:
                del self._owners[key]

    def is_taken(self, name: str) -> bool:
        return normalize_username(name) in self._owners


class RedisUsernameRegistry:
    """Username claims in Redis.

    The key holds the owning session id and expires after `ttl_seconds` unless
    the owner keeps touching it. Refresh and release are compare-and-set under
    WATCH, so a stale session can never drop someone else's claim.
    """

    def __init__(self, *, r: redis.Redis, ttl_seconds: int) -> None:
        self._r = r
        self._ttl_seconds = ttl_seconds

    @staticmethod
    def _key(name: str) -> str:
        return f"{USERNAME_KEY_PREFIX}{normalize_username(name)}"

    def register(self, name: str, *, owner: str) -> bool:
        return bool(self._r.set(self._key(name), owner, nx=True, ex=self._ttl_seconds))

    def owner_of(self, name: str) -> str | None:
        return self._r.get(self._key(name))

    def touch(self, name: str, *, owner: str) -> bool:
        key = self._key(name)
        with self._r.pipeline() as pipe:
            try:
                pipe.watch(key)
                current = pipe.get(key)
                if current is not None and current != owner:
                    pipe.unwatch()
                    return False
                pipe.multi()
                # Re-claim if the key lapsed while nobody else took it.
                pipe.set(key, owner, ex=self._ttl_seconds)
                pipe.execute()
            except redis.WatchError:
                return self.owner_of(name) == owner
        return True

    def release(self, name: str, *, owner: str) -> None:
        key = self._key(name)
        with self._r.pipeline() as pipe:
            try:
                pipe.watch(key)
                if pipe.get(key) != owner:
                    pipe.unwatch()
                    return
                pipe.multi()
                pipe.delete(key)
                pipe.execute()
            except redis.WatchError:
                # Someone else changed the claim; it is no longer ours to drop.
                return

    def is_taken(self, name: str) -> bool:
        return bool(self._r.exists(self._key(name)))
