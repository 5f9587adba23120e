from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import WebSocket


logger = logging.getLogger(__name__)


class SessionWebSocketHub:
    """In-process WebSocket fan-out keyed by session_id.

    `publish(session_id, payload)` is the sync entry point used by round
    listeners (countdown ticks fire outside any request); it schedules a
    `broadcast` on the running loop. Sockets whose send fails are dropped.

    Payloads should be JSON-serializable dicts.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[WebSocket]] = {}
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task[None]] = set()

    async def connect(self, session_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._subscribers.setdefault(session_id, []).append(websocket)

    async def disconnect(self, session_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            self._drop(session_id, [websocket])

    def _drop(self, session_id: str, sockets: list[WebSocket]) -> None:
        remaining = [ws for ws in self._subscribers.get(session_id, []) if ws not in sockets]
        if remaining:
            self._subscribers[session_id] = remaining
        else:
            self._subscribers.pop(session_id, None)

    def subscribers(self, session_id: str) -> list[WebSocket]:
        return list(self._subscribers.get(session_id, []))

    def has_listeners(self, session_id: str) -> bool:
        return session_id in self._subscribers

    async def broadcast(self, session_id: str, payload: dict[str, Any]) -> None:
        targets = self.subscribers(session_id)
        if not targets:
            return
        results = await asyncio.gather(*(ws.send_json(payload) for ws in targets), return_exceptions=True)
        failed = [ws for ws, result in zip(targets, results) if isinstance(result, Exception)]
        if failed:
            logger.debug("Dropping %d dead sockets for session %s", len(failed), session_id)
            async with self._lock:
                self._drop(session_id, failed)

    def publish(self, session_id: str, payload: dict[str, Any]) -> None:
        if not self.has_listeners(session_id):
            return
        task = asyncio.get_running_loop().create_task(self.broadcast(session_id, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)


hub = SessionWebSocketHub()
