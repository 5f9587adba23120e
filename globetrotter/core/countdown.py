from __future__ import annotations

import asyncio
from collections.abc import Callable


class Countdown:
    """Owned tick source for one round.

    Counts `remaining` down by one per tick. `start()` drives ticks from an
    asyncio task every `interval` seconds; `tick()` can also be called directly.
    Once `cancel()` has been called no further tick has any effect, and the
    driving task is cancelled rather than left to run out.
    """

    def __init__(
        self,
        *,
        seconds: int,
        interval: float = 1.0,
        on_tick: Callable[[int], None] | None = None,
        on_expire: Callable[[], None] | None = None,
    ) -> None:
        if seconds <= 0:
            raise ValueError("seconds must be > 0")
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self.remaining = seconds
        self.interval = interval
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._task: asyncio.Task[None] | None = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._cancelled:
            raise RuntimeError("Countdown was cancelled")
        if self._task is not None:
            raise RuntimeError("Countdown already started")
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while not self._cancelled and self.remaining > 0:
            await asyncio.sleep(self.interval)
            self.tick()

    def tick(self) -> None:
        if self._cancelled or self.remaining <= 0:
            return
        self.remaining -= 1
        if self._on_tick is not None:
            self._on_tick(self.remaining)
        if self.remaining == 0 and not self._cancelled and self._on_expire is not None:
            self._on_expire()

    def cancel(self) -> None:
        self._cancelled = True
        task = self._task
        if task is None or task.done():
            return
        # The expiry callback runs inside the task itself; it ends on its own.
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()
