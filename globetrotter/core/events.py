from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

EventType = Literal[
    "ROUND_STARTED",
    "TICK",
    "ROUND_RESOLVED",
]


@dataclass(frozen=True, slots=True)
class RoundEvent:
    type: EventType
    round_no: int
    payload: dict[str, Any]
    ts: datetime

    @staticmethod
    def now(*, type: EventType, round_no: int, payload: dict[str, Any]) -> "RoundEvent":
        return RoundEvent(type=type, round_no=round_no, payload=payload, ts=datetime.now(timezone.utc))

    def as_message(self, *, session_id: str) -> dict[str, Any]:
        return {
            "type": self.type.lower(),
            "session_id": session_id,
            "round_no": self.round_no,
            "ts": self.ts.isoformat(),
            **self.payload,
        }
