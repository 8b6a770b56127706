"""Timeline ledger models — the per-player event log consumed by renderers."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

TimelineEventType = Literal[
    "rest",
    "buy",
    "buy_fail",
    "bidding",
    "phase_tick",
    "consolation",
    "skill",
    "manual_adjust",
]

PLACEHOLDER_SUBTYPE = "pre_bidding_placeholder"


class TimelineEvent(BaseModel):
    """One entry in a player's timeline.

    ``time_change`` is the signed delta actually applied (after clamping),
    ``time_after`` the resulting balance.
    """

    model_config = ConfigDict(frozen=True)

    type: TimelineEventType
    subtype: str
    detail: str
    time_change: int = 0
    time_after: int
    round: int

    @property
    def is_placeholder(self) -> bool:
        return self.type == "phase_tick" and self.subtype == PLACEHOLDER_SUBTYPE
