"""GameRules — the numeric constants the round engine runs against."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GameRules(BaseModel):
    """Tunable game parameters.

    Defaults match the printed rulebook: a 12-unit time track, rest restores 6,
    and the market shows one card more than there are players.
    """

    model_config = ConfigDict(frozen=True)

    max_time: int = Field(default=12, ge=1, le=99)
    rest_recovery: int = Field(default=6, ge=0, le=99)
    market_extra_slots: int = Field(default=1, ge=0, le=5)
    player_ids: tuple[str, ...] = ("A", "B", "C")

    def player_order(self, player_id: str) -> int:
        """Position of a player in the fixed seating order. Unknown ids sort last."""
        try:
            return self.player_ids.index(player_id)
        except ValueError:
            return len(self.player_ids)


DEFAULT_RULES = GameRules()
