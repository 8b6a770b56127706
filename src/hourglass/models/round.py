"""Round resolution models — bids, prompts, and outcomes.

These are the values exchanged between the RoundEngine and whatever drives it
(a UI controller, the HTTP API, or a test).
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

REST = "rest"

# A player's choice for the round: REST, a single card id, or (two-choice
# skill only) an ordered tuple of at most two card ids.
Action = str | tuple[str, ...]


class Bid(BaseModel):
    """A single bidder's offer for the card under auction. 0 means pass."""

    player_id: str
    card_id: str
    amount: int = Field(ge=0)


class BiddingOutcome(BaseModel):
    """Result of collecting every bid for one card."""

    card_id: str
    bids: list[Bid]
    all_passed: bool = False
    max_bid: int = 0
    potential_winners: list[str] = Field(default_factory=list)


class TieBreakResult(BaseModel):
    """How a contested card was settled after the bidding closed."""

    card_id: str
    status: Literal["won", "won_by_skill", "unresolved", "all_passed", "unaffordable"]
    winner: str | None = None
    paid: int = 0
    tied_players: list[str] = Field(default_factory=list)


class RoundPhase(StrEnum):
    """Where the round engine is waiting."""

    IDLE = "idle"
    AWAITING_BID = "awaiting_bid"
    AWAITING_CONSOLATION_CHOICE = "awaiting_consolation_choice"
    AWAITING_CONSOLATION_DECISION = "awaiting_consolation_decision"


class Prompt(BaseModel):
    """The human decision the engine is paused on."""

    kind: Literal["bid", "consolation_choice", "consolation_decision"]
    player_id: str
    card_id: str | None = None
    min_bid: int = 0
    max_bid: int = 0
    step: int = 0
    bidders: list[str] = Field(default_factory=list)
    can_step_back: bool = False
    candidates: list[str] = Field(default_factory=list)
    price: int = 0


class RoundOutcome(BaseModel):
    """Terminal result of a resolve attempt."""

    status: Literal["committed", "aborted"]
    round_number: int
    next_round: int
    game_over: bool = False
    acquired: dict[str, list[str]] = Field(default_factory=dict)
    discarded: list[str] = Field(default_factory=list)


class RoundProgress(BaseModel):
    """Returned by every engine call that drives a round forward."""

    phase: RoundPhase
    prompt: Prompt | None = None
    outcome: RoundOutcome | None = None

    @property
    def finished(self) -> bool:
        return self.outcome is not None
