"""Sequential single-card auction.

Bidders are prompted one at a time in a fixed order. Each bid is a single
sealed number; 0 passes. Bids are not escrowed: nothing is deducted until the
tie breaker settles the card.
"""

from __future__ import annotations

import logging
from enum import StrEnum

from hourglass.core.errors import InvalidBidError, SessionStateError
from hourglass.models.cards import Card
from hourglass.models.round import Bid, BiddingOutcome

logger = logging.getLogger(__name__)


class AuctionState(StrEnum):
    AWAITING_BID = "awaiting_bid"
    ALL_COLLECTED = "all_collected"
    CANCELLED = "cancelled"


class AuctionSession:
    """Bidding state machine for one contested card.

    States: AWAITING_BID(i) for i in 0..n-1, ALL_COLLECTED, CANCELLED.
    ``step`` is i, the index of the bidder currently being asked.
    """

    def __init__(self, card: Card, bidders: list[str]) -> None:
        if not bidders:
            raise ValueError("An auction needs at least one bidder")
        if len(set(bidders)) != len(bidders):
            raise ValueError(f"Duplicate bidders: {bidders}")
        self.card = card
        self.bidders = list(bidders)
        self._bids: list[Bid] = []
        self._cancelled = False

    @property
    def card_id(self) -> str:
        return self.card.id

    @property
    def step(self) -> int:
        return len(self._bids)

    @property
    def bids(self) -> list[Bid]:
        return list(self._bids)

    @property
    def state(self) -> AuctionState:
        if self._cancelled:
            return AuctionState.CANCELLED
        if len(self._bids) == len(self.bidders):
            return AuctionState.ALL_COLLECTED
        return AuctionState.AWAITING_BID

    @property
    def current_bidder(self) -> str | None:
        if self.state != AuctionState.AWAITING_BID:
            return None
        return self.bidders[self.step]

    def submit_bid(self, amount: int, player_id: str | None = None) -> AuctionState:
        """Record the current bidder's amount and advance.

        Bounds beyond ``amount >= 0`` are the caller's concern.
        """
        if self.state != AuctionState.AWAITING_BID:
            raise SessionStateError(f"Auction for {self.card_id} is {self.state}")
        bidder = self.bidders[self.step]
        if player_id is not None and player_id != bidder:
            raise SessionStateError(f"Waiting for {bidder}, not {player_id}")
        if amount < 0:
            raise InvalidBidError(f"Bid must be >= 0, got {amount}")
        self._bids.append(Bid(player_id=bidder, card_id=self.card_id, amount=amount))
        logger.debug("bid_submitted card=%s player=%s amount=%d", self.card_id, bidder, amount)
        return self.state

    def step_back(self) -> str:
        """Discard the previous bidder's bid and ask them again. Returns that bidder."""
        if self.state != AuctionState.AWAITING_BID:
            raise SessionStateError(f"Auction for {self.card_id} is {self.state}")
        if self.step == 0:
            raise SessionStateError("No earlier bidder to return to")
        removed = self._bids.pop()
        return removed.player_id

    def cancel(self) -> None:
        if self.state != AuctionState.AWAITING_BID:
            raise SessionStateError(f"Auction for {self.card_id} is already {self.state}")
        self._cancelled = True
        logger.info("auction_cancelled card=%s step=%d", self.card_id, self.step)

    def outcome(self) -> BiddingOutcome:
        """Summarize the collected bids. Only valid once every bidder has answered."""
        if self.state != AuctionState.ALL_COLLECTED:
            raise SessionStateError(f"Auction for {self.card_id} is {self.state}")
        return summarize_bids(self.card_id, self._bids)


def summarize_bids(card_id: str, bids: list[Bid]) -> BiddingOutcome:
    """Find the highest active bid and everyone who placed it.

    Pure function of the bid sequence.
    """
    active = [b for b in bids if b.amount > 0]
    if not active:
        return BiddingOutcome(card_id=card_id, bids=list(bids), all_passed=True)
    max_bid = max(b.amount for b in active)
    winners = [b.player_id for b in active if b.amount == max_bid]
    return BiddingOutcome(
        card_id=card_id,
        bids=list(bids),
        max_bid=max_bid,
        potential_winners=winners,
    )
