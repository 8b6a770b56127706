"""Tests for the sequential auction session and bid summarizing."""

import pytest

from hourglass.core.auction import AuctionSession, AuctionState, summarize_bids
from hourglass.core.errors import InvalidBidError, SessionStateError
from hourglass.models.cards import Card
from hourglass.models.round import Bid

CARD = Card(id="c1", name="Card c1", price=3)


def _bids(*amounts: int) -> list[Bid]:
    players = "ABC"
    return [Bid(player_id=players[i], card_id="c1", amount=a) for i, a in enumerate(amounts)]


class TestAuctionSession:
    def test_prompts_in_order(self):
        session = AuctionSession(CARD, ["A", "B", "C"])
        assert session.current_bidder == "A"
        session.submit_bid(4)
        assert session.current_bidder == "B"
        assert session.step == 1

    def test_all_collected(self):
        session = AuctionSession(CARD, ["A", "B"])
        assert session.submit_bid(4) == AuctionState.AWAITING_BID
        assert session.submit_bid(0) == AuctionState.ALL_COLLECTED
        assert session.current_bidder is None

    def test_wrong_player_rejected(self):
        session = AuctionSession(CARD, ["A", "B"])
        with pytest.raises(SessionStateError):
            session.submit_bid(4, player_id="B")

    def test_negative_bid_rejected(self):
        session = AuctionSession(CARD, ["A", "B"])
        with pytest.raises(InvalidBidError):
            session.submit_bid(-1)
        assert session.step == 0

    def test_step_back_reprompts_previous(self):
        session = AuctionSession(CARD, ["A", "B", "C"])
        session.submit_bid(4)
        session.submit_bid(5)
        assert session.step_back() == "B"
        assert session.current_bidder == "B"
        assert [b.amount for b in session.bids] == [4]

    def test_step_back_at_first_bidder(self):
        session = AuctionSession(CARD, ["A", "B"])
        with pytest.raises(SessionStateError):
            session.step_back()

    def test_cancel(self):
        session = AuctionSession(CARD, ["A", "B"])
        session.submit_bid(4)
        session.cancel()
        assert session.state == AuctionState.CANCELLED
        with pytest.raises(SessionStateError):
            session.submit_bid(3)

    def test_outcome_requires_all_bids(self):
        session = AuctionSession(CARD, ["A", "B"])
        session.submit_bid(4)
        with pytest.raises(SessionStateError):
            session.outcome()

    def test_duplicate_bidders_rejected(self):
        with pytest.raises(ValueError):
            AuctionSession(CARD, ["A", "A"])

    def test_empty_bidders_rejected(self):
        with pytest.raises(ValueError):
            AuctionSession(CARD, [])


class TestSummarizeBids:
    def test_single_winner(self):
        outcome = summarize_bids("c1", _bids(2, 5, 3))
        assert not outcome.all_passed
        assert outcome.max_bid == 5
        assert outcome.potential_winners == ["B"]

    def test_tie(self):
        outcome = summarize_bids("c1", _bids(2, 5, 5))
        assert outcome.potential_winners == ["B", "C"]

    def test_all_passed(self):
        outcome = summarize_bids("c1", _bids(0, 0))
        assert outcome.all_passed
        assert outcome.potential_winners == []
        assert outcome.max_bid == 0

    def test_zero_bids_are_not_active(self):
        outcome = summarize_bids("c1", _bids(0, 1))
        assert outcome.potential_winners == ["B"]
