"""Tests for the per-player timeline ledger."""

import pytest

from hourglass.core.ledger import Ledger
from hourglass.models.ledger import PLACEHOLDER_SUBTYPE


def _ledger() -> Ledger:
    ledger = Ledger(["A", "B"])
    ledger.record(
        "A", "rest", "recover", "Rested: +6", time_change=6, time_after=12, round_number=1
    )
    return ledger


class TestRecord:
    def test_record_appends(self):
        ledger = _ledger()
        events = ledger.events("A")
        assert len(events) == 1
        assert events[0].type == "rest"
        assert events[0].time_change == 6
        assert events[0].time_after == 12
        assert events[0].round == 1

    def test_players_start_empty(self):
        ledger = _ledger()
        assert ledger.events("B") == []
        assert "B" in ledger.to_dict()

    def test_events_is_a_copy(self):
        ledger = _ledger()
        ledger.events("A").clear()
        assert len(ledger) == 1

    def test_last(self):
        ledger = _ledger()
        ledger.record("A", "buy", "direct", "Bought", time_change=-3, time_after=9, round_number=2)
        assert ledger.last("A").subtype == "direct"
        assert ledger.last("B") is None

    def test_events_for_round(self):
        ledger = _ledger()
        ledger.record("B", "rest", "recover", "Rested", time_after=10, round_number=2)
        by_round = ledger.events_for_round(2)
        assert by_round["A"] == []
        assert len(by_round["B"]) == 1


class TestPlaceholders:
    def test_finalize_rewrites_in_place(self):
        ledger = _ledger()
        index = ledger.add_placeholder("A", "Preparing to bid", time_after=12, round_number=1)
        ledger.record("A", "bidding", "win", "Won", time_change=-5, time_after=7, round_number=1)
        ledger.finalize_placeholder("A", index, "bid_won", "Auction won")
        events = ledger.events("A")
        assert len(events) == 3
        assert events[index].subtype == "bid_won"
        assert events[index].type == "phase_tick"
        assert events[-1].subtype == "win"

    def test_placeholder_marker(self):
        ledger = _ledger()
        index = ledger.add_placeholder("B", "Preparing", time_after=10, round_number=1)
        event = ledger.events("B")[index]
        assert event.is_placeholder
        assert event.subtype == PLACEHOLDER_SUBTYPE

    def test_other_events_are_immutable(self):
        ledger = _ledger()
        with pytest.raises(ValueError):
            ledger.finalize_placeholder("A", 0, "bid_won", "nope")


class TestCopy:
    def test_copy_is_equal_and_independent(self):
        ledger = _ledger()
        clone = ledger.copy()
        assert clone == ledger
        clone.record("A", "rest", "recover", "again", time_after=12, round_number=2)
        assert clone != ledger

    def test_from_dict_keeps_empty_players(self):
        ledger = Ledger.from_dict(_ledger().to_dict())
        assert set(ledger.to_dict()) == {"A", "B"}
