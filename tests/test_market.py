"""Tests for market sizing, selection and per-player options."""

import random

import pytest

from hourglass.core.errors import InvalidActionError
from hourglass.core.market import action_options, clear_market, draw_market, market_size, set_market
from hourglass.models.round import REST


class TestMarketSize:
    def test_players_plus_one(self, state):
        assert market_size(state) == 4

    def test_extra_slot_skill(self, make_game):
        state = make_game({"A": "merchant", "B": "plain_b", "C": "plain_c"})
        assert market_size(state) == 5

    def test_capped_by_pool(self, make_game):
        state = make_game(pool=["c1", "c2"])
        assert market_size(state) == 2

    def test_empty_pool(self, make_game):
        state = make_game(pool=[])
        assert market_size(state) == 0


class TestSetMarket:
    def test_keeps_order(self, state):
        assert set_market(state, ["c3", "c1", "c2", "c4"]) == ["c3", "c1", "c2", "c4"]
        assert state.market == ["c3", "c1", "c2", "c4"]

    def test_wrong_size(self, state):
        with pytest.raises(InvalidActionError):
            set_market(state, ["c1", "c2"])

    def test_duplicates(self, state):
        with pytest.raises(InvalidActionError):
            set_market(state, ["c1", "c1", "c2", "c3"])

    def test_not_in_pool(self, make_game):
        state = make_game(pool=["c1", "c2", "c3", "c4", "c5"])
        with pytest.raises(InvalidActionError):
            set_market(state, ["c1", "c2", "c3", "c8"])

    def test_resets_pending_actions(self, state):
        state.pending_actions["A"] = REST
        set_market(state, ["c1", "c2", "c3", "c4"])
        assert state.pending_actions == {}


class TestDrawAndClear:
    def test_seeded_draw_is_deterministic(self, make_game):
        first = draw_market(make_game(), random.Random(3))
        second = draw_market(make_game(), random.Random(3))
        assert first == second
        assert len(first) == 4
        assert len(set(first)) == 4

    def test_clear(self, state):
        set_market(state, ["c1", "c2", "c3", "c4"])
        state.pending_actions["A"] = "c1"
        clear_market(state)
        assert state.market == []
        assert state.pending_actions == {}


class TestActionOptions:
    def test_affordable_cards_then_rest(self, make_game):
        state = make_game(times={"A": 3})
        set_market(state, ["c1", "c2", "c3", "c4"])
        assert action_options(state, "A") == ["c1", "c4", REST]

    def test_cost_reduction_widens_options(self, make_game):
        state = make_game({"A": "tinkerer", "B": "plain_b", "C": "plain_c"}, times={"A": 3})
        set_market(state, ["c1", "c2", "c3", "c4"])
        assert action_options(state, "A") == ["c1", "c2", "c4", REST]

    def test_broke_player_can_only_rest(self, make_game):
        state = make_game(times={"A": 0})
        set_market(state, ["c1", "c2", "c3", "c4"])
        assert action_options(state, "A") == [REST]
