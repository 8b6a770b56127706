"""API tests — drive a whole round over HTTP against the in-memory game."""

import pytest
from httpx import ASGITransport, AsyncClient

from hourglass.config import Settings
from hourglass.core.seeding import Catalog
from hourglass.main import create_app

SEATS = {"A": "plain_a", "B": "plain_b", "C": "plain_c"}
MARKET = ["c1", "c2", "c3", "c4"]


@pytest.fixture
def app(settings: Settings, cards, characters):
    application = create_app(settings)
    application.state.catalog = Catalog(cards=cards, characters=characters)
    return application


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _start(client: AsyncClient, market: list[str] | None = MARKET) -> dict:
    r = await client.post("/api/game", json={"characters": SEATS})
    assert r.status_code == 200
    if market is not None:
        r = await client.post("/api/game/market", json={"card_ids": market})
        assert r.status_code == 200
    return r.json()


class TestSetup:
    async def test_health(self, client):
        r = await client.get("/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok", "env": "test"}

    async def test_no_game_yet(self, client):
        r = await client.get("/api/game")
        assert r.status_code == 404

    async def test_create_game(self, client):
        view = await _start(client, market=None)
        assert view["round_number"] == 1
        assert view["phase"] == "idle"
        assert [p["player_id"] for p in view["players"]] == ["A", "B", "C"]
        assert all(p["time"] == 10 for p in view["players"])
        assert view["market_size"] == 4
        assert view["available_count"] == 8
        assert not view["game_over"]

    async def test_bad_setup(self, client):
        r = await client.post("/api/game", json={"characters": {"A": "plain_a", "B": "plain_a"}})
        assert r.status_code == 422

    async def test_set_market(self, client):
        view = await _start(client)
        assert view["market"] == MARKET

    async def test_market_wrong_size(self, client):
        await _start(client, market=None)
        r = await client.post("/api/game/market", json={"card_ids": ["c1"]})
        assert r.status_code == 422

    async def test_random_market_is_seeded(self, client):
        await _start(client, market=None)
        first = (await client.post("/api/game/market", json={})).json()["market"]
        await _start(client, market=None)
        second = (await client.post("/api/game/market", json={})).json()["market"]
        assert len(first) == 4
        assert first == second

    async def test_clear_market(self, client):
        await _start(client)
        r = await client.delete("/api/game/market")
        assert r.json()["market"] == []

    async def test_options(self, client):
        await _start(client)
        r = await client.get("/api/game/options/A")
        assert r.json() == {"player_id": "A", "options": [*MARKET, "rest"]}

    async def test_options_unknown_player(self, client):
        await _start(client)
        r = await client.get("/api/game/options/Z")
        assert r.status_code == 422


class TestRound:
    async def test_direct_purchase_round(self, client):
        await _start(client)
        for pid, action in (("A", "c1"), ("B", "c2"), ("C", "rest")):
            r = await client.post("/api/game/actions", json={"player_id": pid, "action": action})
            assert r.status_code == 200
        assert r.json()["players"][2]["pending_action"] == "rest"

        r = await client.post("/api/game/round", json={})
        body = r.json()
        assert body["outcome"]["status"] == "committed"
        assert body["outcome"]["acquired"] == {"A": ["c1"], "B": ["c2"]}

        view = (await client.get("/api/game")).json()
        assert view["round_number"] == 2
        assert view["players"][0]["owned"] == ["c1"]
        assert [p["time"] for p in view["players"]] == [7, 6, 12]

    async def test_auction_over_http(self, client):
        await _start(client)
        actions = {"A": "c1", "B": "c1", "C": "rest"}
        r = await client.post("/api/game/round", json={"actions": actions})
        body = r.json()
        assert body["phase"] == "awaiting_bid"
        assert body["prompt"]["player_id"] == "A"
        assert body["prompt"]["min_bid"] == 3

        r = await client.post("/api/game/round/bid", json={"amount": 5, "player_id": "A"})
        assert r.json()["prompt"]["player_id"] == "B"
        r = await client.post("/api/game/round/bid/back")
        assert r.json()["prompt"]["player_id"] == "A"
        await client.post("/api/game/round/bid", json={"amount": 5})
        r = await client.post("/api/game/round/bid", json={"amount": 5})
        body = r.json()
        assert body["phase"] == "awaiting_consolation_choice"
        assert body["prompt"]["candidates"] == ["c5", "c6", "c7", "c8"]

        r = await client.post("/api/game/round/consolation/choice", json={"card_id": "c6"})
        assert r.json()["prompt"]["price"] == 1
        r = await client.post("/api/game/round/consolation/decision", json={"purchase": True})
        assert r.json()["prompt"]["player_id"] == "B"
        r = await client.post("/api/game/round/consolation/choice", json={})
        assert r.json()["outcome"]["acquired"] == {"A": ["c6"]}

        ledger = (await client.get("/api/game/ledger")).json()
        assert [e["subtype"] for e in ledger["A"]] == ["bid_tied", "tie_unresolved", "acquired"]

    async def test_cancel_rolls_back(self, client):
        await _start(client)
        actions = {"A": "c1", "B": "c1", "C": "rest"}
        await client.post("/api/game/round", json={"actions": actions})
        await client.post("/api/game/round/bid", json={"amount": 4})
        r = await client.post("/api/game/round/cancel")
        assert r.json()["outcome"]["status"] == "aborted"
        view = (await client.get("/api/game")).json()
        assert view["phase"] == "idle"
        assert [p["time"] for p in view["players"]] == [10, 10, 10]
        ledger = (await client.get("/api/game/ledger")).json()
        assert ledger == {"A": [], "B": [], "C": []}

    async def test_unknown_card_is_404(self, client):
        await _start(client)
        r = await client.post("/api/game/round", json={"actions": {"A": "nope"}})
        assert r.status_code == 404

    async def test_bid_when_idle_is_409(self, client):
        await _start(client)
        r = await client.post("/api/game/round/bid", json={"amount": 3})
        assert r.status_code == 409

    async def test_negative_bid_is_422(self, client):
        await _start(client)
        await client.post("/api/game/round", json={"actions": {"A": "c1", "B": "c1"}})
        r = await client.post("/api/game/round/bid", json={"amount": -1})
        assert r.status_code == 422

    async def test_market_locked_mid_round(self, client):
        await _start(client)
        await client.post("/api/game/round", json={"actions": {"A": "c1", "B": "c1"}})
        r = await client.delete("/api/game/market")
        assert r.status_code == 409


class TestAdjust:
    async def test_manual_adjust(self, client):
        await _start(client)
        r = await client.post("/api/game/players/A/adjust", json={"delta": 5})
        assert r.json() == {"player_id": "A", "applied": 2, "time": 12}
        ledger = (await client.get("/api/game/ledger")).json()
        assert ledger["A"][0]["type"] == "manual_adjust"
        assert ledger["A"][0]["time_change"] == 2

    async def test_adjust_unknown_player(self, client):
        await _start(client)
        r = await client.post("/api/game/players/Z/adjust", json={"delta": 1})
        assert r.status_code == 422
