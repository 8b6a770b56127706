"""Game API — the controller surface a table-side UI drives.

One game lives in memory on ``app.state``. Every round-driving endpoint
returns a RoundProgress: either a prompt for the next human decision or the
round's final outcome.
"""

from __future__ import annotations

import random

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from hourglass.api.deps import CatalogDep, EngineDep, SettingsDep, translate_errors
from hourglass.core.game import new_game
from hourglass.core.market import market_size
from hourglass.core.round_engine import RoundEngine
from hourglass.models.ledger import TimelineEvent
from hourglass.models.round import Prompt, RoundPhase, RoundProgress

router = APIRouter(prefix="/api/game", tags=["game"])


# --- Request Models ---


class NewGameRequest(BaseModel):
    characters: dict[str, str]  # player id → character id


class MarketRequest(BaseModel):
    card_ids: list[str] | None = None  # None = random draw


class ActionRequest(BaseModel):
    player_id: str
    action: str | list[str]


class ResolveRequest(BaseModel):
    actions: dict[str, str | list[str] | None] | None = None  # None = use submitted actions


class BidRequest(BaseModel):
    amount: int
    player_id: str | None = None


class ConsolationChoiceRequest(BaseModel):
    card_id: str | None = None  # None = decline


class ConsolationDecisionRequest(BaseModel):
    purchase: bool


class AdjustRequest(BaseModel):
    delta: int


# --- Response Models ---


class PlayerView(BaseModel):
    player_id: str
    character_id: str
    character_name: str
    skill: str
    time: int
    owned: list[str] = Field(default_factory=list)
    pending_action: str | list[str] | None = None


class GameView(BaseModel):
    round_number: int
    phase: RoundPhase
    players: list[PlayerView]
    market: list[str]
    market_size: int
    available_count: int
    discarded_count: int
    game_over: bool
    prompt: Prompt | None = None


class OptionsResponse(BaseModel):
    player_id: str
    options: list[str]


class AdjustResponse(BaseModel):
    player_id: str
    applied: int
    time: int


def _view(engine: RoundEngine) -> GameView:
    state = engine.state
    players = []
    for p in state.players:
        pending = state.pending_actions.get(p.player_id)
        players.append(
            PlayerView(
                player_id=p.player_id,
                character_id=p.character.id,
                character_name=p.character.name,
                skill=p.character.skill_label,
                time=p.time,
                owned=list(state.owned.get(p.player_id, [])),
                pending_action=list(pending) if isinstance(pending, tuple) else pending,
            )
        )
    return GameView(
        round_number=state.round_number,
        phase=engine.phase,
        players=players,
        market=list(state.market),
        market_size=market_size(state),
        available_count=len(state.available),
        discarded_count=len(state.discarded),
        game_over=state.game_over,
        prompt=engine.prompt,
    )


# --- Setup & market ---


@router.post("", response_model=GameView)
async def create_game(
    body: NewGameRequest,
    request: Request,
    catalog: CatalogDep,
    settings: SettingsDep,
) -> GameView:
    """Seat players and start a fresh game, replacing any game in memory."""
    with translate_errors():
        state = new_game(
            catalog.cards,
            catalog.characters,
            body.characters,
            settings.game_rules(),
        )
    engine = RoundEngine(state)
    request.app.state.engine = engine
    request.app.state.rng = random.Random(settings.hourglass_seed)
    return _view(engine)


@router.get("", response_model=GameView)
async def get_game(engine: EngineDep) -> GameView:
    return _view(engine)


@router.post("/market", response_model=GameView)
async def choose_market(body: MarketRequest, request: Request, engine: EngineDep) -> GameView:
    """Set the round's market by hand, or draw it at random when no ids are given."""
    with translate_errors():
        if body.card_ids is None:
            engine.draw_market(request.app.state.rng)
        else:
            engine.set_market(body.card_ids)
    return _view(engine)


@router.delete("/market", response_model=GameView)
async def reset_market(engine: EngineDep) -> GameView:
    with translate_errors():
        engine.clear_market()
    return _view(engine)


@router.get("/options/{player_id}", response_model=OptionsResponse)
async def get_options(player_id: str, engine: EngineDep) -> OptionsResponse:
    with translate_errors():
        options = engine.action_options(player_id)
    return OptionsResponse(player_id=player_id, options=options)


@router.post("/actions", response_model=GameView)
async def submit_action(body: ActionRequest, engine: EngineDep) -> GameView:
    with translate_errors():
        engine.submit_action(body.player_id, body.action)
    return _view(engine)


@router.post("/players/{player_id}/adjust", response_model=AdjustResponse)
async def adjust_time(player_id: str, body: AdjustRequest, engine: EngineDep) -> AdjustResponse:
    """Manual correction of a player's time. Drops that player's pending action."""
    with translate_errors():
        applied = engine.adjust_player_time_manually(player_id, body.delta)
        time = engine.state.player(player_id).time
    return AdjustResponse(player_id=player_id, applied=applied, time=time)


@router.get("/ledger", response_model=dict[str, list[TimelineEvent]])
async def get_ledger(engine: EngineDep) -> dict[str, list[TimelineEvent]]:
    return engine.state.ledger.to_dict()


# --- Round resolution ---


@router.post("/round", response_model=RoundProgress)
async def resolve_round(body: ResolveRequest, engine: EngineDep) -> RoundProgress:
    with translate_errors():
        return engine.resolve_round(body.actions)


@router.post("/round/bid", response_model=RoundProgress)
async def submit_bid(body: BidRequest, engine: EngineDep) -> RoundProgress:
    with translate_errors():
        return engine.submit_bid(body.amount, body.player_id)


@router.post("/round/bid/back", response_model=RoundProgress)
async def step_back_bid(engine: EngineDep) -> RoundProgress:
    with translate_errors():
        return engine.step_back_bid()


@router.post("/round/cancel", response_model=RoundProgress)
async def cancel_round(engine: EngineDep) -> RoundProgress:
    """Cancel at the current prompt and roll the round back."""
    with translate_errors():
        return engine.cancel_round()


@router.post("/round/consolation/choice", response_model=RoundProgress)
async def consolation_choice(body: ConsolationChoiceRequest, engine: EngineDep) -> RoundProgress:
    with translate_errors():
        return engine.submit_consolation_choice(body.card_id)


@router.post("/round/consolation/decision", response_model=RoundProgress)
async def consolation_decision(
    body: ConsolationDecisionRequest, engine: EngineDep
) -> RoundProgress:
    with translate_errors():
        return engine.submit_consolation_purchase_decision(body.purchase)
