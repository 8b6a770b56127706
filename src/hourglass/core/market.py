"""Market phase — choosing which pool cards are offered this round."""

from __future__ import annotations

import logging
import random

from hourglass.core.costs import can_afford
from hourglass.core.errors import InvalidActionError
from hourglass.core.game import GameState
from hourglass.core.skills import SkillContext, extra_market_slots
from hourglass.models.round import REST

logger = logging.getLogger(__name__)


def market_size(state: GameState) -> int:
    """Cards offered per round: one per player plus the extra slots, capped by the pool."""
    wanted = state.player_count + state.rules.market_extra_slots + extra_market_slots(state.players)
    return min(wanted, len(state.available))


def set_market(state: GameState, card_ids: list[str]) -> list[str]:
    """Use a hand-picked market. Order is kept; it decides auction order."""
    size = market_size(state)
    if len(card_ids) != size:
        raise InvalidActionError(f"Market must have exactly {size} cards, got {len(card_ids)}")
    if len(set(card_ids)) != len(card_ids):
        raise InvalidActionError(f"Market cards must be distinct: {card_ids}")
    missing = [cid for cid in card_ids if cid not in state.available]
    if missing:
        raise InvalidActionError(f"Cards not in the available pool: {missing}")
    state.market = list(card_ids)
    state.pending_actions.clear()
    logger.info("market_set round=%d cards=%s", state.round_number, ",".join(card_ids))
    return list(state.market)


def draw_market(state: GameState, rng: random.Random | None = None) -> list[str]:
    """Draw a random market from the pool."""
    rng = rng or random.Random()
    drawn = rng.sample(state.available, market_size(state))
    return set_market(state, drawn)


def clear_market(state: GameState) -> None:
    """Back out of the action phase so the market can be picked again."""
    state.market = []
    state.pending_actions.clear()


def action_options(state: GameState, player_id: str) -> list[str]:
    """Choices worth offering a player: affordable market cards, then rest.

    The engine accepts any market card; this only filters what a UI shows.
    """
    player = state.player(player_id)
    options = [
        cid
        for cid in state.market
        if (card := state.card(cid)) is not None
        and can_afford(player, card.price, SkillContext.DIRECT_BUY)
    ]
    options.append(REST)
    return options
