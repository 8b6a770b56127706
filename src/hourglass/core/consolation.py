"""Consolation draw — the fallback for an unresolved auction tie.

Each tied player, in seating order, may pick one card that was not offered this
round and then decide whether to buy it at the consolation price. A picked card
is spent immediately: bought or not, it never returns to the pool.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import StrEnum

from hourglass.core.costs import adjusted_cost
from hourglass.core.errors import InvalidActionError, SessionStateError
from hourglass.core.game import GameState
from hourglass.core.skills import SkillContext

logger = logging.getLogger(__name__)


class ConsolationState(StrEnum):
    AWAITING_CHOICE = "awaiting_choice"
    AWAITING_DECISION = "awaiting_decision"
    DONE = "done"
    CANCELLED = "cancelled"


class ConsolationDrawSession:
    """Pick-then-purchase loop over the tied players.

    The candidate pool is computed once, at construction: the available pool
    minus every card shown in this round's market.
    """

    def __init__(
        self,
        state: GameState,
        tied_players: Iterable[str],
        excluded: Iterable[str],
        *,
        source_card_id: str | None = None,
    ) -> None:
        self._state = state
        self.players = state.sort_players(list(tied_players))
        excluded_ids = set(excluded)
        self.candidates = [cid for cid in state.available if cid not in excluded_ids]
        self.source_card_id = source_card_id
        self.acquired: dict[str, str] = {}
        self._index = 0
        self._selected: str | None = None
        self._cancelled = False
        self._skip_players_without_candidates()

    @property
    def state(self) -> ConsolationState:
        if self._cancelled:
            return ConsolationState.CANCELLED
        if self._index >= len(self.players):
            return ConsolationState.DONE
        if self._selected is not None:
            return ConsolationState.AWAITING_DECISION
        return ConsolationState.AWAITING_CHOICE

    @property
    def current_player(self) -> str | None:
        if self.state in (ConsolationState.DONE, ConsolationState.CANCELLED):
            return None
        return self.players[self._index]

    @property
    def selected_card(self) -> str | None:
        return self._selected

    def price_for(self, player_id: str, card_id: str) -> int:
        card = self._state.card(card_id)
        if card is None:
            return 0
        player = self._state.player(player_id)
        return adjusted_cost(player, card.price, SkillContext.CONSOLATION_DRAW)

    def choose(self, card_id: str | None) -> ConsolationState:
        """The current player picks a candidate, or declines with ``None``."""
        if self.state != ConsolationState.AWAITING_CHOICE:
            raise SessionStateError(f"Consolation draw is {self.state}")
        player_id = self.players[self._index]

        if card_id is None:
            self._record(player_id, "declined_selection", "Declined consolation draw")
            logger.info("consolation_declined_selection player=%s", player_id)
            self._advance()
            return self.state

        if card_id not in self.candidates:
            raise InvalidActionError(f"Card {card_id!r} is not a consolation candidate")

        self.candidates.remove(card_id)
        self._state.remove_from_pool(card_id)

        if self._state.card(card_id) is None:
            logger.warning(
                "consolation_card_missing card=%s player=%s skipping_turn", card_id, player_id
            )
            self._state.discard(card_id)
            self._advance()
            return self.state

        self._selected = card_id
        return self.state

    def decide(self, purchase: bool) -> ConsolationState:
        """The current player confirms or declines buying the picked card."""
        card_id = self._selected
        card = self._state.card(card_id) if card_id is not None else None
        if self.state != ConsolationState.AWAITING_DECISION or card is None:
            raise SessionStateError(f"Consolation draw is {self.state}")
        player_id = self.players[self._index]
        player = self._state.player(player_id)
        cost = adjusted_cost(player, card.price, SkillContext.CONSOLATION_DRAW)

        if purchase and player.time >= cost:
            delta = self._state.set_time(player_id, player.time - cost)
            self._state.grant(player_id, card_id)
            self.acquired[player_id] = card_id
            self._record(
                player_id,
                "acquired",
                f"Consolation draw acquired: {card.name} (paid {cost}, price {card.price})",
                time_change=delta,
            )
            logger.info(
                "consolation_acquired player=%s card=%s paid=%d", player_id, card_id, cost
            )
        else:
            self._state.discard(card_id)
            if purchase:
                self._record(
                    player_id,
                    "insufficient_funds",
                    f"Consolation draw unaffordable: {card.name} (needs {cost}, has {player.time})",
                )
            else:
                self._record(
                    player_id,
                    "declined_purchase",
                    f"Consolation draw declined: {card.name} ({cost})",
                )
            logger.info(
                "consolation_not_bought player=%s card=%s purchase=%s", player_id, card_id, purchase
            )

        self._advance()
        return self.state

    def cancel(self) -> None:
        if self.state in (ConsolationState.DONE, ConsolationState.CANCELLED):
            raise SessionStateError(f"Consolation draw is already {self.state}")
        self._cancelled = True

    def _advance(self) -> None:
        self._selected = None
        self._index += 1
        self._skip_players_without_candidates()

    def _skip_players_without_candidates(self) -> None:
        while self._index < len(self.players) and not self.candidates:
            player_id = self.players[self._index]
            self._record(player_id, "no_cards_available", "No cards available for consolation draw")
            logger.info("consolation_pool_empty player=%s", player_id)
            self._index += 1

    def _record(self, player_id: str, subtype: str, detail: str, time_change: int = 0) -> None:
        self._state.ledger.record(
            player_id,
            "consolation",
            subtype,
            detail,
            time_change=time_change,
            time_after=self._state.player(player_id).time,
            round_number=self._state.round_number,
        )
