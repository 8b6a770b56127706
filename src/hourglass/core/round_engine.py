"""Round resolution engine.

Takes every player's action for the round, buys uncontested cards outright,
auctions contested ones in market order, breaks ties, runs consolation draws,
and either commits the round or rolls it back to the pre-round snapshot.

The engine never blocks. Whenever a human decision is needed it returns a
RoundProgress carrying a Prompt and waits to be re-entered through one of the
``submit_*`` / ``step_back_bid`` / ``cancel_*`` methods.

Usage:
    engine = RoundEngine(state)
    engine.set_market(["c1", "c2", "c3", "c4"])
    progress = engine.resolve_round({"A": "c1", "B": "c1", "C": "rest"})
    while progress.prompt is not None:
        progress = engine.submit_bid(...)
"""

from __future__ import annotations

import logging
import random
from collections.abc import Mapping

from hourglass.core.actions import (
    ActionDraft,
    DraftState,
    chosen_cards,
    new_draft,
    normalize_action,
)
from hourglass.core.auction import AuctionSession, AuctionState
from hourglass.core.consolation import ConsolationDrawSession, ConsolationState
from hourglass.core.costs import adjusted_cost
from hourglass.core.errors import InvalidActionError, SessionStateError, UnknownCardError
from hourglass.core.game import GameState
from hourglass.core.market import action_options, clear_market, draw_market, set_market
from hourglass.core.skills import SkillContext, rest_recovery, round_start_bonus
from hourglass.core.snapshot import SnapshotManager
from hourglass.core.tiebreak import break_tie
from hourglass.models.cards import Card
from hourglass.models.round import (
    REST,
    Action,
    Prompt,
    RoundOutcome,
    RoundPhase,
    RoundProgress,
    TieBreakResult,
)

logger = logging.getLogger(__name__)

_WON = ("won", "won_by_skill")


class RoundEngine:
    """Owns the round lifecycle for one game session.

    Exactly one resolution is in flight at a time. While one is, market and
    action changes are refused.
    """

    def __init__(self, state: GameState) -> None:
        self.state = state
        self.snapshots = SnapshotManager()
        self.last_outcome: RoundOutcome | None = None
        self._phase = RoundPhase.IDLE
        self._in_progress = False
        self._drafts: dict[str, ActionDraft] = {}
        self._reset_resolution()

    def _reset_resolution(self) -> None:
        self._queue: list[str] = []
        self._bidders: dict[str, list[str]] = {}
        self._round_market: list[str] = []
        self._resolving_round = 0
        self._auction: AuctionSession | None = None
        self._consolation: ConsolationDrawSession | None = None
        self._placeholders: dict[str, int] = {}
        self._acquired: dict[str, list[str]] = {}

    # --- Introspection ---

    @property
    def phase(self) -> RoundPhase:
        return self._phase

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    @property
    def auction(self) -> AuctionSession | None:
        return self._auction

    @property
    def consolation(self) -> ConsolationDrawSession | None:
        return self._consolation

    @property
    def prompt(self) -> Prompt | None:
        if self._phase == RoundPhase.AWAITING_BID and self._auction is not None:
            auction = self._auction
            bidder = auction.current_bidder
            if bidder is None:
                return None
            return Prompt(
                kind="bid",
                player_id=bidder,
                card_id=auction.card_id,
                min_bid=auction.card.price,
                max_bid=self.state.player(bidder).time,
                step=auction.step,
                bidders=list(auction.bidders),
                can_step_back=auction.step > 0,
            )
        if self._consolation is not None:
            session = self._consolation
            player_id = session.current_player
            if player_id is None:
                return None
            if self._phase == RoundPhase.AWAITING_CONSOLATION_CHOICE:
                return Prompt(
                    kind="consolation_choice",
                    player_id=player_id,
                    card_id=session.source_card_id,
                    candidates=list(session.candidates),
                )
            selected = session.selected_card
            if self._phase == RoundPhase.AWAITING_CONSOLATION_DECISION and selected is not None:
                return Prompt(
                    kind="consolation_decision",
                    player_id=player_id,
                    card_id=selected,
                    price=session.price_for(player_id, selected),
                )
        return None

    def progress(self) -> RoundProgress:
        return RoundProgress(phase=self._phase, prompt=self.prompt)

    # --- Market & action collection ---

    def _require_idle(self) -> None:
        if self._in_progress:
            raise SessionStateError("A round is being resolved")

    def set_market(self, card_ids: list[str]) -> list[str]:
        self._require_idle()
        self._drafts.clear()
        return set_market(self.state, card_ids)

    def draw_market(self, rng: random.Random | None = None) -> list[str]:
        self._require_idle()
        self._drafts.clear()
        return draw_market(self.state, rng)

    def clear_market(self) -> None:
        self._require_idle()
        self._drafts.clear()
        clear_market(self.state)

    def action_options(self, player_id: str) -> list[str]:
        return action_options(self.state, player_id)

    def submit_action(self, player_id: str, action: Action | list[str]) -> Action:
        """Record a player's complete choice for the current round."""
        self._require_idle()
        normalized = normalize_action(self.state, player_id, action)
        self.state.pending_actions[player_id] = normalized
        self._drafts.pop(player_id, None)
        return normalized

    def select_action(self, player_id: str, choice: str) -> DraftState:
        """Click-style selection: toggles a choice in the player's draft."""
        self._require_idle()
        draft = self._drafts.get(player_id)
        if draft is None:
            draft = self._drafts[player_id] = new_draft(self.state, player_id)
        draft.choose(choice)
        self._sync_draft(draft)
        return draft.state

    def request_second_choice(self, player_id: str) -> DraftState:
        self._require_idle()
        draft = self._draft(player_id)
        draft.request_second()
        self._sync_draft(draft)
        return draft.state

    def finish_selection(self, player_id: str) -> DraftState:
        self._require_idle()
        draft = self._draft(player_id)
        draft.finish()
        self._sync_draft(draft)
        return draft.state

    def withdraw_action(self, player_id: str) -> None:
        self._require_idle()
        self.state.player(player_id)
        self.state.pending_actions.pop(player_id, None)
        self._drafts.pop(player_id, None)

    def _draft(self, player_id: str) -> ActionDraft:
        draft = self._drafts.get(player_id)
        if draft is None:
            raise InvalidActionError(f"Player {player_id} has not started choosing")
        return draft

    def _sync_draft(self, draft: ActionDraft) -> None:
        action = draft.action
        if action is None:
            self.state.pending_actions.pop(draft.player_id, None)
        else:
            self.state.pending_actions[draft.player_id] = action

    @property
    def all_actions_submitted(self) -> bool:
        return all(pid in self.state.pending_actions for pid in self.state.player_ids)

    def adjust_player_time_manually(self, player_id: str, delta: int) -> int:
        """Out-of-band correction. Returns the change actually applied after clamping.

        The player's pending action is dropped and must be chosen again.
        """
        self._require_idle()
        player = self.state.player(player_id)
        applied = self.state.set_time(player_id, player.time + delta)
        if applied != 0:
            self.state.ledger.record(
                player_id,
                "manual_adjust",
                "plus" if applied > 0 else "minus",
                f"Manual {'add' if applied > 0 else 'remove'}: {abs(applied)}",
                time_change=applied,
                time_after=player.time,
                round_number=self.state.round_number,
            )
            self.state.pending_actions.pop(player_id, None)
            self._drafts.pop(player_id, None)
            logger.info(
                "manual_adjust player=%s requested=%d applied=%d time=%d",
                player_id,
                delta,
                applied,
                player.time,
            )
        else:
            logger.info("manual_adjust_noop player=%s requested=%d at_bound", player_id, delta)
        return applied

    # --- Resolution ---

    def resolve_round(
        self, actions: Mapping[str, Action | list[str] | None] | None = None
    ) -> RoundProgress:
        """Resolve the round from ``actions`` (default: the pending actions).

        Raises UnknownCardError before touching any state if an action names
        a card that is not in the registry.
        """
        self._require_idle()
        state = self.state
        if state.game_over:
            raise SessionStateError("The game is over")

        source = state.pending_actions if actions is None else actions
        normalized: dict[str, Action] = {}
        for pid in state.player_ids:
            if source.get(pid) is not None:
                normalized[pid] = normalize_action(state, pid, source[pid])
        unknown_players = set(source) - set(state.player_ids)
        if unknown_players:
            raise InvalidActionError(f"Unknown players: {sorted(unknown_players)}")

        for pid, action in normalized.items():
            for cid in chosen_cards(action):
                if state.card(cid) is None:
                    logger.error("unknown_card player=%s card=%s", pid, cid)
                    raise UnknownCardError(cid, pid)
                if cid not in state.available:
                    raise InvalidActionError(f"Card {cid!r} is no longer available")
                if cid not in state.market:
                    raise InvalidActionError(f"Card {cid!r} is not offered in this round's market")

        logger.info(
            "round_resolve_start round=%d market=%s actions=%s",
            state.round_number,
            ",".join(state.market),
            normalized,
        )
        self._apply_round_start_bonus()
        self.snapshots.take(state)
        self._in_progress = True
        self._resolving_round = state.round_number
        self._round_market = list(state.market)

        for pid, action in normalized.items():
            if action == REST:
                self._rest(pid)

        for pid in state.player_ids:
            for cid in chosen_cards(normalized.get(pid)):
                self._bidders.setdefault(cid, []).append(pid)

        market_pos = {cid: i for i, cid in enumerate(self._round_market)}
        self._queue = sorted(
            self._bidders, key=lambda cid: market_pos.get(cid, len(self._round_market))
        )
        return self._advance()

    def submit_bid(self, amount: int, player_id: str | None = None) -> RoundProgress:
        auction = self._require_auction()
        if auction.submit_bid(amount, player_id) == AuctionState.ALL_COLLECTED:
            return self._close_auction()
        return self.progress()

    def step_back_bid(self) -> RoundProgress:
        self._require_auction().step_back()
        return self.progress()

    def cancel_auction(self) -> RoundProgress:
        """Cancel the running auction and roll the whole round back."""
        self._require_auction().cancel()
        return self._abort()

    def cancel_round(self) -> RoundProgress:
        """Cancel at any suspension point and roll the whole round back."""
        if not self._in_progress:
            raise SessionStateError("No round is being resolved")
        if self._auction is not None:
            self._auction.cancel()
        if self._consolation is not None:
            self._consolation.cancel()
        return self._abort()

    def submit_consolation_choice(self, card_id: str | None) -> RoundProgress:
        session = self._require_consolation(RoundPhase.AWAITING_CONSOLATION_CHOICE)
        session.choose(card_id)
        return self._after_consolation_step()

    def submit_consolation_purchase_decision(self, purchase: bool) -> RoundProgress:
        session = self._require_consolation(RoundPhase.AWAITING_CONSOLATION_DECISION)
        session.decide(purchase)
        return self._after_consolation_step()

    # --- Internals ---

    def _require_auction(self) -> AuctionSession:
        if self._phase != RoundPhase.AWAITING_BID or self._auction is None:
            raise SessionStateError(f"No auction is waiting for input (phase={self._phase})")
        return self._auction

    def _require_consolation(self, phase: RoundPhase) -> ConsolationDrawSession:
        if self._phase != phase or self._consolation is None:
            raise SessionStateError(f"Expected phase {phase}, engine is in {self._phase}")
        return self._consolation

    def _apply_round_start_bonus(self) -> None:
        state = self.state
        if state.bonus_paid_round == state.round_number:
            return
        state.bonus_paid_round = state.round_number
        bonus = round_start_bonus(state.players)
        if bonus <= 0:
            return
        for player in state.players:
            applied = state.set_time(player.player_id, player.time + bonus)
            state.ledger.record(
                player.player_id,
                "skill",
                "round_start_bonus",
                f"Round start bonus: +{bonus}",
                time_change=applied,
                time_after=player.time,
                round_number=state.round_number,
            )
        logger.info("round_start_bonus round=%d amount=%d", state.round_number, bonus)

    def _rest(self, player_id: str) -> None:
        state = self.state
        player = state.player(player_id)
        recovery = rest_recovery(player, state.rules)
        applied = state.set_time(player_id, player.time + recovery)
        state.ledger.record(
            player_id,
            "rest",
            "recover",
            f"Rested: +{applied}",
            time_change=applied,
            time_after=player.time,
            round_number=state.round_number,
        )

    def _advance(self) -> RoundProgress:
        """Work through queued cards until one needs human input, then commit."""
        while self._queue:
            card_id = self._queue.pop(0)
            card = self.state.card(card_id)
            if card is None:
                raise UnknownCardError(card_id)
            bidders = self._bidders[card_id]
            if len(bidders) == 1:
                self._direct_purchase(bidders[0], card)
                continue
            self._open_auction(card, bidders)
            return self.progress()
        return self._commit()

    def _direct_purchase(self, player_id: str, card: Card) -> None:
        state = self.state
        player = state.player(player_id)
        cost = adjusted_cost(player, card.price, SkillContext.DIRECT_BUY)
        if player.time >= cost:
            applied = state.set_time(player_id, player.time - cost)
            state.remove_from_pool(card.id)
            state.grant(player_id, card.id)
            self._acquired.setdefault(player_id, []).append(card.id)
            state.ledger.record(
                player_id,
                "buy",
                "direct",
                f"Bought: {card.name} (paid {cost}, price {card.price})",
                time_change=applied,
                time_after=player.time,
                round_number=state.round_number,
            )
            logger.info("direct_buy player=%s card=%s paid=%d", player_id, card.id, cost)
        else:
            state.ledger.record(
                player_id,
                "buy_fail",
                "insufficient_funds_direct",
                f"Purchase failed: {card.name} (needs {cost}, has {player.time})",
                time_after=player.time,
                round_number=state.round_number,
            )
            logger.info(
                "direct_buy_failed player=%s card=%s cost=%d time=%d",
                player_id,
                card.id,
                cost,
                player.time,
            )

    def _open_auction(self, card: Card, bidders: list[str]) -> None:
        state = self.state
        self._placeholders = {
            pid: state.ledger.add_placeholder(
                pid,
                f"Preparing to bid: {card.name}",
                time_after=state.player(pid).time,
                round_number=state.round_number,
            )
            for pid in bidders
        }
        self._auction = AuctionSession(card, bidders)
        self._phase = RoundPhase.AWAITING_BID
        logger.info("auction_open card=%s bidders=%s", card.id, ",".join(bidders))

    def _close_auction(self) -> RoundProgress:
        auction = self._auction
        if auction is None:
            raise SessionStateError("No auction is open")
        outcome = auction.outcome()
        result = break_tie(self.state, auction.card, outcome)
        self._finalize_placeholders(auction, result)
        self._auction = None
        self._phase = RoundPhase.IDLE

        if result.status in _WON and result.winner is not None:
            self.state.remove_from_pool(auction.card_id)
            self.state.grant(result.winner, auction.card_id)
            self._acquired.setdefault(result.winner, []).append(auction.card_id)
        elif result.status == "unresolved":
            session = ConsolationDrawSession(
                self.state,
                result.tied_players,
                self._round_market,
                source_card_id=auction.card_id,
            )
            self._consolation = session
            return self._after_consolation_step()
        return self._advance()

    def _finalize_placeholders(self, auction: AuctionSession, result: TieBreakResult) -> None:
        amounts = {bid.player_id: bid.amount for bid in auction.bids}
        name = auction.card.name
        for pid, index in self._placeholders.items():
            if result.status in _WON and pid == result.winner:
                subtype, detail = "bid_won", f"Auction won: {name}"
            elif result.status == "unaffordable" and pid == result.winner:
                subtype, detail = "bid_failed", f"Auction won but unpaid: {name}"
            elif result.status == "unresolved" and pid in result.tied_players:
                subtype, detail = "bid_tied", f"Auction tied: {name}"
            elif amounts.get(pid, 0) > 0:
                subtype, detail = "bid_lost", f"Auction lost: {name}"
            else:
                subtype, detail = "bid_passed", f"Auction passed: {name}"
            self.state.ledger.finalize_placeholder(pid, index, subtype, detail)
        self._placeholders = {}

    def _after_consolation_step(self) -> RoundProgress:
        session = self._consolation
        if session is None:
            raise SessionStateError("No consolation draw is running")
        if session.state == ConsolationState.DONE:
            for pid, cid in session.acquired.items():
                self._acquired.setdefault(pid, []).append(cid)
            self._consolation = None
            self._phase = RoundPhase.IDLE
            return self._advance()
        if session.state == ConsolationState.AWAITING_DECISION:
            self._phase = RoundPhase.AWAITING_CONSOLATION_DECISION
        else:
            self._phase = RoundPhase.AWAITING_CONSOLATION_CHOICE
        return self.progress()

    def _discard_unclaimed_market(self) -> list[str]:
        discarded: list[str] = []
        for cid in self._round_market:
            if self.state.remove_from_pool(cid):
                self.state.discard(cid)
                discarded.append(cid)
        if discarded:
            logger.info(
                "market_discarded round=%d cards=%s remaining=%d",
                self._resolving_round,
                ",".join(discarded),
                len(self.state.available),
            )
        return discarded

    def _commit(self) -> RoundProgress:
        state = self.state
        discarded = self._discard_unclaimed_market()
        resolved_round = self._resolving_round
        state.round_number += 1
        state.market = []
        state.pending_actions.clear()
        self._drafts.clear()
        self.snapshots.discard()

        outcome = RoundOutcome(
            status="committed",
            round_number=resolved_round,
            next_round=state.round_number,
            game_over=state.game_over,
            acquired=self._acquired,
            discarded=discarded,
        )
        self._finish(outcome)
        logger.info(
            "round_committed round=%d acquired=%s discarded=%d pool=%d game_over=%s",
            resolved_round,
            outcome.acquired,
            len(discarded),
            len(state.available),
            outcome.game_over,
        )
        return RoundProgress(phase=self._phase, outcome=outcome)

    def _abort(self) -> RoundProgress:
        resolved_round = self._resolving_round
        self.snapshots.restore(self.state)
        self.state.pending_actions.clear()
        self._drafts.clear()
        outcome = RoundOutcome(
            status="aborted",
            round_number=resolved_round,
            next_round=self.state.round_number,
            game_over=self.state.game_over,
        )
        self._finish(outcome)
        logger.info("round_aborted round=%d", resolved_round)
        return RoundProgress(phase=self._phase, outcome=outcome)

    def _finish(self, outcome: RoundOutcome) -> None:
        self.last_outcome = outcome
        self._in_progress = False
        self._phase = RoundPhase.IDLE
        self._reset_resolution()
