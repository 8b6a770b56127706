"""Tie breaking — settles a card once every bid is in.

A single top bidder wins outright. Among several top bidders, exactly one
holder of the tie-break priority skill wins; zero or several holders leave the
tie unresolved and the tied players go to a consolation draw.
"""

from __future__ import annotations

import logging

from hourglass.core.costs import adjusted_cost
from hourglass.core.game import GameState
from hourglass.core.skills import SkillContext, has_tie_break_priority
from hourglass.models.cards import Card
from hourglass.models.round import BiddingOutcome, TieBreakResult

logger = logging.getLogger(__name__)


def break_tie(state: GameState, card: Card, outcome: BiddingOutcome) -> TieBreakResult:
    """Apply the auction result to player times and the ledger.

    Does not touch the card pool; the round engine removes a won card.
    """
    if outcome.all_passed:
        for bid in outcome.bids:
            _record(state, bid.player_id, "pass_all", f"All passed: {card.name} ({card.price})")
        logger.info("auction_all_passed card=%s", card.id)
        return TieBreakResult(card_id=card.id, status="all_passed")

    winners = outcome.potential_winners
    if len(winners) == 1:
        return _settle_win(state, card, outcome, winners[0], by_skill=False)

    holders = [pid for pid in winners if has_tie_break_priority(state.player(pid))]
    if len(holders) == 1:
        return _settle_win(state, card, outcome, holders[0], by_skill=True)

    tied = state.sort_players(list(winners))
    for bid in outcome.bids:
        if bid.player_id in tied:
            _record(
                state,
                bid.player_id,
                "tie_unresolved",
                f"Tie unresolved: {card.name} (bid {outcome.max_bid})",
            )
        else:
            _record_loss(state, card, bid.player_id, bid.amount)
    logger.info(
        "auction_tie_unresolved card=%s bid=%d tied=%s skill_holders=%d",
        card.id,
        outcome.max_bid,
        ",".join(tied),
        len(holders),
    )
    return TieBreakResult(card_id=card.id, status="unresolved", tied_players=tied)


def _settle_win(
    state: GameState,
    card: Card,
    outcome: BiddingOutcome,
    winner_id: str,
    *,
    by_skill: bool,
) -> TieBreakResult:
    winner = state.player(winner_id)
    cost = adjusted_cost(winner, outcome.max_bid, SkillContext.BID_WIN)
    tied = set(outcome.potential_winners)

    if winner.time >= cost:
        delta = state.set_time(winner_id, winner.time - cost)
        subtype = "win_by_skill" if by_skill else "win"
        _record(
            state,
            winner_id,
            subtype,
            f"Won auction: {card.name} (bid {outcome.max_bid}, paid {cost}, price {card.price})",
            time_change=delta,
        )
        status = "won_by_skill" if by_skill else "won"
    else:
        _record(
            state,
            winner_id,
            "win_insufficient_funds",
            f"Won auction but cannot pay: {card.name} (needs {cost}, has {winner.time})",
        )
        status = "unaffordable"
        cost = 0

    for bid in outcome.bids:
        if bid.player_id == winner_id:
            continue
        if by_skill and bid.player_id in tied:
            _record(
                state,
                bid.player_id,
                "lost_by_skill",
                f"Lost tie to {winner_id}'s priority: {card.name} (bid {bid.amount})",
            )
        else:
            _record_loss(state, card, bid.player_id, bid.amount)

    logger.info(
        "auction_settled card=%s winner=%s bid=%d paid=%d status=%s",
        card.id,
        winner_id,
        outcome.max_bid,
        cost,
        status,
    )
    return TieBreakResult(
        card_id=card.id,
        status=status,
        winner=winner_id,
        paid=cost,
    )


def _record_loss(state: GameState, card: Card, player_id: str, amount: int) -> None:
    if amount > 0:
        _record(state, player_id, "lose", f"Lost auction: {card.name} (bid {amount})")
    else:
        _record(state, player_id, "pass", f"Passed: {card.name}")


def _record(
    state: GameState, player_id: str, subtype: str, detail: str, time_change: int = 0
) -> None:
    state.ledger.record(
        player_id,
        "bidding",
        subtype,
        detail,
        time_change=time_change,
        time_after=state.player(player_id).time,
        round_number=state.round_number,
    )
