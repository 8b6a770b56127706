"""Mutable game state — the single context object every engine operation receives.

GameState owns player time budgets, the ledger, the card pool, the market and
the card holdings. Nothing here lives at module level.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from hourglass.core.errors import InvalidActionError, SetupError
from hourglass.core.ledger import Ledger
from hourglass.models.cards import Card, Character, Skill, SkillKind
from hourglass.models.round import Action
from hourglass.models.rules import DEFAULT_RULES, GameRules

logger = logging.getLogger(__name__)


@dataclass
class PlayerState:
    """A seated player. Character and skill are fixed for the session."""

    player_id: str
    character: Character
    time: int

    @property
    def skill(self) -> Skill | None:
        return self.character.skill

    def has_skill(self, kind: SkillKind) -> bool:
        return self.skill is not None and self.skill.kind == kind


@dataclass
class GameState:
    """Mutable state of a game in progress."""

    cards: dict[str, Card]
    players: list[PlayerState]
    rules: GameRules = DEFAULT_RULES
    ledger: Ledger = field(default_factory=Ledger)
    available: list[str] = field(default_factory=list)
    market: list[str] = field(default_factory=list)
    round_number: int = 1
    owned: dict[str, list[str]] = field(default_factory=dict)
    discarded: list[str] = field(default_factory=list)
    pending_actions: dict[str, Action] = field(default_factory=dict)
    # Round number whose round-start bonus has already been paid out.
    bonus_paid_round: int = 0

    @property
    def player_ids(self) -> list[str]:
        return [p.player_id for p in self.players]

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def times(self) -> dict[str, int]:
        return {p.player_id: p.time for p in self.players}

    @property
    def game_over(self) -> bool:
        """No market can be formed once the pool is empty."""
        return not self.available

    def player(self, player_id: str) -> PlayerState:
        for p in self.players:
            if p.player_id == player_id:
                return p
        raise InvalidActionError(f"Unknown player {player_id!r}")

    def card(self, card_id: str) -> Card | None:
        return self.cards.get(card_id)

    def sort_players(self, player_ids: list[str]) -> list[str]:
        """Order player ids by the fixed seating order."""
        return sorted(player_ids, key=self.rules.player_order)

    def set_time(self, player_id: str, value: int) -> int:
        """Set a player's time clamped to [0, max_time]. Returns the applied delta."""
        player = self.player(player_id)
        before = player.time
        player.time = max(0, min(value, self.rules.max_time))
        return player.time - before

    def remove_from_pool(self, card_id: str) -> bool:
        """Take a card out of the available pool. Returns False if it was not there."""
        try:
            self.available.remove(card_id)
        except ValueError:
            return False
        return True

    def grant(self, player_id: str, card_id: str) -> None:
        self.owned.setdefault(player_id, []).append(card_id)

    def discard(self, card_id: str) -> None:
        self.discarded.append(card_id)

    def accounted_cards(self) -> int:
        """Pool + owned + discarded. Always equals the registry size."""
        owned = sum(len(cards) for cards in self.owned.values())
        return len(self.available) + owned + len(self.discarded)


def new_game(
    cards: Mapping[str, Card],
    characters: Mapping[str, Character],
    selections: Mapping[str, str],
    rules: GameRules = DEFAULT_RULES,
) -> GameState:
    """Seat players with their chosen characters and build the starting state.

    ``selections`` maps player id to character id and must cover exactly the
    first N player ids of the fixed seating order.
    """
    count = len(selections)
    if count < 1 or count > len(rules.player_ids):
        raise SetupError(
            f"Player count must be between 1 and {len(rules.player_ids)}, got {count}"
        )
    seated = rules.player_ids[:count]

    chosen: set[str] = set()
    players: list[PlayerState] = []
    for pid in seated:
        char_id = selections.get(pid)
        if not char_id:
            raise SetupError(f"Player {pid} has not chosen a character")
        if char_id in chosen:
            raise SetupError(f"Character {char_id!r} was chosen more than once")
        character = characters.get(char_id)
        if character is None:
            raise SetupError(f"Unknown character {char_id!r}")
        chosen.add(char_id)
        start = max(0, min(character.start_time, rules.max_time))
        players.append(PlayerState(player_id=pid, character=character, time=start))

    extra = set(selections) - set(seated)
    if extra:
        raise SetupError(f"Unexpected player ids: {sorted(extra)}")

    state = GameState(
        cards=dict(cards),
        players=players,
        rules=rules,
        ledger=Ledger(seated),
        available=list(cards),
        owned={pid: [] for pid in seated},
    )
    logger.info(
        "game_created players=%s cards=%d",
        ",".join(f"{p.player_id}:{p.character.id}" for p in players),
        len(state.available),
    )
    return state
