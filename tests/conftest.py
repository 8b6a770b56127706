"""Shared test fixtures."""

from collections.abc import Callable, Mapping

import pytest

from hourglass.config import Settings
from hourglass.core.game import GameState, new_game
from hourglass.core.round_engine import RoundEngine
from hourglass.models.cards import Card, Character, Skill, SkillKind
from hourglass.models.rules import DEFAULT_RULES, GameRules

CARD_PRICES = {
    "c1": 3,
    "c2": 4,
    "c3": 5,
    "c4": 2,
    "c5": 6,
    "c6": 1,
    "c7": 7,
    "c8": 3,
}

PLAIN_SEATS = {"A": "plain_a", "B": "plain_b", "C": "plain_c"}


def make_cards() -> dict[str, Card]:
    return {cid: Card(id=cid, name=f"Card {cid}", price=p) for cid, p in CARD_PRICES.items()}


def _character(
    char_id: str, start_time: int = 10, kind: SkillKind | None = None, value: int | None = None
) -> Character:
    skill = Skill(kind=kind, value=value) if kind is not None else None
    return Character(id=char_id, name=char_id.title(), start_time=start_time, skill=skill)


def make_characters() -> dict[str, Character]:
    chars = [
        _character("plain_a"),
        _character("plain_b"),
        _character("plain_c"),
        _character("tinkerer", kind=SkillKind.COST_REDUCTION, value=1),
        _character("scavenger", kind=SkillKind.CONSOLATION_DISCOUNT, value=2),
        _character("dreamer", kind=SkillKind.ENHANCED_REST, value=8),
        _character("merchant", kind=SkillKind.EXTRA_MARKET_SLOT, value=1),
        _character("duelist", start_time=9, kind=SkillKind.TIE_BREAK_PRIORITY),
        _character("sentinel", kind=SkillKind.TIE_BREAK_PRIORITY),
        _character("patron", start_time=8, kind=SkillKind.ROUND_START_BONUS, value=1),
        _character("twins", start_time=9, kind=SkillKind.TWO_CHOICE),
        _character("giant", start_time=20),
    ]
    return {c.id: c for c in chars}


@pytest.fixture
def settings() -> Settings:
    """Test settings with defaults."""
    return Settings(hourglass_env="test", hourglass_seed=7)


@pytest.fixture
def cards() -> dict[str, Card]:
    return make_cards()


@pytest.fixture
def characters() -> dict[str, Character]:
    return make_characters()


GameFactory = Callable[..., GameState]


@pytest.fixture
def make_game(cards: dict[str, Card], characters: dict[str, Character]) -> GameFactory:
    """Build a game; ``times`` overrides starting times, ``pool`` shrinks the pool.

    Cards left out of ``pool`` are moved to the discard pile so the card count
    still adds up.
    """

    def _make(
        seats: Mapping[str, str] | None = None,
        *,
        times: Mapping[str, int] | None = None,
        pool: list[str] | None = None,
        rules: GameRules = DEFAULT_RULES,
    ) -> GameState:
        state = new_game(cards, characters, seats or PLAIN_SEATS, rules)
        for pid, value in (times or {}).items():
            state.player(pid).time = value
        if pool is not None:
            state.discarded = [cid for cid in state.available if cid not in pool]
            state.available = list(pool)
        return state

    return _make


@pytest.fixture
def state(make_game: GameFactory) -> GameState:
    return make_game()


@pytest.fixture
def engine(state: GameState) -> RoundEngine:
    return RoundEngine(state)
