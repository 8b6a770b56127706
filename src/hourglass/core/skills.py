"""Skill dispatch — which character skill acts in which engine context.

Every skill lookup in the engine goes through ``SKILL_CONTEXTS`` so the set of
effects stays closed and each context resolves skills the same way.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum
from typing import TYPE_CHECKING

from hourglass.models.cards import Skill, SkillKind

if TYPE_CHECKING:
    from hourglass.core.game import PlayerState
    from hourglass.models.rules import GameRules


class SkillContext(StrEnum):
    """Points in a round where a skill can take effect."""

    DIRECT_BUY = "direct_buy"
    BID_WIN = "bid_win"
    CONSOLATION_DRAW = "consolation_draw"
    REST = "rest"
    ROUND_START = "round_start"
    TIE_BREAK = "tie_break"
    MARKET_SIZE = "market_size"
    TWO_CHOICE = "two_choice"


PURCHASE_CONTEXTS: frozenset[SkillContext] = frozenset(
    {SkillContext.DIRECT_BUY, SkillContext.BID_WIN, SkillContext.CONSOLATION_DRAW}
)

SKILL_CONTEXTS: dict[SkillKind, frozenset[SkillContext]] = {
    SkillKind.COST_REDUCTION: PURCHASE_CONTEXTS,
    SkillKind.CONSOLATION_DISCOUNT: frozenset({SkillContext.CONSOLATION_DRAW}),
    SkillKind.ENHANCED_REST: frozenset({SkillContext.REST}),
    SkillKind.EXTRA_MARKET_SLOT: frozenset({SkillContext.MARKET_SIZE}),
    SkillKind.TIE_BREAK_PRIORITY: frozenset({SkillContext.TIE_BREAK}),
    SkillKind.ROUND_START_BONUS: frozenset({SkillContext.ROUND_START}),
    SkillKind.TWO_CHOICE: frozenset({SkillContext.TWO_CHOICE}),
}

# Used when a skill's data entry leaves ``value`` empty.
DEFAULT_SKILL_VALUES: dict[SkillKind, int] = {
    SkillKind.COST_REDUCTION: 1,
    SkillKind.CONSOLATION_DISCOUNT: 1,
    SkillKind.EXTRA_MARKET_SLOT: 1,
    SkillKind.ROUND_START_BONUS: 1,
}


def applies(skill: Skill | None, context: SkillContext) -> bool:
    """True if the skill has an effect in this context."""
    return skill is not None and context in SKILL_CONTEXTS[skill.kind]


def skill_value(skill: Skill | None, context: SkillContext, default: int = 0) -> int:
    """Numeric payload of a skill in a context, or ``default`` if it does not apply."""
    if skill is None or not applies(skill, context):
        return default
    if skill.value is not None:
        return skill.value
    return DEFAULT_SKILL_VALUES.get(skill.kind, default)


def rest_recovery(player: PlayerState, rules: GameRules) -> int:
    """Time restored by a rest action. Enhanced rest overrides the default amount."""
    return max(0, skill_value(player.skill, SkillContext.REST, default=rules.rest_recovery))


def round_start_bonus(players: Iterable[PlayerState]) -> int:
    """Total time every player gains at the start of a round."""
    return sum(max(0, skill_value(p.skill, SkillContext.ROUND_START)) for p in players)


def extra_market_slots(players: Iterable[PlayerState]) -> int:
    return sum(max(0, skill_value(p.skill, SkillContext.MARKET_SIZE)) for p in players)


def has_tie_break_priority(player: PlayerState) -> bool:
    return applies(player.skill, SkillContext.TIE_BREAK)


def allows_two_choices(player: PlayerState) -> bool:
    return applies(player.skill, SkillContext.TWO_CHOICE)
