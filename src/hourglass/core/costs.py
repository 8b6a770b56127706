"""Cost policy — skill-adjusted prices for direct buys, auction wins and consolation draws."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hourglass.core.skills import PURCHASE_CONTEXTS, SkillContext, skill_value

if TYPE_CHECKING:
    from hourglass.core.game import PlayerState


def adjusted_cost(player: PlayerState, base_price: int, context: SkillContext) -> int:
    """Price the player actually pays in a purchase context.

    A general cost reduction applies everywhere; a consolation discount only
    in ``CONSOLATION_DRAW``. Never negative and never above ``base_price``.
    """
    if context not in PURCHASE_CONTEXTS:
        raise ValueError(f"{context} is not a purchase context")
    discount = max(0, skill_value(player.skill, context))
    return max(0, base_price - discount)


def can_afford(player: PlayerState, base_price: int, context: SkillContext) -> bool:
    return player.time >= adjusted_cost(player, base_price, context)
