"""Reference data models — Cards, Characters, Skills.

Loaded once at startup and never mutated.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SkillKind(StrEnum):
    """Closed set of character skill effects."""

    COST_REDUCTION = "cost_reduction"
    CONSOLATION_DISCOUNT = "consolation_discount"
    ENHANCED_REST = "enhanced_rest"
    EXTRA_MARKET_SLOT = "extra_market_slot"
    TIE_BREAK_PRIORITY = "tie_break_priority"
    ROUND_START_BONUS = "round_start_bonus"
    TWO_CHOICE = "two_choice"


class Skill(BaseModel):
    """A character's special ability. At most one per character."""

    model_config = ConfigDict(frozen=True)

    kind: SkillKind
    value: int | None = None
    description: str = ""


class Card(BaseModel):
    """A purchasable card. Price is measured in time units."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: int = Field(ge=0)
    effect: str = ""


class Character(BaseModel):
    """A selectable character with a starting time budget."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    start_time: int = Field(ge=0)
    skill: Skill | None = None

    @property
    def skill_label(self) -> str:
        if self.skill is None:
            return "none"
        return self.skill.description or self.skill.kind.value
