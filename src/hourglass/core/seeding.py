"""Reference data loading — card and character registries from YAML (or JSON).

Both files are mappings keyed by id:

    # cards.yaml
    1:
      name: Pocket Watch
      price: 3
      effect: Draw one extra card next round.

    # characters.yaml
    tinkerer:
      name: The Tinkerer
      start_time: 10
      skill:
        kind: cost_reduction
        value: 1
        description: Every purchase costs 1 less.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from hourglass.models.cards import Card, Character
from hourglass.models.round import REST

logger = logging.getLogger(__name__)


class Catalog(BaseModel):
    """Everything a game session needs before players sit down."""

    cards: dict[str, Card] = Field(default_factory=dict)
    characters: dict[str, Character] = Field(default_factory=dict)


def _read_mapping(path: Path, what: str) -> dict[Any, Any]:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict) or not data:
        raise ValueError(f"{what} file {path} is empty or not a mapping")
    return data


def parse_cards(data: dict[Any, Any]) -> dict[str, Card]:
    """Build the card registry. Keys become string ids, order is preserved."""
    cards: dict[str, Card] = {}
    for key, entry in data.items():
        card_id = str(key)
        if card_id == REST:
            raise ValueError(f"{REST!r} is reserved and cannot be a card id")
        cards[card_id] = Card.model_validate({**entry, "id": card_id})
    return cards


def parse_characters(data: dict[Any, Any]) -> dict[str, Character]:
    characters: dict[str, Character] = {}
    for key, entry in data.items():
        char_id = str(key)
        characters[char_id] = Character.model_validate({**entry, "id": char_id})
    return characters


def load_cards(path: Path) -> dict[str, Card]:
    cards = parse_cards(_read_mapping(path, "Card"))
    logger.info("cards_loaded path=%s count=%d", path, len(cards))
    return cards


def load_characters(path: Path) -> dict[str, Character]:
    characters = parse_characters(_read_mapping(path, "Character"))
    logger.info("characters_loaded path=%s count=%d", path, len(characters))
    return characters


def load_catalog(cards_path: Path, characters_path: Path) -> Catalog:
    return Catalog(cards=load_cards(cards_path), characters=load_characters(characters_path))
