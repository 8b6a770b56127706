"""Application settings via pydantic-settings. Loads from environment and .env file."""

from __future__ import annotations

import pathlib

from pydantic import model_validator
from pydantic_settings import BaseSettings

from hourglass.models.rules import GameRules


def _find_project_root() -> pathlib.Path:
    """Project root: src/hourglass/config.py → up 3 levels."""
    return pathlib.Path(__file__).resolve().parent.parent.parent


PROJECT_ROOT = _find_project_root()

VALID_ENVS = frozenset({"development", "test", "production"})


class Settings(BaseSettings):
    """Hourglass configuration.

    All values can be overridden via environment variables or .env file.
    """

    # Environment
    hourglass_env: str = "development"

    # Reference data
    hourglass_cards_path: str = str(PROJECT_ROOT / "data" / "cards.yaml")
    hourglass_characters_path: str = str(PROJECT_ROOT / "data" / "characters.yaml")

    # Rules
    hourglass_max_time: int = 12
    hourglass_rest_recovery: int = 6
    hourglass_market_extra_slots: int = 1
    hourglass_player_ids: list[str] = ["A", "B", "C"]

    # Market draws; None = nondeterministic
    hourglass_seed: int | None = None

    # Logging
    hourglass_log_level: str = "INFO"

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _check_rules(self) -> Settings:
        """Reject rule combinations the engine cannot honour."""
        if self.hourglass_env not in VALID_ENVS:
            msg = f"HOURGLASS_ENV must be one of {sorted(VALID_ENVS)}, got {self.hourglass_env!r}"
            raise ValueError(msg)
        if self.hourglass_rest_recovery > self.hourglass_max_time:
            msg = (
                f"HOURGLASS_REST_RECOVERY ({self.hourglass_rest_recovery}) cannot exceed "
                f"HOURGLASS_MAX_TIME ({self.hourglass_max_time})"
            )
            raise ValueError(msg)
        if len(set(self.hourglass_player_ids)) != len(self.hourglass_player_ids):
            raise ValueError("HOURGLASS_PLAYER_IDS must be unique")
        if not self.hourglass_player_ids:
            raise ValueError("HOURGLASS_PLAYER_IDS must not be empty")
        return self

    def game_rules(self) -> GameRules:
        """The rule model the engine runs against."""
        return GameRules(
            max_time=self.hourglass_max_time,
            rest_recovery=self.hourglass_rest_recovery,
            market_extra_slots=self.hourglass_market_extra_slots,
            player_ids=tuple(self.hourglass_player_ids),
        )
