"""Exceptions raised by the game engine.

Insufficient funds, ties, and cancellations are not errors; they are recorded
on the ledger and returned as outcomes. These exceptions signal caller misuse
or bad reference data.
"""

from __future__ import annotations


class HourglassError(Exception):
    """Base class for engine errors."""


class SetupError(HourglassError):
    """Raised when a game cannot be created from the given selections."""


class UnknownCardError(HourglassError):
    """Raised when an action references a card id absent from the registry.

    Always raised before any state is mutated.
    """

    def __init__(self, card_id: str, player_id: str | None = None) -> None:
        self.card_id = card_id
        self.player_id = player_id
        who = f" (player {player_id})" if player_id else ""
        super().__init__(f"Unknown card id {card_id!r}{who}")


class InvalidActionError(HourglassError):
    """Raised for an action the player is not allowed to submit."""


class InvalidBidError(HourglassError):
    """Raised for a negative bid amount."""


class SessionStateError(HourglassError):
    """Raised when a session is driven from a state that does not accept the input."""
