"""Action collection — what each player does this round.

Most players make one choice: rest or one market card. A player whose
character has the two-choice skill may claim up to two cards; their selection
goes through a small sub-state so it composes with the one-choice flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from hourglass.core.errors import InvalidActionError
from hourglass.core.game import GameState
from hourglass.core.skills import allows_two_choices
from hourglass.models.round import REST, Action


class DraftState(StrEnum):
    NO_CHOICE = "no_choice"
    FIRST_CHOICE_MADE = "first_choice_made"
    AWAITING_SECOND_CHOICE = "awaiting_second_choice"
    DONE = "done"


@dataclass
class ActionDraft:
    """One player's in-progress selection."""

    player_id: str
    two_choice: bool = False
    choices: list[str] = field(default_factory=list)
    state: DraftState = DraftState.NO_CHOICE

    def choose(self, choice: str) -> DraftState:
        """Select rest or a card. Picking an already chosen option withdraws it."""
        if choice in self.choices:
            self.choices.remove(choice)
            self.state = DraftState.FIRST_CHOICE_MADE if self.choices else DraftState.NO_CHOICE
            return self.state

        if choice == REST:
            if self.state != DraftState.NO_CHOICE:
                raise InvalidActionError("Rest cannot be combined with a card")
            self.choices = [REST]
            self.state = DraftState.DONE
            return self.state

        if self.state == DraftState.DONE:
            raise InvalidActionError(f"Player {self.player_id} has already chosen")
        if self.state == DraftState.NO_CHOICE:
            self.choices = [choice]
            self.state = DraftState.FIRST_CHOICE_MADE if self.two_choice else DraftState.DONE
        else:
            self.choices.append(choice)
            self.state = DraftState.DONE
        return self.state

    def request_second(self) -> DraftState:
        if self.state != DraftState.FIRST_CHOICE_MADE:
            raise InvalidActionError("A second choice needs exactly one card chosen first")
        self.state = DraftState.AWAITING_SECOND_CHOICE
        return self.state

    def finish(self) -> DraftState:
        """Settle for a single card when a second was possible."""
        if self.state not in (DraftState.FIRST_CHOICE_MADE, DraftState.AWAITING_SECOND_CHOICE):
            raise InvalidActionError(f"Nothing to finish in state {self.state}")
        self.state = DraftState.DONE
        return self.state

    @property
    def action(self) -> Action | None:
        if self.state != DraftState.DONE:
            return None
        if len(self.choices) == 1:
            return self.choices[0]
        return tuple(self.choices)


def new_draft(state: GameState, player_id: str) -> ActionDraft:
    return ActionDraft(player_id=player_id, two_choice=allows_two_choices(state.player(player_id)))


def normalize_action(
    state: GameState, player_id: str, action: Action | list[str] | None
) -> Action:
    """Check an action's shape and reduce it to REST, a card id, or a pair.

    Card ids are not looked up here; unknown ids are rejected when the round
    is resolved.
    """
    player = state.player(player_id)
    if action is None:
        raise InvalidActionError(f"No action given for player {player_id}")
    if isinstance(action, str):
        if not action:
            raise InvalidActionError(f"Empty action for player {player_id}")
        return action

    choices = tuple(action)
    if not choices:
        raise InvalidActionError(f"Empty action for player {player_id}")
    if len(choices) == 1:
        return normalize_action(state, player_id, choices[0])
    if REST in choices:
        raise InvalidActionError("Rest cannot be combined with a card")
    if len(choices) > 2:
        raise InvalidActionError(f"At most two cards may be chosen, got {len(choices)}")
    if not allows_two_choices(player):
        raise InvalidActionError(f"Player {player_id} cannot choose two cards")
    if choices[0] == choices[1]:
        raise InvalidActionError("The two choices must be different cards")
    return choices


def chosen_cards(action: Action | None) -> list[str]:
    """Card ids named by an action, in choice order."""
    if action is None or action == REST:
        return []
    if isinstance(action, str):
        return [action]
    return list(action)
