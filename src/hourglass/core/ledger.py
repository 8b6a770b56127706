"""Per-player timeline ledger.

Append-only. The single permitted edit is rewriting an auction participation
placeholder once the auction's outcome is known.
"""

from __future__ import annotations

from collections.abc import Iterable

from hourglass.models.ledger import PLACEHOLDER_SUBTYPE, TimelineEvent, TimelineEventType


class Ledger:
    """Timeline events keyed by player id.

    Events are frozen models, so copying the per-player lists is a full copy.
    """

    def __init__(self, player_ids: Iterable[str] = ()) -> None:
        self._events: dict[str, list[TimelineEvent]] = {pid: [] for pid in player_ids}

    def record(
        self,
        player_id: str,
        event_type: TimelineEventType,
        subtype: str,
        detail: str,
        *,
        time_after: int,
        round_number: int,
        time_change: int = 0,
    ) -> TimelineEvent:
        """Append a new event and return it."""
        event = TimelineEvent(
            type=event_type,
            subtype=subtype,
            detail=detail,
            time_change=time_change,
            time_after=time_after,
            round=round_number,
        )
        self._events.setdefault(player_id, []).append(event)
        return event

    def add_placeholder(
        self, player_id: str, detail: str, *, time_after: int, round_number: int
    ) -> int:
        """Append an auction participation marker. Returns its index for later rewrite."""
        self.record(
            player_id,
            "phase_tick",
            PLACEHOLDER_SUBTYPE,
            detail,
            time_after=time_after,
            round_number=round_number,
        )
        return len(self._events[player_id]) - 1

    def finalize_placeholder(
        self, player_id: str, index: int, subtype: str, detail: str
    ) -> TimelineEvent:
        """Rewrite a placeholder in place. Any other event is immutable."""
        events = self._events[player_id]
        current = events[index]
        if not current.is_placeholder:
            raise ValueError(f"Event {index} for player {player_id} is not a placeholder")
        final = current.model_copy(update={"subtype": subtype, "detail": detail})
        events[index] = final
        return final

    def events(self, player_id: str) -> list[TimelineEvent]:
        """A copy of one player's events, oldest first."""
        return list(self._events.get(player_id, []))

    def last(self, player_id: str) -> TimelineEvent | None:
        events = self._events.get(player_id)
        return events[-1] if events else None

    def events_for_round(self, round_number: int) -> dict[str, list[TimelineEvent]]:
        return {
            pid: [e for e in events if e.round == round_number]
            for pid, events in self._events.items()
        }

    def to_dict(self) -> dict[str, list[TimelineEvent]]:
        return {pid: list(events) for pid, events in self._events.items()}

    @classmethod
    def from_dict(cls, events: dict[str, list[TimelineEvent]]) -> Ledger:
        ledger = cls()
        ledger._events = {pid: list(items) for pid, items in events.items()}
        return ledger

    def copy(self) -> Ledger:
        return Ledger.from_dict(self._events)

    def __len__(self) -> int:
        return sum(len(events) for events in self._events.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ledger):
            return NotImplemented
        return self._events == other._events
