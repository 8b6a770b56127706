"""Round snapshots — exact pre-round copies used to roll back a cancelled round."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass

from hourglass.core.errors import SessionStateError
from hourglass.core.game import GameState
from hourglass.core.ledger import Ledger
from hourglass.models.ledger import TimelineEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoundSnapshot:
    """Everything a round can mutate, captured before the round touches it."""

    times: dict[str, int]
    ledger: dict[str, list[TimelineEvent]]
    round_number: int
    available: list[str]
    market: list[str]
    owned: dict[str, list[str]]
    discarded: list[str]

    @classmethod
    def capture(cls, state: GameState) -> RoundSnapshot:
        return cls(
            times=dict(state.times),
            ledger=state.ledger.to_dict(),
            round_number=state.round_number,
            available=list(state.available),
            market=list(state.market),
            owned=copy.deepcopy(state.owned),
            discarded=list(state.discarded),
        )

    def apply(self, state: GameState) -> None:
        """Overwrite ``state`` with the captured values."""
        for player in state.players:
            player.time = self.times[player.player_id]
        state.ledger = Ledger.from_dict(self.ledger)
        state.round_number = self.round_number
        state.available = list(self.available)
        state.market = list(self.market)
        state.owned = copy.deepcopy(self.owned)
        state.discarded = list(self.discarded)


class SnapshotManager:
    """Holds at most one snapshot: taken at round start, dropped at commit or rollback."""

    def __init__(self) -> None:
        self._snapshot: RoundSnapshot | None = None

    @property
    def active(self) -> bool:
        return self._snapshot is not None

    @property
    def snapshot(self) -> RoundSnapshot | None:
        return self._snapshot

    def take(self, state: GameState) -> RoundSnapshot:
        if self._snapshot is not None:
            raise SessionStateError("A round snapshot is already held")
        self._snapshot = RoundSnapshot.capture(state)
        logger.debug("snapshot_taken round=%d", state.round_number)
        return self._snapshot

    def restore(self, state: GameState) -> RoundSnapshot:
        """Roll ``state`` back and consume the snapshot."""
        if self._snapshot is None:
            raise SessionStateError("No round snapshot to restore")
        snapshot, self._snapshot = self._snapshot, None
        snapshot.apply(state)
        logger.info("snapshot_restored round=%d", snapshot.round_number)
        return snapshot

    def discard(self) -> None:
        self._snapshot = None
