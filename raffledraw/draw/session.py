"""Ceremony state values and the caller-facing draw session."""

from __future__ import annotations

import enum
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from .errors import RaffleDrawError
from ..db.utils import dt_iso

if TYPE_CHECKING:
    from .sequencer import DrawSequencer
    from ..models import Lead, Raffle, RafflePrize


class CeremonyStatus(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


class DrawPhase(enum.Enum):
    """Sub-state of a running ceremony while a prize step executes."""

    SELECTING = "selecting"
    PERSISTING = "persisting"
    ADVANCING = "advancing"


@dataclass(frozen=True)
class CeremonyState:
    """Snapshot of a raffle's ceremony state.

    Attributes
    ----------
    status : CeremonyStatus
        Coarse lifecycle state.
    prize_index : Optional[int]
        For ``RUNNING`` the index of the step being drawn next; for
        ``ABORTED`` the index at which the ceremony stopped; for
        ``COMPLETED`` the number of prizes drawn. ``None`` when idle or when
        the ceremony runs in another process.
    phase : Optional[DrawPhase]
        Step phase, only set while running.
    """

    status: CeremonyStatus
    prize_index: Optional[int] = None
    phase: Optional[DrawPhase] = None

    @classmethod
    def idle(cls) -> "CeremonyState":
        return cls(CeremonyStatus.IDLE)


@dataclass(frozen=True)
class DrawEvent:
    """One committed prize of a ceremony.

    ``winner_snapshot`` copies the winner's display fields at the moment of
    the draw so that consumers do not need to reload the lead.
    """

    prize_id: int
    prize_order: int
    prize_index: int
    prize_name: str
    winner_id: int
    winner_snapshot: dict[str, Any] = field(hash=False)
    timestamp: datetime

    def to_json(self) -> dict[str, Any]:
        return {
            "prize_id": self.prize_id,
            "prize_order": self.prize_order,
            "prize_index": self.prize_index,
            "prize_name": self.prize_name,
            "winner_id": self.winner_id,
            "winner": dict(self.winner_snapshot),
            "timestamp": dt_iso(self.timestamp),
        }


class DrawSession:
    """Handle on a single running ceremony.

    Iterating the session draws the prizes one at a time: every ``next()``
    selects and commits the next prize and yields its :class:`DrawEvent`.
    The iterator is finite and cannot be restarted. Nothing is drawn until
    the caller asks for the next event, so presentation pacing is entirely up
    to the consumer.

    A session is created by :meth:`DrawSequencer.start` and should be used as
    a context manager so that an abandoned ceremony releases its lock::

        with sequencer.start(raffle_id) as draw:
            for event in draw:
                show(event)
    """

    def __init__(
        self,
        sequencer: "DrawSequencer",
        raffle: "Raffle",
        prizes: list["RafflePrize"],
        pool: list["Lead"],
        lock_token: str,
    ) -> None:
        self._sequencer = sequencer
        self.raffle = raffle
        self.prizes = prizes
        self.pool = pool
        self.lock_token = lock_token

        # _step_lock serialises steps; _commit_lock makes cancel() and the
        # commit of a step mutually exclusive.
        self._step_lock = threading.Lock()
        self._commit_lock = threading.Lock()
        self._cancel_requested = False

        self._status = CeremonyStatus.RUNNING
        self._phase: Optional[DrawPhase] = None
        self._index = 0
        self._events: list[DrawEvent] = []
        self._winner_ids: set[int] = set()
        self.error: Optional[RaffleDrawError] = None
        self.cancelled = False

    @property
    def raffle_id(self) -> int:
        return self.raffle.id

    @property
    def state(self) -> CeremonyState:
        if self._status is CeremonyStatus.RUNNING:
            return CeremonyState(self._status, self._index, self._phase)
        return CeremonyState(self._status, self._index)

    @property
    def is_running(self) -> bool:
        return self._status is CeremonyStatus.RUNNING

    @property
    def winners(self) -> list[DrawEvent]:
        """Events committed so far, in prize order."""
        return list(self._events)

    @property
    def winner_ids(self) -> frozenset[int]:
        return frozenset(self._winner_ids)

    def __iter__(self) -> "DrawSession":
        return self

    def __next__(self) -> DrawEvent:
        with self._step_lock:
            return self._sequencer._draw_next(self)

    def run(self) -> list[DrawEvent]:
        """Draw every remaining prize and return the ordered winner list.

        Raises the ceremony's error if it aborts.
        """

        for _ in self:
            pass
        return self.winners

    def cancel(self) -> bool:
        """Stop the ceremony before its next commit.

        A step whose commit is already under way finishes first; its prize
        stays drawn. In that case the ceremony ends, and its lock is
        released, when that step returns rather than when ``cancel`` does.
        If the step was the last one the ceremony still ends ``COMPLETED``.
        Returns ``False`` when the ceremony is no longer running.
        """

        with self._commit_lock:
            if self._status is not CeremonyStatus.RUNNING:
                return False
            self._cancel_requested = True
        # Finish immediately unless a step is in progress; that step will see
        # the flag before committing.
        if self._step_lock.acquire(blocking=False):
            try:
                self._sequencer._cancel(self)
            finally:
                self._step_lock.release()
        return True

    def close(self) -> None:
        if self.is_running:
            self.cancel()

    def __enter__(self) -> "DrawSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # The methods below are driven by DrawSequencer.

    def _set_phase(self, phase: Optional[DrawPhase]) -> None:
        self._phase = phase

    def _record(self, event: DrawEvent) -> None:
        self._events.append(event)
        self._winner_ids.add(event.winner_id)
        self._index += 1
        self._phase = None

    def _finish(self, status: CeremonyStatus, error: Optional[RaffleDrawError] = None) -> None:
        self._status = status
        self._phase = None
        self.error = error
        self.cancelled = status is CeremonyStatus.ABORTED and self._cancel_requested

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<DrawSession(raffle_id={raffle}, status={status}, index={index})>".format(
            raffle=self.raffle_id,
            status=self._status.value,
            index=self._index,
        )


__all__ = [
    "CeremonyStatus",
    "CeremonyState",
    "DrawPhase",
    "DrawEvent",
    "DrawSession",
]
