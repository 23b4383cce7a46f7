"""Sequential raffle drawing ceremony."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy.orm import sessionmaker

from .eligibility import EligibilityFilter
from .errors import (
    CeremonyInProgress,
    InvalidPrizeOrder,
    NoEligibleParticipants,
    NoPrizesConfigured,
    RaffleDrawError,
)
from .locks import CeremonyLocks
from .persister import ResultPersister
from .repository import RaffleRepository
from .selector import WinnerSelector
from .session import CeremonyState, CeremonyStatus, DrawEvent, DrawPhase, DrawSession
from ..models import RafflePrize

logger = logging.getLogger(__name__)


class DrawSequencer:
    """Run draw ceremonies: one winner per prize, in prize order.

    A ceremony moves ``Idle -> Running(i) -> Completed`` or ends in
    ``Aborted``. Within ``Running`` every prize step passes through
    ``Selecting -> Persisting -> Advancing``. Prizes committed before an
    abort stay committed; only :meth:`reset` clears them.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        *,
        selector: Optional[WinnerSelector] = None,
        eligibility: Optional[EligibilityFilter] = None,
        persister: Optional[ResultPersister] = None,
        locks: Optional[CeremonyLocks] = None,
    ) -> None:
        """Create a sequencer bound to ``session_factory``.

        Parameters
        ----------
        session_factory : sessionmaker
            Factory used to load raffles and to commit each prize step in its
            own transaction.
        selector : Optional[WinnerSelector], default: None
            Random winner selector. A fresh unseeded selector is used when
            omitted.
        eligibility : Optional[EligibilityFilter], default: None
            Eligibility rules; the default filter applies company and LGPD
            consent rules.
        persister : Optional[ResultPersister], default: None
            Result persister. When omitted one is created with ``locks``.
        locks : Optional[CeremonyLocks], default: None
            Ceremony lock table. Ignored when ``persister`` is given, in which
            case the persister's locks are shared.
        """

        self._session_factory = session_factory
        self._selector = selector or WinnerSelector()
        self._eligibility = eligibility or EligibilityFilter()
        self._persister = persister or ResultPersister(session_factory, locks=locks)
        self._locks = self._persister.locks

        self._state_mutex = threading.Lock()
        self._running: dict[int, DrawSession] = {}
        self._finished: dict[int, CeremonyState] = {}

    def start(self, raffle_id: int) -> DrawSession:
        """Validate the raffle, take its ceremony lock and return a session.

        No prize is drawn until the returned session is iterated.

        Raises
        ------
        CeremonyInProgress
            If a ceremony is already running for the raffle.
        RaffleNotFound
            If the raffle does not exist.
        NoPrizesConfigured
            If the raffle has no prizes.
        InvalidPrizeOrder
            If prize orders are not exactly ``1..N``.
        NoEligibleParticipants
            If no lead of the raffle's company gave LGPD consent.
        """

        if self._locks.is_locked(raffle_id):
            raise CeremonyInProgress(raffle_id=raffle_id)

        with self._session_factory() as session:
            repository = RaffleRepository(session)
            raffle = repository.get_raffle(raffle_id)
            prizes = repository.list_prizes_ordered(raffle_id)
            leads = repository.list_eligible_leads(raffle.company_id)

        if not prizes:
            raise NoPrizesConfigured(raffle_id=raffle_id)
        _check_prize_order(raffle_id, prizes)

        pool = self._eligibility.eligible_pool(raffle, leads)
        if not pool:
            raise NoEligibleParticipants(raffle_id=raffle_id)

        token = self._locks.acquire(raffle_id)
        draw = DrawSession(self, raffle, prizes, pool, token)
        with self._state_mutex:
            self._running[raffle_id] = draw
            self._finished.pop(raffle_id, None)

        logger.info(
            f"Ceremony started for raffle {raffle_id}: "
            f"{len(prizes)} prize(s), {len(pool)} eligible participant(s)"
        )
        return draw

    def reset(self, raffle_id: int) -> int:
        """Clear every winner of the raffle and return it to ``Idle``.

        Returns the number of prizes cleared.

        Raises
        ------
        CeremonyInProgress
            If a ceremony is running for the raffle.
        RaffleNotFound
            If the raffle does not exist.
        """

        if self.get_ceremony_state(raffle_id).status is CeremonyStatus.RUNNING:
            raise CeremonyInProgress(raffle_id=raffle_id)

        with self._session_factory() as session:
            RaffleRepository(session).get_raffle(raffle_id)

        cleared = self._persister.reset_raffle(raffle_id)
        with self._state_mutex:
            self._finished.pop(raffle_id, None)
        return cleared

    def get_ceremony_state(self, raffle_id: int) -> CeremonyState:
        with self._state_mutex:
            draw = self._running.get(raffle_id)
            finished = self._finished.get(raffle_id)
        if draw is not None:
            return draw.state
        if self._locks.is_locked(raffle_id):
            # Held by a ceremony this sequencer does not own.
            return CeremonyState(CeremonyStatus.RUNNING)
        if finished is not None:
            return finished
        return CeremonyState.idle()

    def _draw_next(self, draw: DrawSession) -> DrawEvent:
        """Perform the next prize step of ``draw``; called by ``DrawSession``."""

        if not draw.is_running:
            raise StopIteration
        if draw._cancel_requested:
            self._finish(draw, CeremonyStatus.ABORTED)
            raise StopIteration

        raffle = draw.raffle
        index = draw.state.prize_index
        prize = draw.prizes[index]

        try:
            draw._set_phase(DrawPhase.SELECTING)
            candidates = self._eligibility.candidates_for_step(
                raffle, draw.pool, draw.winner_ids, prize_index=index
            )
            winner = self._selector.select(candidates)

            with draw._commit_lock:
                if draw._cancel_requested:
                    self._finish(draw, CeremonyStatus.ABORTED)
                    raise StopIteration
                draw._set_phase(DrawPhase.PERSISTING)
                drawn_at = datetime.now(timezone.utc)
                self._persister.commit(
                    prize.id,
                    winner.id,
                    drawn_at,
                    raffle_id=raffle.id,
                    prize_index=index,
                )
        except RaffleDrawError as exc:
            if exc.raffle_id is None:
                exc.raffle_id = raffle.id
            exc.prize_index = index
            self._finish(draw, CeremonyStatus.ABORTED, exc)
            raise
        except StopIteration:
            raise
        except Exception:
            self._finish(draw, CeremonyStatus.ABORTED)
            raise

        draw._set_phase(DrawPhase.ADVANCING)
        event = DrawEvent(
            prize_id=prize.id,
            prize_order=prize.prize_order,
            prize_index=index,
            prize_name=prize.name,
            winner_id=winner.id,
            winner_snapshot=winner.snapshot(),
            timestamp=drawn_at,
        )
        draw._record(event)
        logger.debug(
            f"Raffle {raffle.id}: prize {prize.prize_order} drawn for lead {winner.id}"
        )

        if len(draw.winners) == len(draw.prizes):
            self._finish(draw, CeremonyStatus.COMPLETED)
        elif draw._cancel_requested:
            # cancel() arrived while this step held the session
            self._finish(draw, CeremonyStatus.ABORTED)
        return event

    def _cancel(self, draw: DrawSession) -> None:
        if draw.is_running:
            self._finish(draw, CeremonyStatus.ABORTED)

    def _finish(
        self,
        draw: DrawSession,
        status: CeremonyStatus,
        error: Optional[RaffleDrawError] = None,
    ) -> None:
        draw._finish(status, error)
        raffle_id = draw.raffle_id
        with self._state_mutex:
            if self._running.get(raffle_id) is draw:
                del self._running[raffle_id]
            self._finished[raffle_id] = draw.state
        self._locks.release(raffle_id, draw.lock_token)

        if status is CeremonyStatus.COMPLETED:
            logger.info(
                f"Ceremony completed for raffle {raffle_id}: {len(draw.winners)} prize(s) drawn"
            )
        elif error is not None:
            logger.warning(
                f"Ceremony aborted for raffle {raffle_id} at prize index "
                f"{draw.state.prize_index}: {error}"
            )
        elif draw.cancelled:
            logger.info(
                f"Ceremony cancelled for raffle {raffle_id} at prize index "
                f"{draw.state.prize_index}"
            )
        else:
            logger.error(
                f"Ceremony for raffle {raffle_id} stopped by an unexpected error "
                f"at prize index {draw.state.prize_index}"
            )


def _check_prize_order(raffle_id: int, prizes: Sequence[RafflePrize]) -> None:
    orders = [prize.prize_order for prize in prizes]
    if orders != list(range(1, len(prizes) + 1)):
        raise InvalidPrizeOrder(
            f"Prize orders for raffle {raffle_id} must be 1..{len(prizes)}, got {orders}",
            raffle_id=raffle_id,
        )


__all__ = ["DrawSequencer"]
