"""Atomic persistence of draw results."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import sessionmaker

from .errors import PrizeAlreadyDrawn, PrizeNotFound
from .locks import DEFAULT_CEREMONY_LOCKS, CeremonyLocks
from .repository import RaffleRepository

logger = logging.getLogger(__name__)


class ResultPersister:
    """Commit prize winners and reset raffles.

    Every call runs in its own transaction obtained from ``session_factory``,
    so a committed winner is durable as soon as :meth:`commit` returns.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        *,
        locks: Optional[CeremonyLocks] = None,
    ) -> None:
        """Create a persister.

        Parameters
        ----------
        session_factory : sessionmaker
            Factory producing sessions bound to the raffle database.
        locks : Optional[CeremonyLocks], default: None
            Ceremony lock table consulted by :meth:`reset_raffle`. When
            omitted the process-wide :data:`DEFAULT_CEREMONY_LOCKS` is used.
        """

        self._session_factory = session_factory
        self.locks = locks or DEFAULT_CEREMONY_LOCKS

    def commit(
        self,
        prize_id: int,
        winner_id: int,
        timestamp: datetime,
        *,
        raffle_id: Optional[int] = None,
        prize_index: Optional[int] = None,
    ) -> None:
        """Store ``winner_id`` on the prize if, and only if, it is still undrawn.

        The write is a single conditional ``UPDATE``; two concurrent callers
        can never both succeed for the same prize.

        Raises
        ------
        PrizeAlreadyDrawn
            If the prize already has a winner.
        PrizeNotFound
            If the prize row does not exist.
        """

        with self._session_factory.begin() as session:
            repository = RaffleRepository(session)
            if repository.update_prize_winner(prize_id, winner_id, timestamp):
                logger.debug(f"Prize {prize_id} committed to lead {winner_id}")
                return
            if not repository.prize_exists(prize_id):
                raise PrizeNotFound(
                    f"Prize {prize_id} not found",
                    prize_id=prize_id,
                    raffle_id=raffle_id,
                    prize_index=prize_index,
                )
            raise PrizeAlreadyDrawn(
                f"Prize {prize_id} already has a winner",
                prize_id=prize_id,
                raffle_id=raffle_id,
                prize_index=prize_index,
            )

    def reset_raffle(self, raffle_id: int) -> int:
        """Return every prize of ``raffle_id`` to the undrawn state.

        The ceremony lock is held while clearing, so a reset can neither run
        during a ceremony nor let one start halfway through.

        Returns
        -------
        int
            Number of prizes that were cleared.

        Raises
        ------
        CeremonyInProgress
            If a ceremony currently holds the raffle's lock.
        RaffleNotFound
            If the raffle does not exist.
        """

        with self.locks.hold(raffle_id):
            with self._session_factory.begin() as session:
                repository = RaffleRepository(session)
                repository.get_raffle(raffle_id)
                cleared = repository.clear_prize_winners(raffle_id)
        logger.info(f"Raffle {raffle_id} reset, {cleared} prize(s) cleared")
        return cleared


__all__ = ["ResultPersister"]
