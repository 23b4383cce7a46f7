"""Per-raffle ceremony locks.

A ceremony lock is an advisory token guaranteeing that at most one draw
ceremony runs for a raffle at a time. Two implementations are provided:

* :class:`InMemoryCeremonyLocks` for a single process (the default, shared
  through :data:`DEFAULT_CEREMONY_LOCKS`).
* :class:`DatabaseCeremonyLocks`, which stores one row per locked raffle in
  ``raffle_ceremony_locks`` and therefore also works across processes.

Neither replaces the conditional prize-winner update performed by
:class:`~raffledraw.draw.persister.ResultPersister`, which remains the guard
against double draws.
"""

from __future__ import annotations

import logging
import secrets
import threading
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from .errors import CeremonyInProgress
from .repository import RaffleRepository
from ..models import RaffleCeremonyLock

logger = logging.getLogger(__name__)


def _new_token() -> str:
    return secrets.token_hex(16)


class CeremonyLocks:
    """Interface shared by the ceremony lock implementations."""

    def acquire(self, raffle_id: int) -> str:
        """Take the lock for ``raffle_id`` and return its token.

        Raises
        ------
        CeremonyInProgress
            If the lock is already held.
        """
        raise NotImplementedError

    def release(self, raffle_id: int, token: str) -> bool:
        """Release the lock if ``token`` still owns it. Returns ``True`` on release."""
        raise NotImplementedError

    def is_locked(self, raffle_id: int) -> bool:
        raise NotImplementedError

    @contextmanager
    def hold(self, raffle_id: int) -> Iterator[str]:
        """Hold the lock for the duration of a ``with`` block."""

        token = self.acquire(raffle_id)
        try:
            yield token
        finally:
            self.release(raffle_id, token)


class InMemoryCeremonyLocks(CeremonyLocks):
    """Process-local lock table keyed by raffle id."""

    def __init__(self) -> None:
        self._mutex = threading.Lock()
        self._tokens: dict[int, str] = {}

    def acquire(self, raffle_id: int) -> str:
        with self._mutex:
            if raffle_id in self._tokens:
                raise CeremonyInProgress(raffle_id=raffle_id)
            token = _new_token()
            self._tokens[raffle_id] = token
        logger.debug(f"Ceremony lock acquired for raffle {raffle_id}")
        return token

    def release(self, raffle_id: int, token: str) -> bool:
        with self._mutex:
            if self._tokens.get(raffle_id) != token:
                return False
            del self._tokens[raffle_id]
        logger.debug(f"Ceremony lock released for raffle {raffle_id}")
        return True

    def is_locked(self, raffle_id: int) -> bool:
        with self._mutex:
            return raffle_id in self._tokens


class DatabaseCeremonyLocks(CeremonyLocks):
    """Lock table stored in ``raffle_ceremony_locks``.

    The unique constraint on ``raffle_id`` makes the insert in
    :meth:`acquire` the atomic test-and-set.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def acquire(self, raffle_id: int) -> str:
        """Insert the lock row for ``raffle_id``.

        Raises ``CeremonyInProgress`` when the row already exists and
        ``RaffleNotFound`` when the raffle does not.
        """

        token = _new_token()
        try:
            with self._session_factory.begin() as session:
                session.add(RaffleCeremonyLock(raffle_id=raffle_id, token=token))
        except IntegrityError as exc:
            # the insert also fails on the foreign key when the raffle is gone
            if self.is_locked(raffle_id):
                raise CeremonyInProgress(raffle_id=raffle_id) from exc
            with self._session_factory() as session:
                RaffleRepository(session).get_raffle(raffle_id)
            raise
        logger.debug(f"Ceremony lock row created for raffle {raffle_id}")
        return token

    def release(self, raffle_id: int, token: str) -> bool:
        with self._session_factory.begin() as session:
            result = session.execute(
                delete(RaffleCeremonyLock).where(
                    RaffleCeremonyLock.raffle_id == raffle_id,
                    RaffleCeremonyLock.token == token,
                )
            )
        released = result.rowcount == 1
        if released:
            logger.debug(f"Ceremony lock row removed for raffle {raffle_id}")
        return released

    def is_locked(self, raffle_id: int) -> bool:
        with self._session_factory() as session:
            found = session.scalar(
                select(RaffleCeremonyLock.id).where(
                    RaffleCeremonyLock.raffle_id == raffle_id
                )
            )
        return found is not None

    def break_lock(self, raffle_id: int) -> bool:
        """Remove the lock row regardless of its token.

        Meant for operators recovering from a process that died mid-ceremony.
        """

        with self._session_factory.begin() as session:
            result = session.execute(
                delete(RaffleCeremonyLock).where(
                    RaffleCeremonyLock.raffle_id == raffle_id
                )
            )
        broken = result.rowcount > 0
        if broken:
            logger.warning(f"Ceremony lock for raffle {raffle_id} was broken manually")
        return broken


DEFAULT_CEREMONY_LOCKS = InMemoryCeremonyLocks()


__all__ = [
    "CeremonyLocks",
    "InMemoryCeremonyLocks",
    "DatabaseCeremonyLocks",
    "DEFAULT_CEREMONY_LOCKS",
]
