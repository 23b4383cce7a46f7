"""Data-layer calls used by the drawing engine."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from .errors import RaffleNotFound
from ..models import Lead, Raffle, RafflePrize


class RaffleRepository:
    """Thin wrapper issuing the engine's queries on a SQLAlchemy session.

    The repository never commits; callers own the transaction.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_raffle(self, raffle_id: int) -> Raffle:
        raffle = self._session.get(Raffle, raffle_id)
        if raffle is None:
            raise RaffleNotFound(f"Raffle {raffle_id} not found", raffle_id=raffle_id)
        return raffle

    def list_prizes_ordered(self, raffle_id: int) -> list[RafflePrize]:
        return RafflePrize.list_for_raffle(self._session, raffle_id)

    def list_eligible_leads(self, company_id: int) -> list[Lead]:
        return Lead.list_consenting(self._session, company_id)

    def prize_exists(self, prize_id: int) -> bool:
        found = self._session.scalar(
            select(RafflePrize.id).where(RafflePrize.id == prize_id)
        )
        return found is not None

    def update_prize_winner(
        self, prize_id: int, winner_id: int, timestamp: datetime
    ) -> bool:
        """Assign ``winner_id`` to the prize only if it has no winner yet.

        Returns
        -------
        bool
            ``True`` when exactly one row was updated. ``False`` means the
            prize does not exist or already had a winner.
        """

        stmt = (
            update(RafflePrize)
            .where(RafflePrize.id == prize_id, RafflePrize.winner_id.is_(None))
            .values(
                winner_id=winner_id,
                drawn_at=timestamp,
                updated_at=datetime.now(timezone.utc),
            )
        )
        result = self._session.execute(stmt)
        return result.rowcount == 1

    def clear_prize_winners(self, raffle_id: int) -> int:
        """Clear ``winner_id``/``drawn_at`` on every prize of the raffle.

        Returns the number of prizes that were drawn before the reset.
        """

        stmt = (
            update(RafflePrize)
            .where(
                RafflePrize.raffle_id == raffle_id,
                or_(
                    RafflePrize.winner_id.is_not(None),
                    RafflePrize.drawn_at.is_not(None),
                ),
            )
            .values(
                winner_id=None,
                drawn_at=None,
                updated_at=datetime.now(timezone.utc),
            )
        )
        result = self._session.execute(stmt)
        return result.rowcount


__all__ = ["RaffleRepository"]
