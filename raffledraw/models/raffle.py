"""Database models for raffles and their prizes."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .company import Company
    from .lead import Lead


class Raffle(Base):
    """A prize raffle run by a company over its consenting leads."""

    __tablename__ = "raffles"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    company_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    """Owning company. Only this company's leads can win."""

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    """Title shown to participants and in result summaries."""

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Free form description of the raffle."""

    start_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    end_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    allow_multiple_wins: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    """When ``False`` a lead can win at most one prize per ceremony."""

    max_participants: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Informational cap configured by the company; not applied by the draw."""

    social_sharing_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    """Whether the result summary may be shared publicly."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    company: Mapped["Company"] = relationship(back_populates="raffles")
    prizes: Mapped[list["RafflePrize"]] = relationship(
        back_populates="raffle",
        cascade="all, delete-orphan",
        order_by="RafflePrize.prize_order",
    )
    """Prizes of the raffle, in draw order."""

    __table_args__ = (
        CheckConstraint(
            "max_participants IS NULL OR max_participants > 0",
            name="max_participants_positive",
        ),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Raffle(id={id}, company_id={company}, title={title})>".format(
            id=self.id,
            company=self.company_id,
            title=self.title,
        )


class RafflePrize(Base):
    """A single prize of a raffle, drawn in ``prize_order`` sequence.

    ``winner_id`` and ``drawn_at`` start out null and are written exactly once
    per ceremony by the result persister. Only an explicit reset clears them.
    """

    __tablename__ = "raffle_prizes"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    raffle_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("raffles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    """Raffle the prize belongs to."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Prize name, e.g. ``"Camiseta"``."""

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    prize_order: Mapped[int] = mapped_column(Integer, nullable=False)
    """1-based draw position, unique within the raffle."""

    winner_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("leads.id", ondelete="SET NULL"), nullable=True
    )
    """Winning lead, or ``None`` while undrawn."""

    drawn_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    """Timestamp of the commit that assigned ``winner_id``."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    raffle: Mapped["Raffle"] = relationship(back_populates="prizes")
    winner: Mapped[Optional["Lead"]] = relationship(back_populates="prizes_won")

    __table_args__ = (
        UniqueConstraint("raffle_id", "prize_order", name="uq_raffle_prize_order"),
        CheckConstraint("prize_order >= 1", name="prize_order_positive"),
    )

    def __init__(
        self,
        *,
        name: str,
        prize_order: int,
        raffle: Optional["Raffle"] = None,
        raffle_id: Optional[int] = None,
        description: Optional[str] = None,
        winner_id: Optional[int] = None,
        drawn_at: Optional[datetime] = None,
    ) -> None:
        if raffle is not None:
            self.raffle = raffle
        if raffle_id is not None:
            self.raffle_id = raffle_id
        self.name = name
        self.prize_order = prize_order
        self.description = description
        self.winner_id = winner_id
        self.drawn_at = drawn_at

    @property
    def is_drawn(self) -> bool:
        return self.winner_id is not None

    @classmethod
    def list_for_raffle(cls, session: Session, raffle_id: int) -> list["RafflePrize"]:
        """Return the prizes of ``raffle_id`` ordered by ``prize_order``."""

        stmt = (
            select(cls)
            .where(cls.raffle_id == raffle_id)
            .order_by(cls.prize_order.asc(), cls.id.asc())
        )
        return list(session.scalars(stmt).all())

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<RafflePrize(id={id}, raffle_id={raffle}, order={order}, winner_id={winner})>".format(
            id=self.id,
            raffle=self.raffle_id,
            order=self.prize_order,
            winner=self.winner_id,
        )


class RaffleCeremonyLock(Base):
    """Row-level ceremony token; at most one row exists per raffle."""

    __tablename__ = "raffle_ceremony_locks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    raffle_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("raffles.id", ondelete="CASCADE"), nullable=False
    )
    token: Mapped[str] = mapped_column(String(64), nullable=False)
    acquired_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("raffle_id", name="uq_raffle_ceremony_lock_raffle"),
    )


__all__ = [
    "Raffle",
    "RafflePrize",
    "RaffleCeremonyLock",
]
