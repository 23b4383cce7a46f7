"""Lead (participant) model captured by company forms."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .company import Company
    from .raffle import RafflePrize


class Lead(Base):
    """A participant captured for a company.

    Leads are read-only from the point of view of the raffle drawing engine;
    ``lgpd_consent`` gates whether a lead may take part in a draw.
    """

    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    company_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    """Company that captured the lead."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Display name of the participant."""

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Contact e-mail, normalized to lower case."""

    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    """Contact phone number as entered."""

    lgpd_consent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """Data-protection consent flag. Only consenting leads are drawable."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    """Timestamp when the lead was captured."""

    company: Mapped["Company"] = relationship(back_populates="leads")
    prizes_won: Mapped[list["RafflePrize"]] = relationship(back_populates="winner")

    __table_args__ = (
        Index("ix_leads_company_consent", "company_id", "lgpd_consent"),
    )

    @validates("email")
    def _normalize_email(self, _key: str, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        normalized = value.strip().lower()
        return normalized or None

    def snapshot(self) -> dict[str, Any]:
        """Return a plain-dict copy of the fields shown when the lead wins."""
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
        }

    @classmethod
    def list_consenting(cls, session: Session, company_id: int) -> list["Lead"]:
        """Return every lead of ``company_id`` that gave LGPD consent."""

        stmt = (
            select(cls)
            .where(cls.company_id == company_id, cls.lgpd_consent.is_(True))
            .order_by(cls.id.asc())
        )
        return list(session.scalars(stmt).all())

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Lead(id={id}, company_id={company}, consent={consent})>".format(
            id=self.id,
            company=self.company_id,
            consent=self.lgpd_consent,
        )
