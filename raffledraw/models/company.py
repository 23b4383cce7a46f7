from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .lead import Lead
    from .raffle import Raffle


class Company(Base):
    """Tenant that owns leads and raffles."""

    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Company name shown on raffles and results."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    """Creation timestamp."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    """Last update timestamp."""

    leads: Mapped[list["Lead"]] = relationship(
        back_populates="company", cascade="all, delete-orphan"
    )
    """Leads captured by the company."""

    raffles: Mapped[list["Raffle"]] = relationship(
        back_populates="company", cascade="all, delete-orphan"
    )
    """Raffles run by the company."""

    @classmethod
    def get_by_name(cls, session: Session, name: str) -> Optional["Company"]:
        """Get a company by its exact name."""
        return session.scalar(select(cls).where(cls.name == name))

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Company(id={self.id}, name={self.name})>"
