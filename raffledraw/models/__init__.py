from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .company import Company  # noqa: F401
from .lead import Lead  # noqa: F401
from .raffle import Raffle, RafflePrize, RaffleCeremonyLock  # noqa: F401

__all__ = [
    "Base",
    "Company",
    "Lead",
    "Raffle",
    "RafflePrize",
    "RaffleCeremonyLock",
]
