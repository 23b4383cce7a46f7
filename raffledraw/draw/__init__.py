"""Raffle drawing engine."""

from .eligibility import EligibilityFilter
from .errors import (
    CeremonyInProgress,
    InvalidPrizeOrder,
    NoEligibleParticipants,
    NoPrizesConfigured,
    PrizeAlreadyDrawn,
    PrizeNotFound,
    RaffleDrawError,
    RaffleNotFound,
)
from .locks import (
    DEFAULT_CEREMONY_LOCKS,
    CeremonyLocks,
    DatabaseCeremonyLocks,
    InMemoryCeremonyLocks,
)
from .persister import ResultPersister
from .repository import RaffleRepository
from .selector import WinnerSelector
from .sequencer import DrawSequencer
from .session import CeremonyState, CeremonyStatus, DrawEvent, DrawPhase, DrawSession

__all__ = [
    "CeremonyInProgress",
    "CeremonyLocks",
    "CeremonyState",
    "CeremonyStatus",
    "DEFAULT_CEREMONY_LOCKS",
    "DatabaseCeremonyLocks",
    "DrawEvent",
    "DrawPhase",
    "DrawSequencer",
    "DrawSession",
    "EligibilityFilter",
    "InMemoryCeremonyLocks",
    "InvalidPrizeOrder",
    "NoEligibleParticipants",
    "NoPrizesConfigured",
    "PrizeAlreadyDrawn",
    "PrizeNotFound",
    "RaffleDrawError",
    "RaffleNotFound",
    "RaffleRepository",
    "ResultPersister",
    "WinnerSelector",
]
