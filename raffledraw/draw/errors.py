"""Exceptions raised by the raffle drawing engine."""

from __future__ import annotations

from typing import Optional


class RaffleDrawError(Exception):
    """Base class for every error raised while drawing a raffle.

    Attributes
    ----------
    raffle_id : Optional[int]
        Raffle the error refers to, when known.
    prize_index : Optional[int]
        0-based index of the prize step at which a running ceremony stopped.
        ``None`` for errors raised before the first step.
    """

    default_message = "Raffle draw failed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        raffle_id: Optional[int] = None,
        prize_index: Optional[int] = None,
    ) -> None:
        super().__init__(message or self.default_message)
        self.raffle_id = raffle_id
        self.prize_index = prize_index


# Validation
class NoPrizesConfigured(RaffleDrawError):
    default_message = "Raffle has no prizes configured"


class NoEligibleParticipants(RaffleDrawError):
    default_message = "No eligible participants left to draw"


class InvalidPrizeOrder(RaffleDrawError):
    default_message = "Prize orders must be unique and contiguous from 1"


# Concurrency
class CeremonyInProgress(RaffleDrawError):
    default_message = "A draw ceremony is already running for this raffle"


class PrizeAlreadyDrawn(RaffleDrawError):
    default_message = "Prize already has a winner"

    def __init__(self, message: Optional[str] = None, *, prize_id: Optional[int] = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.prize_id = prize_id


# Not found
class RaffleNotFound(RaffleDrawError):
    default_message = "Raffle not found"


class PrizeNotFound(RaffleDrawError):
    default_message = "Prize not found"

    def __init__(self, message: Optional[str] = None, *, prize_id: Optional[int] = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.prize_id = prize_id


__all__ = [
    "RaffleDrawError",
    "NoPrizesConfigured",
    "NoEligibleParticipants",
    "InvalidPrizeOrder",
    "CeremonyInProgress",
    "PrizeAlreadyDrawn",
    "RaffleNotFound",
    "PrizeNotFound",
]
