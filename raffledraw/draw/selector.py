"""Uniform winner selection."""

from __future__ import annotations

import os
import random
from typing import Optional, Sequence, TypeVar

from dotenv import load_dotenv

from .errors import NoEligibleParticipants

T = TypeVar("T")

SEED_ENV_VAR = "RAFFLE_DRAW_SEED"


class WinnerSelector:
    """Pick one candidate uniformly at random.

    Selection uses an ordinary :class:`random.Random`; it is uniform but not
    cryptographically unpredictable or verifiable. Passing ``seed`` (or an
    ``rng``) makes a sequence of draws reproducible.
    """

    def __init__(
        self,
        *,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        if rng is not None and seed is not None:
            raise ValueError("Pass either seed or rng, not both")
        self._rng = rng or random.Random(seed)

    @classmethod
    def from_env(cls) -> "WinnerSelector":
        """Build a selector seeded from ``RAFFLE_DRAW_SEED`` when it is set."""

        load_dotenv()
        raw = os.environ.get(SEED_ENV_VAR)
        if raw is None or not raw.strip():
            return cls()
        try:
            seed = int(raw)
        except ValueError as exc:
            raise ValueError(f"{SEED_ENV_VAR} must be an integer, got {raw!r}") from exc
        return cls(seed=seed)

    def select(self, candidates: Sequence[T]) -> T:
        """Return exactly one element of ``candidates``.

        Raises
        ------
        NoEligibleParticipants
            If ``candidates`` is empty.
        """

        if not candidates:
            raise NoEligibleParticipants()
        return candidates[self._rng.randrange(len(candidates))]


__all__ = ["WinnerSelector", "SEED_ENV_VAR"]
