"""Eligibility rules deciding which leads can win a raffle prize."""

from __future__ import annotations

from typing import AbstractSet, Iterable, Optional

from .errors import NoEligibleParticipants
from ..models import Lead, Raffle


class EligibilityFilter:
    """Derive the candidate pool for each prize step of a ceremony.

    The base pool is every lead of the raffle's company that gave LGPD
    consent. When the raffle does not allow multiple wins the pool for step
    *k* additionally excludes the winners already committed in steps
    ``1..k-1`` of the same ceremony; winners of earlier ceremonies are not
    remembered.
    """

    def eligible_pool(self, raffle: Raffle, leads: Iterable[Lead]) -> list[Lead]:
        """Return the leads of ``leads`` that may take part in ``raffle``.

        Parameters
        ----------
        raffle : Raffle
            Raffle whose ``company_id`` scopes the pool.
        leads : Iterable[Lead]
            Candidate leads. They may already be filtered by the data layer;
            the rules are re-applied here regardless.

        Returns
        -------
        list[Lead]
            Eligible leads, de-duplicated by id, in input order.
        """

        seen: set[int] = set()
        pool: list[Lead] = []
        for lead in leads:
            if lead.company_id != raffle.company_id or lead.lgpd_consent is not True:
                continue
            if lead.id in seen:
                continue
            seen.add(lead.id)
            pool.append(lead)
        return pool

    def candidates_for_step(
        self,
        raffle: Raffle,
        pool: Iterable[Lead],
        previous_winner_ids: AbstractSet[int],
        *,
        prize_index: Optional[int] = None,
    ) -> list[Lead]:
        """Return the candidates for the next prize of a running ceremony.

        Raises
        ------
        NoEligibleParticipants
            If no candidate is left for the step.
        """

        if raffle.allow_multiple_wins:
            candidates = list(pool)
        else:
            candidates = [lead for lead in pool if lead.id not in previous_winner_ids]

        if not candidates:
            raise NoEligibleParticipants(
                raffle_id=raffle.id,
                prize_index=prize_index,
            )
        return candidates


__all__ = ["EligibilityFilter"]
