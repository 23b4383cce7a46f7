from __future__ import annotations

import random
import unittest
from collections import Counter
from unittest.mock import patch

from raffledraw.draw import (
    CeremonyInProgress,
    EligibilityFilter,
    InMemoryCeremonyLocks,
    NoEligibleParticipants,
    WinnerSelector,
)
from raffledraw.models import Lead, Raffle


def _lead(lead_id: int, *, company_id: int = 1, consent: bool = True) -> Lead:
    lead = Lead(company_id=company_id, name=f"Lead {lead_id}", lgpd_consent=consent)
    lead.id = lead_id
    return lead


def _raffle(*, company_id: int = 1, allow_multiple_wins: bool = False) -> Raffle:
    raffle = Raffle(
        company_id=company_id,
        title="Sorteio",
        allow_multiple_wins=allow_multiple_wins,
    )
    raffle.id = 7
    return raffle


class EligibilityFilterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.filter = EligibilityFilter()

    def test_pool_requires_consent_and_company(self) -> None:
        leads = [
            _lead(1),
            _lead(2, consent=False),
            _lead(3, company_id=2),
            _lead(4),
        ]
        pool = self.filter.eligible_pool(_raffle(), leads)
        self.assertEqual([lead.id for lead in pool], [1, 4])

    def test_pool_drops_duplicate_leads(self) -> None:
        lead = _lead(1)
        pool = self.filter.eligible_pool(_raffle(), [lead, lead])
        self.assertEqual(len(pool), 1)

    def test_previous_winners_excluded_without_multiple_wins(self) -> None:
        pool = [_lead(1), _lead(2), _lead(3)]
        candidates = self.filter.candidates_for_step(_raffle(), pool, {2})
        self.assertEqual([lead.id for lead in candidates], [1, 3])

    def test_previous_winners_kept_with_multiple_wins(self) -> None:
        pool = [_lead(1), _lead(2)]
        raffle = _raffle(allow_multiple_wins=True)
        candidates = self.filter.candidates_for_step(raffle, pool, {1, 2})
        self.assertEqual([lead.id for lead in candidates], [1, 2])

    def test_exhausted_pool_raises_with_index(self) -> None:
        pool = [_lead(1)]
        with self.assertRaises(NoEligibleParticipants) as ctx:
            self.filter.candidates_for_step(_raffle(), pool, {1}, prize_index=1)
        self.assertEqual(ctx.exception.raffle_id, 7)
        self.assertEqual(ctx.exception.prize_index, 1)


class WinnerSelectorTests(unittest.TestCase):
    def test_returns_member_of_candidates(self) -> None:
        selector = WinnerSelector(seed=1)
        candidates = ["a", "b", "c"]
        for _ in range(50):
            self.assertIn(selector.select(candidates), candidates)

    def test_single_candidate_always_wins(self) -> None:
        self.assertEqual(WinnerSelector().select(["only"]), "only")

    def test_empty_candidates_raise(self) -> None:
        with self.assertRaises(NoEligibleParticipants):
            WinnerSelector().select([])

    def test_same_seed_same_sequence(self) -> None:
        candidates = list(range(100))
        first = WinnerSelector(seed=42)
        second = WinnerSelector(seed=42)
        self.assertEqual(
            [first.select(candidates) for _ in range(20)],
            [second.select(candidates) for _ in range(20)],
        )

    def test_distribution_is_uniform(self) -> None:
        selector = WinnerSelector(rng=random.Random(2024))
        counts = Counter(selector.select(["a", "b", "c"]) for _ in range(3000))
        self.assertEqual(set(counts), {"a", "b", "c"})
        for value in counts.values():
            self.assertGreater(value, 850)
            self.assertLess(value, 1150)

    def test_seed_and_rng_are_exclusive(self) -> None:
        with self.assertRaises(ValueError):
            WinnerSelector(seed=1, rng=random.Random(1))

    def test_from_env_uses_seed(self) -> None:
        candidates = list(range(1000))
        with patch.dict("os.environ", {"RAFFLE_DRAW_SEED": "7"}):
            selector = WinnerSelector.from_env()
        expected = WinnerSelector(seed=7)
        self.assertEqual(selector.select(candidates), expected.select(candidates))

    def test_from_env_rejects_non_integer(self) -> None:
        with patch.dict("os.environ", {"RAFFLE_DRAW_SEED": "abc"}):
            with self.assertRaises(ValueError):
                WinnerSelector.from_env()


class InMemoryCeremonyLocksTests(unittest.TestCase):
    def test_second_acquire_fails(self) -> None:
        locks = InMemoryCeremonyLocks()
        locks.acquire(1)
        with self.assertRaises(CeremonyInProgress) as ctx:
            locks.acquire(1)
        self.assertEqual(ctx.exception.raffle_id, 1)

    def test_raffles_are_independent(self) -> None:
        locks = InMemoryCeremonyLocks()
        locks.acquire(1)
        locks.acquire(2)
        self.assertTrue(locks.is_locked(1))
        self.assertTrue(locks.is_locked(2))

    def test_release_requires_matching_token(self) -> None:
        locks = InMemoryCeremonyLocks()
        token = locks.acquire(1)
        self.assertFalse(locks.release(1, "not-the-token"))
        self.assertTrue(locks.is_locked(1))
        self.assertTrue(locks.release(1, token))
        self.assertFalse(locks.is_locked(1))

    def test_hold_releases_on_error(self) -> None:
        locks = InMemoryCeremonyLocks()
        with self.assertRaises(RuntimeError):
            with locks.hold(3):
                self.assertTrue(locks.is_locked(3))
                raise RuntimeError("boom")
        self.assertFalse(locks.is_locked(3))


if __name__ == "__main__":
    unittest.main()
