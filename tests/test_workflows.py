import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from raffledraw.draw import (
    CeremonyInProgress,
    InMemoryCeremonyLocks,
    RaffleNotFound,
    WinnerSelector,
)
from raffledraw.models import Base, Company, Lead, Raffle, RafflePrize
from raffledraw.workflows import (
    format_raffle_results,
    list_raffle_winners,
    reset_raffle_draw,
    run_raffle_draw,
    save_raffle_prizes,
)


class WorkflowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )
        self.locks = InMemoryCeremonyLocks()

    def tearDown(self) -> None:
        self.engine.dispose()

    def _seed_raffle(self, session, *, sharing: bool = True) -> Raffle:
        company = Company(name="Expo Brindes")
        session.add(company)
        session.flush()
        session.add_all(
            [
                Lead(company_id=company.id, name="Ana", lgpd_consent=True),
                Lead(company_id=company.id, name="Bruno", lgpd_consent=True),
                Lead(company_id=company.id, name="Carla", lgpd_consent=False),
            ]
        )
        raffle = Raffle(
            company_id=company.id,
            title="Sorteio de Brindes",
            social_sharing_enabled=sharing,
        )
        session.add(raffle)
        session.flush()
        return raffle

    def test_save_raffle_prizes_numbers_from_one(self) -> None:
        with self.Session.begin() as session:
            raffle = self._seed_raffle(session)
            saved = save_raffle_prizes(
                session,
                raffle,
                ["Camiseta", {"name": "Caneca", "description": "Personalizada"}],
            )
            self.assertEqual([p.prize_order for p in saved], [1, 2])
            self.assertEqual(saved[1].description, "Personalizada")

    def test_save_raffle_prizes_reorders_and_removes(self) -> None:
        with self.Session.begin() as session:
            raffle = self._seed_raffle(session)
            original = save_raffle_prizes(session, raffle, ["A", "B", "C"])
            kept_id = original[0].id

            saved = save_raffle_prizes(session, raffle, [" C ", "A"])

            self.assertEqual([p.name for p in saved], ["C", "A"])
            self.assertEqual([p.prize_order for p in saved], [1, 2])
            self.assertEqual(saved[0].id, kept_id)
            stored = RafflePrize.list_for_raffle(session, raffle.id)
            self.assertEqual([(p.prize_order, p.name) for p in stored], [(1, "C"), (2, "A")])

    def test_save_raffle_prizes_validation(self) -> None:
        with self.Session.begin() as session:
            raffle = self._seed_raffle(session)
            with self.assertRaises(ValueError):
                save_raffle_prizes(session, raffle, [])
            with self.assertRaises(ValueError):
                save_raffle_prizes(session, raffle, ["Camiseta", "  "])
            with self.assertRaises(ValueError):
                save_raffle_prizes(session, raffle, [{"description": "no name"}])

    def test_save_raffle_prizes_refuses_drawn_raffle(self) -> None:
        with self.Session.begin() as session:
            raffle = self._seed_raffle(session)
            save_raffle_prizes(session, raffle, ["Camiseta"])
            raffle_id = raffle.id

        run_raffle_draw(self.Session, raffle_id, locks=self.locks)

        with self.Session.begin() as session:
            raffle = session.get(Raffle, raffle_id)
            with self.assertRaises(ValueError):
                save_raffle_prizes(session, raffle, ["Boné"])

    def test_run_and_reset_raffle_draw(self) -> None:
        with self.Session.begin() as session:
            raffle = self._seed_raffle(session)
            save_raffle_prizes(session, raffle, ["Camiseta", "Caneca"])
            raffle_id = raffle.id

        events = run_raffle_draw(
            self.Session, raffle_id, selector=WinnerSelector(seed=5), locks=self.locks
        )
        self.assertEqual([e.prize_name for e in events], ["Camiseta", "Caneca"])
        self.assertEqual(len({e.winner_id for e in events}), 2)

        with self.Session() as session:
            winners = list_raffle_winners(session, raffle_id)
        self.assertEqual([lead.id for _, lead in winners], [e.winner_id for e in events])

        self.assertEqual(reset_raffle_draw(self.Session, raffle_id, locks=self.locks), 2)
        with self.Session() as session:
            self.assertEqual(list_raffle_winners(session, raffle_id), [])

    def test_reset_refused_while_locked(self) -> None:
        with self.Session.begin() as session:
            raffle = self._seed_raffle(session)
            save_raffle_prizes(session, raffle, ["Camiseta"])
            raffle_id = raffle.id

        token = self.locks.acquire(raffle_id)
        with self.assertRaises(CeremonyInProgress):
            reset_raffle_draw(self.Session, raffle_id, locks=self.locks)
        self.locks.release(raffle_id, token)

    def test_list_raffle_winners_unknown_raffle(self) -> None:
        with self.Session() as session:
            with self.assertRaises(RaffleNotFound):
                list_raffle_winners(session, 999)

    def test_format_raffle_results(self) -> None:
        with self.Session.begin() as session:
            raffle = self._seed_raffle(session)
            save_raffle_prizes(session, raffle, ["Camiseta", "Caneca"])
            raffle_id = raffle.id

        events = run_raffle_draw(self.Session, raffle_id, locks=self.locks)
        names = [e.winner_snapshot["name"] for e in events]

        with self.Session() as session:
            raffle = session.get(Raffle, raffle_id)
            text = format_raffle_results(session, raffle)

        lines = text.splitlines()
        self.assertEqual(lines[0], "🎉 Resultados do Sorteio: Sorteio de Brindes")
        self.assertEqual(lines[2], f"🏆 1º Lugar: {names[0]} - Camiseta")
        self.assertEqual(lines[3], f"🏆 2º Lugar: {names[1]} - Caneca")
        self.assertEqual(lines[-1], "#Sorteio #Premiação")
        self.assertNotIn("Carla", text)

    def test_format_raffle_results_requires_sharing_and_winners(self) -> None:
        with self.Session.begin() as session:
            shared = self._seed_raffle(session)
            save_raffle_prizes(session, shared, ["Camiseta"])
            private = self._seed_raffle(session, sharing=False)

            with self.assertRaises(ValueError):
                format_raffle_results(session, shared)
            with self.assertRaises(ValueError):
                format_raffle_results(session, private)


if __name__ == "__main__":
    unittest.main()
