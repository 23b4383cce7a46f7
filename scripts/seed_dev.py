from datetime import datetime, timedelta, timezone

from raffledraw.db.engine import get_sessionmaker, make_engine
from raffledraw.models import Base, Company, Lead, Raffle
from raffledraw.workflows import save_raffle_prizes


def main() -> None:
    """Seed the development database with sample data."""
    engine = make_engine()

    # Drop and recreate all tables.
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        Base.metadata.drop_all(bind=conn)
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")
        conn.commit()

    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    now = datetime.now(timezone.utc)

    with Session.begin() as session:
        company = Company(name="Expo Brindes")
        other_company = Company(name="Outra Feira")
        session.add_all([company, other_company])
        session.flush()

        leads = [
            Lead(company_id=company.id, name="Ana Souza", email="ana@example.com", phone="+55 11 90000-0001", lgpd_consent=True),
            Lead(company_id=company.id, name="Bruno Lima", email="bruno@example.com", phone="+55 11 90000-0002", lgpd_consent=True),
            Lead(company_id=company.id, name="Carla Dias", email="carla@example.com", phone="+55 11 90000-0003", lgpd_consent=False),
            Lead(company_id=company.id, name="Diego Alves", email="diego@example.com", phone="+55 11 90000-0004", lgpd_consent=True),
            Lead(company_id=other_company.id, name="Eva Rocha", email="eva@example.com", lgpd_consent=True),
        ]
        session.add_all(leads)

        raffle = Raffle(
            company_id=company.id,
            title="Sorteio de Brindes",
            description="Sorteio entre os visitantes do estande.",
            start_date=now,
            end_date=now + timedelta(days=3),
            allow_multiple_wins=False,
            social_sharing_enabled=True,
        )
        session.add(raffle)
        session.flush()

        save_raffle_prizes(
            session,
            raffle,
            [
                {"name": "Camiseta", "description": "Camiseta oficial do evento"},
                {"name": "Caneca", "description": "Caneca personalizada"},
            ],
        )

    print("Development database seeded.")


if __name__ == "__main__":
    main()
