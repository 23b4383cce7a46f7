from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from raffledraw.db.engine import make_engine
from raffledraw.models import Base

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def missing_tables() -> list[str]:
    """Return model tables that the configured database does not have."""
    present = set(inspect(make_engine()).get_table_names())
    return sorted(set(Base.metadata.tables) - present)


def main() -> int:
    upgrade_db()
    missing = missing_tables()
    if missing:
        print("Missing tables after upgrade:", ", ".join(missing))
        return 1
    print("Raffle schema is up to date.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
