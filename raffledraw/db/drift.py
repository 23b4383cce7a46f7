from __future__ import annotations

from alembic.autogenerate import api as ag_api
from alembic.operations import ops
from alembic.runtime.migration import MigrationContext
from sqlalchemy.engine import Connection

from ..models import Base


def schema_differences(connection: Connection) -> list[ops.MigrateOperation]:
    """Compare the raffle models against the database behind ``connection``.

    Returns the autogenerate operations that would bring the database in line
    with ``Base.metadata``; an empty list means no drift.
    """
    context = MigrationContext.configure(
        connection=connection,
        opts={
            "compare_type": True,
            "compare_server_default": True,
            "render_as_batch": connection.dialect.name == "sqlite",
        },
    )
    migration = ag_api.produce_migrations(context, Base.metadata)
    upgrade_ops = migration.upgrade_ops
    if upgrade_ops is None:
        raise RuntimeError("Alembic produced no upgrade operations")
    return list(upgrade_ops.ops or [])
