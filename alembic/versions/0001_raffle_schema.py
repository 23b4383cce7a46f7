"""raffle schema

Revision ID: 0001_raffle_schema
Revises:
Create Date: 2026-10-18 09:00:00

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_raffle_schema"
down_revision = None
branch_labels = None
depends_on = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "companies",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_companies"),
    )
    op.create_table(
        "leads",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("company_id", ID_TYPE, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("lgpd_consent", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["company_id"],
            ["companies.id"],
            name="fk_leads_company_id_companies",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_leads"),
    )
    op.create_index(
        "ix_leads_company_consent", "leads", ["company_id", "lgpd_consent"]
    )
    op.create_table(
        "raffles",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("company_id", ID_TYPE, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("allow_multiple_wins", sa.Boolean(), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("social_sharing_enabled", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "max_participants IS NULL OR max_participants > 0",
            name="ck_raffles_max_participants_positive",
        ),
        sa.ForeignKeyConstraint(
            ["company_id"],
            ["companies.id"],
            name="fk_raffles_company_id_companies",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_raffles"),
    )
    op.create_index("ix_raffles_company_id", "raffles", ["company_id"])
    op.create_table(
        "raffle_prizes",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("raffle_id", ID_TYPE, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("prize_order", sa.Integer(), nullable=False),
        sa.Column("winner_id", ID_TYPE, nullable=True),
        sa.Column("drawn_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "prize_order >= 1", name="ck_raffle_prizes_prize_order_positive"
        ),
        sa.ForeignKeyConstraint(
            ["raffle_id"],
            ["raffles.id"],
            name="fk_raffle_prizes_raffle_id_raffles",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["winner_id"],
            ["leads.id"],
            name="fk_raffle_prizes_winner_id_leads",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_raffle_prizes"),
        sa.UniqueConstraint("raffle_id", "prize_order", name="uq_raffle_prize_order"),
    )
    op.create_index("ix_raffle_prizes_raffle_id", "raffle_prizes", ["raffle_id"])
    op.create_table(
        "raffle_ceremony_locks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("raffle_id", ID_TYPE, nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column("acquired_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["raffle_id"],
            ["raffles.id"],
            name="fk_raffle_ceremony_locks_raffle_id_raffles",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_raffle_ceremony_locks"),
        sa.UniqueConstraint("raffle_id", name="uq_raffle_ceremony_lock_raffle"),
    )


def downgrade() -> None:
    op.drop_table("raffle_ceremony_locks")
    op.drop_index("ix_raffle_prizes_raffle_id", table_name="raffle_prizes")
    op.drop_table("raffle_prizes")
    op.drop_index("ix_raffles_company_id", table_name="raffles")
    op.drop_table("raffles")
    op.drop_index("ix_leads_company_consent", table_name="leads")
    op.drop_table("leads")
    op.drop_table("companies")
