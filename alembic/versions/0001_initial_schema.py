"""initial lottery schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")
AMOUNT = sa.String(length=80)


def upgrade() -> None:
    op.create_table(
        "lottery_state",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner", sa.String(length=100), nullable=False),
        sa.Column("jackpot", AMOUNT, nullable=False),
        sa.Column("reserve_fund", AMOUNT, nullable=False),
        sa.Column("next_drawing_time", sa.BigInteger(), nullable=False),
        sa.Column("last_outcome_digest", sa.String(length=64), nullable=False),
        sa.Column("paused", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_lottery_state"),
    )

    op.create_table(
        "entries",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("account", sa.String(length=100), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("period_key", sa.BigInteger(), nullable=False),
        sa.Column("seed", sa.String(length=64), nullable=False),
        sa.Column("match_digest", sa.String(length=32), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_entries"),
        sa.UniqueConstraint("account", "sequence", name="uq_entries_account_sequence"),
        sa.UniqueConstraint("account", "period_key", name="uq_entries_account_period"),
    )
    op.create_index("ix_entries_period_key", "entries", ["period_key"])
    op.create_index("ix_entries_account_timestamp", "entries", ["account", "timestamp"])

    op.create_table(
        "periods",
        sa.Column("period_key", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("entry_count", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("period_key", name="pk_periods"),
    )

    op.create_table(
        "period_participants",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("period_key", sa.BigInteger(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("account", sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(
            ["period_key"],
            ["periods.period_key"],
            name="fk_period_participants_period_key_periods",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_period_participants"),
        sa.UniqueConstraint("period_key", "account", name="uq_period_participants_account"),
        sa.UniqueConstraint("period_key", "position", name="uq_period_participants_position"),
    )
    op.create_index(
        "ix_period_participants_period_key", "period_participants", ["period_key"]
    )

    op.create_table(
        "drawings",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("period_key", sa.BigInteger(), nullable=False),
        sa.Column("outcome_digest", sa.String(length=64), nullable=False),
        sa.Column("winning_digits", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("completed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("pot", AMOUNT, nullable=False),
        sa.Column("entry_count", sa.Integer(), nullable=False),
        sa.Column(
            "has_jackpot_winner", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        sa.Column("settled_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('settling','completed')", name="ck_drawings_status_enum"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_drawings"),
        sa.UniqueConstraint("period_key", name="uq_drawings_period_key"),
    )

    op.create_table(
        "drawing_winners",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("drawing_id", ID_TYPE, nullable=False),
        sa.Column("required_matches", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("account", sa.String(length=100), nullable=False),
        sa.Column("match_count", sa.Integer(), nullable=False),
        sa.Column("amount", AMOUNT, nullable=False),
        sa.Column("proportional", sa.Boolean(), nullable=False),
        sa.Column("claimed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.ForeignKeyConstraint(
            ["drawing_id"],
            ["drawings.id"],
            name="fk_drawing_winners_drawing_id_drawings",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_drawing_winners"),
        sa.UniqueConstraint(
            "drawing_id", "required_matches", "position", name="uq_drawing_winners_slot"
        ),
    )
    op.create_index("ix_drawing_winners_drawing_id", "drawing_winners", ["drawing_id"])
    op.create_index("ix_drawing_winners_account", "drawing_winners", ["account"])

    op.create_table(
        "ledger_accounts",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("balance", AMOUNT, nullable=False),
        sa.Column(
            "accepts_transfers", sa.Boolean(), server_default=sa.text("true"), nullable=False
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_ledger_accounts"),
        sa.UniqueConstraint("name", name="uq_ledger_accounts_name"),
    )

    op.create_table(
        "lottery_events",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("period_key", sa.BigInteger(), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_lottery_events"),
    )
    op.create_index("ix_lottery_events_name", "lottery_events", ["name"])
    op.create_index("ix_lottery_events_period", "lottery_events", ["period_key"])


def downgrade() -> None:
    op.drop_index("ix_lottery_events_period", table_name="lottery_events")
    op.drop_index("ix_lottery_events_name", table_name="lottery_events")
    op.drop_table("lottery_events")
    op.drop_table("ledger_accounts")
    op.drop_index("ix_drawing_winners_account", table_name="drawing_winners")
    op.drop_index("ix_drawing_winners_drawing_id", table_name="drawing_winners")
    op.drop_table("drawing_winners")
    op.drop_table("drawings")
    op.drop_index("ix_period_participants_period_key", table_name="period_participants")
    op.drop_table("period_participants")
    op.drop_table("periods")
    op.drop_index("ix_entries_account_timestamp", table_name="entries")
    op.drop_index("ix_entries_period_key", table_name="entries")
    op.drop_table("entries")
    op.drop_table("lottery_state")
