"""Initial schema

Revision ID: 5c1d2e7a9b40
Revises:
Create Date: 2026-10-12 09:41:07.215305

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

import geyser_indexer.database.models

# revision identifiers, used by Alembic.
revision: str = "5c1d2e7a9b40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""

    decimal_type = geyser_indexer.database.models.base.DecimalMappedToString

    op.create_table(
        "tokens",
        sa.Column("id", sa.String(length=200), nullable=False),
        sa.Column("decimals", sa.Integer(), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("symbol", sa.Text(), nullable=True),
        sa.Column("price", decimal_type(), nullable=False),
        sa.Column("updated", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=200), nullable=False),
        sa.Column("operations", sa.Integer(), nullable=False),
        sa.Column("earned", decimal_type(), nullable=False),
        sa.Column("gysr_spent", decimal_type(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "platform",
        sa.Column("id", sa.String(length=200), nullable=False),
        sa.Column("users", sa.Integer(), nullable=False),
        sa.Column("operations", sa.Integer(), nullable=False),
        sa.Column("tvl", decimal_type(), nullable=False),
        sa.Column("volume", decimal_type(), nullable=False),
        sa.Column("rewards_volume", decimal_type(), nullable=False),
        sa.Column("gysr_spent", decimal_type(), nullable=False),
        sa.Column("gysr_vested", decimal_type(), nullable=False),
        sa.Column("active_pools", sa.JSON(), nullable=False),
        sa.Column("updated", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "pools",
        sa.Column("id", sa.String(length=200), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.String(length=42), nullable=True),
        sa.Column("staking_token_id", sa.String(length=42), nullable=False),
        sa.Column("created", sa.Integer(), nullable=False),
        sa.Column("start", sa.Integer(), nullable=False),
        sa.Column("end", sa.Integer(), nullable=False),
        sa.Column("staked", decimal_type(), nullable=False),
        sa.Column("funded", decimal_type(), nullable=False),
        sa.Column("distributed", decimal_type(), nullable=False),
        sa.Column("rewards", decimal_type(), nullable=False),
        sa.Column("unlocked", decimal_type(), nullable=False),
        sa.Column("gysr_spent", decimal_type(), nullable=False),
        sa.Column("gysr_vested", decimal_type(), nullable=False),
        sa.Column("tvl", decimal_type(), nullable=False),
        sa.Column("volume", decimal_type(), nullable=False),
        sa.Column("users", sa.Integer(), nullable=False),
        sa.Column("operations", sa.Integer(), nullable=False),
        sa.Column("staking_shares_per_token", decimal_type(), nullable=False),
        sa.Column("reward_shares_per_token", decimal_type(), nullable=False),
        sa.Column("fundings", sa.JSON(), nullable=False),
        sa.Column("updated", sa.Integer(), nullable=False),
        sa.Column("last_update_block", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(
            ["owner_id"],
            ["users.id"],
        ),
        sa.ForeignKeyConstraint(
            ["staking_token_id"],
            ["tokens.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("pools", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_pools_staking_token_id"), ["staking_token_id"], unique=False
        )

    op.create_table(
        "pool_reward_tokens",
        sa.Column("id", sa.String(length=200), nullable=False),
        sa.Column("pool_id", sa.String(length=42), nullable=False),
        sa.Column("token_id", sa.String(length=42), nullable=False),
        sa.Column("index", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["pool_id"],
            ["pools.id"],
        ),
        sa.ForeignKeyConstraint(
            ["token_id"],
            ["tokens.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("pool_reward_tokens", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_pool_reward_tokens_pool_id"), ["pool_id"], unique=False
        )
        batch_op.create_index(
            batch_op.f("ix_pool_reward_tokens_token_id"), ["token_id"], unique=False
        )
        batch_op.create_index(
            "ix_pool_reward_tokens_pool_index", ["pool_id", "index"], unique=True
        )

    op.create_table(
        "positions",
        sa.Column("id", sa.String(length=200), nullable=False),
        sa.Column("user_id", sa.String(length=42), nullable=False),
        sa.Column("pool_id", sa.String(length=42), nullable=False),
        sa.Column("shares", decimal_type(), nullable=False),
        sa.Column("stakes", sa.JSON(), nullable=False),
        sa.Column("updated", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["pool_id"],
            ["pools.id"],
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("positions", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_positions_pool_id"), ["pool_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_positions_user_id"), ["user_id"], unique=False)

    op.create_table(
        "stakes",
        sa.Column("id", sa.String(length=200), nullable=False),
        sa.Column("position_id", sa.String(length=85), nullable=False),
        sa.Column("user_id", sa.String(length=42), nullable=False),
        sa.Column("pool_id", sa.String(length=42), nullable=False),
        sa.Column("shares", decimal_type(), nullable=False),
        sa.Column("timestamp", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["pool_id"],
            ["pools.id"],
        ),
        sa.ForeignKeyConstraint(
            ["position_id"],
            ["positions.id"],
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("stakes", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_stakes_pool_id"), ["pool_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_stakes_position_id"), ["position_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_stakes_user_id"), ["user_id"], unique=False)

    op.create_table(
        "fundings",
        sa.Column("id", sa.String(length=200), nullable=False),
        sa.Column("pool_id", sa.String(length=42), nullable=False),
        sa.Column("token_id", sa.String(length=42), nullable=False),
        sa.Column("created_timestamp", sa.Integer(), nullable=False),
        sa.Column("start", sa.Integer(), nullable=False),
        sa.Column("end", sa.Integer(), nullable=False),
        sa.Column("original_amount", decimal_type(), nullable=False),
        sa.Column("shares", decimal_type(), nullable=False),
        sa.Column("shares_per_second", decimal_type(), nullable=False),
        sa.Column("cleaned", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(
            ["pool_id"],
            ["pools.id"],
        ),
        sa.ForeignKeyConstraint(
            ["token_id"],
            ["tokens.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("fundings", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_fundings_pool_id"), ["pool_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_fundings_token_id"), ["token_id"], unique=False)

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=200), nullable=False),
        sa.Column("type", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.Integer(), nullable=False),
        sa.Column("pool_id", sa.String(length=42), nullable=False),
        sa.Column("user_id", sa.String(length=42), nullable=False),
        sa.Column("amount", decimal_type(), nullable=False),
        sa.Column("earnings", decimal_type(), nullable=False),
        sa.Column("earnings_usd", decimal_type(), nullable=False),
        sa.Column("gysr_spent", decimal_type(), nullable=False),
        sa.ForeignKeyConstraint(
            ["pool_id"],
            ["pools.id"],
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("transactions", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_transactions_pool_id"), ["pool_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_transactions_user_id"), ["user_id"], unique=False)

    op.create_table(
        "pool_day_data",
        sa.Column("id", sa.String(length=200), nullable=False),
        sa.Column("pool_id", sa.String(length=42), nullable=False),
        sa.Column("date", sa.Integer(), nullable=False),
        sa.Column("volume", decimal_type(), nullable=False),
        sa.ForeignKeyConstraint(
            ["pool_id"],
            ["pools.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("pool_day_data", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_pool_day_data_pool_id"), ["pool_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_table("pool_day_data")
    op.drop_table("transactions")
    op.drop_table("fundings")
    op.drop_table("stakes")
    op.drop_table("positions")
    op.drop_table("pool_reward_tokens")
    op.drop_table("pools")
    op.drop_table("platform")
    op.drop_table("users")
    op.drop_table("tokens")
