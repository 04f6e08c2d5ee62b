from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, EntityId, IdList
from .types import ForeignKeyPoolId, ForeignKeyPositionId, ForeignKeyTokenId, ForeignKeyUserId

if TYPE_CHECKING:
    from .tokens import TokenTable


class PoolTable(Base):
    """
    A deployed Geyser contract. `version` selects the event handlers: 0 for the original Geyser,
    1 for GeyserV1.
    """

    __tablename__ = "pools"

    id: Mapped[EntityId]
    version: Mapped[int]
    owner_id: Mapped[str | None] = mapped_column(String(42), ForeignKey("users.id"))
    staking_token_id: Mapped[ForeignKeyTokenId]
    created: Mapped[int]

    # campaign window
    start: Mapped[int]
    end: Mapped[int]

    # token amounts
    staked: Mapped[Decimal]
    funded: Mapped[Decimal]
    distributed: Mapped[Decimal]
    rewards: Mapped[Decimal]
    unlocked: Mapped[Decimal]
    gysr_spent: Mapped[Decimal]
    gysr_vested: Mapped[Decimal]

    # USD values
    tvl: Mapped[Decimal]
    volume: Mapped[Decimal]

    users: Mapped[int]
    operations: Mapped[int]
    staking_shares_per_token: Mapped[Decimal]
    reward_shares_per_token: Mapped[Decimal]
    fundings: Mapped[IdList]
    updated: Mapped[int]
    # last block whose events have been applied
    last_update_block: Mapped[int | None]

    # Relationships
    staking_token: Mapped["TokenTable"] = relationship(
        "TokenTable",
        foreign_keys="PoolTable.staking_token_id",
    )
    reward_tokens: Mapped[list["PoolRewardTokenTable"]] = relationship(
        "PoolRewardTokenTable",
        back_populates="pool",
        order_by="PoolRewardTokenTable.index",
    )


class PoolRewardTokenTable(Base):
    """
    Join record assigning a reward token to a pool. `index` is the token's fixed position in the
    pool's reward token list.
    """

    __tablename__ = "pool_reward_tokens"

    id: Mapped[EntityId]
    pool_id: Mapped[ForeignKeyPoolId]
    token_id: Mapped[ForeignKeyTokenId]
    index: Mapped[int]

    # Relationships
    pool: Mapped["PoolTable"] = relationship(
        "PoolTable",
        back_populates="reward_tokens",
    )
    token: Mapped["TokenTable"] = relationship("TokenTable")


Index(
    "ix_pool_reward_tokens_pool_index",
    PoolRewardTokenTable.pool_id,
    PoolRewardTokenTable.index,
    unique=True,
)


class PositionTable(Base):
    __tablename__ = "positions"

    id: Mapped[EntityId]
    user_id: Mapped[ForeignKeyUserId]
    pool_id: Mapped[ForeignKeyPoolId]
    shares: Mapped[Decimal]
    # Ordered stake lot ids, oldest first. Unstakes consume lots from the end.
    stakes: Mapped[IdList]
    updated: Mapped[int]


class StakeTable(Base):
    __tablename__ = "stakes"

    id: Mapped[EntityId]
    position_id: Mapped[ForeignKeyPositionId]
    user_id: Mapped[ForeignKeyUserId]
    pool_id: Mapped[ForeignKeyPoolId]
    shares: Mapped[Decimal]
    timestamp: Mapped[int]


class FundingTable(Base):
    __tablename__ = "fundings"

    id: Mapped[EntityId]
    pool_id: Mapped[ForeignKeyPoolId]
    token_id: Mapped[ForeignKeyTokenId]
    created_timestamp: Mapped[int]
    start: Mapped[int]
    end: Mapped[int]
    original_amount: Mapped[Decimal]
    shares: Mapped[Decimal]
    shares_per_second: Mapped[Decimal]
    cleaned: Mapped[bool]
