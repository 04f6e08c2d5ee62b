from decimal import Decimal

from sqlalchemy.orm import Mapped

from .base import Base, EntityId, IdList
from .types import ForeignKeyPoolId, ForeignKeyUserId


class PlatformTable(Base):
    """
    Singleton platform-wide rollup, keyed by the zero address.
    """

    __tablename__ = "platform"

    id: Mapped[EntityId]
    users: Mapped[int]
    operations: Mapped[int]
    tvl: Mapped[Decimal]
    volume: Mapped[Decimal]
    rewards_volume: Mapped[Decimal]
    gysr_spent: Mapped[Decimal]
    gysr_vested: Mapped[Decimal]
    # Pools included in platform pricing. Append-only.
    active_pools: Mapped[IdList]
    updated: Mapped[int]


class TransactionTable(Base):
    __tablename__ = "transactions"

    id: Mapped[EntityId]
    type: Mapped[str | None]
    timestamp: Mapped[int]
    pool_id: Mapped[ForeignKeyPoolId]
    user_id: Mapped[ForeignKeyUserId]
    amount: Mapped[Decimal]
    earnings: Mapped[Decimal]
    earnings_usd: Mapped[Decimal]
    gysr_spent: Mapped[Decimal]


class PoolDayDataTable(Base):
    __tablename__ = "pool_day_data"

    id: Mapped[EntityId]
    pool_id: Mapped[ForeignKeyPoolId]
    date: Mapped[int]
    volume: Mapped[Decimal]
