"""
Typed entity access over a SQLAlchemy session.

Every entity is addressed by a deterministic string id derived from addresses, timestamps and
transaction hashes:

    Token, User, Pool       lowercase address
    Position                {pool_id}_{user_id}
    Stake                   {position_id}_{timestamp} (Geyser) or {position_id}_{tx_hash} (GeyserV1)
    Funding                 {pool_id}_{timestamp}
    Transaction             transaction hash
    PoolDayData             {pool_id}_{day index}
    Platform                zero address

The store never commits. The caller owns the transaction boundary, so an exception raised while
processing an event leaves nothing behind once the session is rolled back.
"""

from collections.abc import Callable
from decimal import Decimal
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from geyser_indexer.constants import INITIAL_SHARES_PER_TOKEN, PLATFORM_ID, ZERO_DECIMAL
from geyser_indexer.database.models import (
    Base,
    PlatformTable,
    PoolRewardTokenTable,
    PoolTable,
    PositionTable,
    TokenTable,
    UserTable,
)
from geyser_indexer.exceptions import EntityNotFound

EntityT = TypeVar("EntityT", bound=Base)


class EntityStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def load(self, table: type[EntityT], entity_id: str) -> EntityT | None:
        """
        Load an entity by id. Returns None if the id is unknown.
        """

        return self.session.get(table, entity_id)

    def require(self, table: type[EntityT], entity_id: str) -> EntityT:
        """
        Load an entity that must exist.
        """

        if (entity := self.load(table, entity_id)) is None:
            raise EntityNotFound(entity=table.__name__.removesuffix("Table"), entity_id=entity_id)
        return entity

    def load_or_create(
        self,
        table: type[EntityT],
        entity_id: str,
        factory: Callable[[str], EntityT],
    ) -> tuple[EntityT, bool]:
        """
        Load an entity, or build a new one from `factory` if the id is unknown. The new entity is
        added to the session. Returns the entity and a flag that is True if it was created.
        """

        if (entity := self.load(table, entity_id)) is not None:
            return entity, False

        entity = factory(entity_id)
        self.session.add(entity)
        return entity, True

    def save(self, *entities: Base) -> None:
        for entity in entities:
            self.session.add(entity)

    def delete(self, table: type[Base], entity_id: str) -> None:
        if (entity := self.load(table, entity_id)) is None:
            return
        self.session.delete(entity)
        # Flush so that a later load of the same id within this transaction sees the removal
        self.session.flush()

    def get_platform(self) -> PlatformTable:
        """
        Get the platform singleton, creating it if it does not exist yet.
        """

        platform, _ = self.load_or_create(PlatformTable, PLATFORM_ID, new_platform)
        return platform

    def get_pools(self) -> list[PoolTable]:
        return list(self.session.scalars(select(PoolTable).order_by(PoolTable.created)).all())

    def get_positions(self, pool_id: str) -> list[PositionTable]:
        return list(
            self.session.scalars(select(PositionTable).where(PositionTable.pool_id == pool_id))
        )


def new_platform(platform_id: str) -> PlatformTable:
    return PlatformTable(
        id=platform_id,
        users=0,
        operations=0,
        tvl=ZERO_DECIMAL,
        volume=ZERO_DECIMAL,
        rewards_volume=ZERO_DECIMAL,
        gysr_spent=ZERO_DECIMAL,
        gysr_vested=ZERO_DECIMAL,
        active_pools=[],
        updated=0,
    )


def new_user(user_id: str) -> UserTable:
    return UserTable(
        id=user_id,
        operations=0,
        earned=ZERO_DECIMAL,
        gysr_spent=ZERO_DECIMAL,
    )


def new_token(
    token_id: str,
    decimals: int,
    name: str | None = None,
    symbol: str | None = None,
) -> TokenTable:
    return TokenTable(
        id=token_id,
        decimals=decimals,
        name=name,
        symbol=symbol,
        price=ZERO_DECIMAL,
        updated=0,
    )


def new_position(position_id: str, pool_id: str, user_id: str) -> PositionTable:
    return PositionTable(
        id=position_id,
        pool_id=pool_id,
        user_id=user_id,
        shares=ZERO_DECIMAL,
        stakes=[],
        updated=0,
    )


def new_pool(
    pool_id: str,
    version: int,
    staking_token_id: str,
    reward_token_ids: list[str],
    created: int,
    owner_id: str | None = None,
    last_update_block: int | None = None,
) -> PoolTable:
    """
    Build a pool record with zeroed aggregates. Reward tokens are attached in the given order, which
    fixes their index for the lifetime of the pool.
    """

    pool = PoolTable(
        id=pool_id,
        version=version,
        owner_id=owner_id,
        staking_token_id=staking_token_id,
        created=created,
        start=0,
        end=0,
        staked=ZERO_DECIMAL,
        funded=ZERO_DECIMAL,
        distributed=ZERO_DECIMAL,
        rewards=ZERO_DECIMAL,
        unlocked=ZERO_DECIMAL,
        gysr_spent=ZERO_DECIMAL,
        gysr_vested=ZERO_DECIMAL,
        tvl=ZERO_DECIMAL,
        volume=ZERO_DECIMAL,
        users=0,
        operations=0,
        staking_shares_per_token=Decimal(INITIAL_SHARES_PER_TOKEN),
        reward_shares_per_token=Decimal(INITIAL_SHARES_PER_TOKEN),
        fundings=[],
        updated=created,
        last_update_block=last_update_block,
    )
    pool.reward_tokens = [
        PoolRewardTokenTable(
            id=f"{pool_id}_{token_id}",
            pool_id=pool_id,
            token_id=token_id,
            index=index,
        )
        for index, token_id in enumerate(reward_token_ids)
    ]
    return pool
