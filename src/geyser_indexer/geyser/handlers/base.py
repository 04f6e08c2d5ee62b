import os
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar

from geyser_indexer.checksum_cache import get_checksum_address
from geyser_indexer.config import IndexerSettings
from geyser_indexer.constants import ZERO_DECIMAL
from geyser_indexer.database.models import (
    Base,
    FundingTable,
    PlatformTable,
    PoolTable,
    PositionTable,
    TransactionTable,
    UserTable,
)
from geyser_indexer.database.store import EntityStore, new_position, new_user
from geyser_indexer.geyser.aggregates import activate_pool, update_platform
from geyser_indexer.geyser.events import EventMeta, OwnershipTransferred
from geyser_indexer.geyser.state_reader import GeyserStateReader
from geyser_indexer.logging import logger
from geyser_indexer.pricing import PriceOracle


@dataclass
class HandlerContext:
    """Context object passed to event handlers containing all necessary state."""

    store: EntityStore
    pool: PoolTable
    reader: GeyserStateReader
    oracle: PriceOracle
    settings: IndexerSettings


type EventHandler = Callable[[HandlerContext, Any], None]


class VerboseConfig:
    """Runtime configurable verbose logging settings for Geyser event processing."""

    all_enabled: ClassVar[bool] = False
    users: ClassVar[set[str]] = set()
    transactions: ClassVar[set[str]] = set()

    @classmethod
    def toggle_all(cls, *, enabled: bool | None = None) -> bool:
        """Toggle or set VERBOSE_ALL. Returns the new state."""
        if enabled is None:
            cls.all_enabled = not cls.all_enabled
        else:
            cls.all_enabled = enabled
        return cls.all_enabled

    @classmethod
    def add_user(cls, user_address: str) -> None:
        cls.users.add(get_checksum_address(user_address))

    @classmethod
    def clear_users(cls) -> None:
        cls.users.clear()

    @classmethod
    def add_transaction(cls, tx_hash: str) -> None:
        cls.transactions.add(tx_hash.lower())

    @classmethod
    def clear_transactions(cls) -> None:
        cls.transactions.clear()

    @classmethod
    def is_verbose(
        cls,
        user_address: str | None = None,
        tx_hash: str | None = None,
    ) -> bool:
        """Check if verbose logging should be enabled for the given context."""
        return (
            cls.all_enabled
            or (user_address is not None and user_address in cls.users)
            or (tx_hash is not None and tx_hash.lower() in cls.transactions)
        )


def _init_verbose_config_from_env() -> None:
    """Initialize VerboseConfig from environment variables."""
    # GEYSER_INDEXER_VERBOSE_ALL: Set to "1", "true", or "yes" to enable
    verbose_all = os.environ.get("GEYSER_INDEXER_VERBOSE_ALL", "").lower()
    if verbose_all in {"1", "true", "yes"}:
        VerboseConfig.toggle_all(enabled=True)

    # GEYSER_INDEXER_VERBOSE_USERS: Comma-separated list of addresses
    for addr in os.environ.get("GEYSER_INDEXER_VERBOSE_USERS", "").split(","):
        if addr_ := addr.strip():
            VerboseConfig.add_user(addr_)

    # GEYSER_INDEXER_VERBOSE_TX: Comma-separated list of transaction hashes
    for tx in os.environ.get("GEYSER_INDEXER_VERBOSE_TX", "").split(","):
        if tx_ := tx.strip():
            VerboseConfig.add_transaction(tx_)


_init_verbose_config_from_env()


def get_or_create_user(
    store: EntityStore,
    platform: PlatformTable,
    user_address: str,
) -> UserTable:
    """
    Get the user record, creating it and counting it on the platform if this is its first event.
    """

    user, created = store.load_or_create(UserTable, user_address.lower(), new_user)
    if created:
        platform.users += 1
    return user


def get_or_create_position(
    store: EntityStore,
    pool: PoolTable,
    user: UserTable,
) -> PositionTable:
    """
    Get the user's position in the pool, creating it and counting the user on the pool if absent.
    """

    position, created = store.load_or_create(
        PositionTable,
        f"{pool.id}_{user.id}",
        lambda position_id: new_position(position_id, pool_id=pool.id, user_id=user.id),
    )
    if created:
        pool.users += 1
    return position


def get_or_create_transaction(
    store: EntityStore,
    meta: EventMeta,
    pool: PoolTable,
    user: UserTable,
) -> TransactionTable:
    """
    Get the transaction record for the event's transaction hash.

    Several events of one transaction write to the same record, each setting only its own fields.
    An existing record is merged into, never replaced.
    """

    transaction, _ = store.load_or_create(
        TransactionTable,
        meta.transaction_hash,
        lambda transaction_id: TransactionTable(
            id=transaction_id,
            type=None,
            timestamp=meta.timestamp,
            pool_id=pool.id,
            user_id=user.id,
            amount=ZERO_DECIMAL,
            earnings=ZERO_DECIMAL,
            earnings_usd=ZERO_DECIMAL,
            gysr_spent=ZERO_DECIMAL,
        ),
    )
    return transaction


def get_unused_entity_id(
    store: EntityStore,
    table: type[Base],
    entity_id: str,
    meta: EventMeta,
) -> str:
    """
    Return `entity_id`, or `{entity_id}_{log_index}` if a record with that id already exists.

    Stake and funding ids are keyed by block timestamp or transaction hash, which several events
    can share. Each event still gets its own record.
    """

    if store.load(table, entity_id) is None:
        return entity_id

    unique_id = f"{entity_id}_{meta.log_index}"
    logger.warning(
        f"{table.__name__.removesuffix('Table')} {entity_id} already exists, recording event at "
        f"block {meta.block_number} log {meta.log_index} as {unique_id}"
    )
    return unique_id


def record_funding(
    store: EntityStore,
    pool: PoolTable,
    meta: EventMeta,
    token_id: str,
    amount: Decimal,
    start: int,
    duration: int,
) -> FundingTable:
    """
    Create a funding tranche emitting `amount` over [start, start + duration) and append it to the
    pool. Shares use the pool's reward share ratio as it stood before the funding.
    """

    shares = amount * pool.reward_shares_per_token
    funding = FundingTable(
        id=get_unused_entity_id(store, FundingTable, f"{pool.id}_{meta.timestamp}", meta),
        pool_id=pool.id,
        token_id=token_id,
        created_timestamp=meta.timestamp,
        start=start,
        end=start + duration,
        original_amount=amount,
        shares=shares,
        shares_per_second=shares / duration if duration else ZERO_DECIMAL,
        cleaned=False,
    )
    store.save(funding)
    pool.fundings = [*pool.fundings, funding.id]
    return funding


def roll_up_pool(context: HandlerContext, platform: PlatformTable, timestamp: int) -> None:
    """
    Propagate the pool's new TVL into the platform pricing set and platform TVL.
    """

    activate_pool(platform, context.pool, context.settings.pricing_min_tvl)
    update_platform(context.store, platform, context.pool, timestamp)


def handle_ownership_transferred(context: HandlerContext, event: OwnershipTransferred) -> None:
    """
    Process an OwnershipTransferred event.

    EVENT DEFINITION
    # event OwnershipTransferred(
    #     address indexed previousOwner,
    #     address indexed newOwner
    # );
    """

    platform = context.store.get_platform()
    owner = get_or_create_user(context.store, platform, event.new_owner)
    context.pool.owner_id = owner.id
    context.store.save(owner, context.pool, platform)

    logger.info(f"Pool {context.pool.id} ownership: {event.previous_owner} -> {event.new_owner}")


def ignore_event(context: HandlerContext, event: Any) -> None:  # noqa: ARG001
    """
    Accept an event that carries no state change for this pool version.
    """
