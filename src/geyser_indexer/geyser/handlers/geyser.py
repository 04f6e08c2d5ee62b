"""
Event handlers for the original Geyser contract (pool version 0).

Stake lot shares are read back from the contract, which holds the newest lot at index
`stakeCount - 1` right after a stake. Stake lots are keyed by block timestamp.
"""

from geyser_indexer.database.models import PositionTable, StakeTable, UserTable
from geyser_indexer.exceptions import GeyserIndexerValueError
from geyser_indexer.functions import integer_to_decimal
from geyser_indexer.geyser.aggregates import get_pool_tokens, update_pool
from geyser_indexer.geyser.events import (
    GysrSpent,
    OwnershipTransferred,
    RewardsDistributed,
    RewardsExpired,
    RewardsFunded,
    RewardsUnlocked,
    Staked,
    Unstaked,
)
from geyser_indexer.geyser.reconciliation import append_stake_lot, reconcile_position
from geyser_indexer.logging import logger

from .base import (
    EventHandler,
    HandlerContext,
    VerboseConfig,
    get_or_create_position,
    get_or_create_user,
    get_unused_entity_id,
    handle_ownership_transferred,
    ignore_event,
    record_funding,
    roll_up_pool,
)


def handle_staked(context: HandlerContext, event: Staked) -> None:
    store, pool = context.store, context.pool
    tokens = get_pool_tokens(pool)
    platform = store.get_platform()

    user = get_or_create_user(store, platform, event.user)
    position = get_or_create_position(store, pool, user)

    count = context.reader.stake_count(event.user)
    if count == 0:
        raise GeyserIndexerValueError(
            f"Geyser {pool.id} reports no stakes for {event.user} after a stake."
        )
    lot = context.reader.user_stake(event.user, count - 1)
    shares = integer_to_decimal(lot.shares, tokens.staking.decimals)

    stake = append_stake_lot(
        store,
        position,
        stake_id=get_unused_entity_id(
            store, StakeTable, f"{position.id}_{event.meta.timestamp}", event.meta
        ),
        shares=shares,
        timestamp=event.meta.timestamp,
    )

    user.operations += 1
    pool.operations += 1
    platform.operations += 1

    update_pool(store, context.reader, context.oracle, pool, event.meta.timestamp)
    roll_up_pool(context, platform, event.meta.timestamp)
    store.save(position, user, pool, platform)

    if VerboseConfig.is_verbose(user_address=event.user, tx_hash=event.meta.transaction_hash):
        logger.info(f"Staked: {event.user} in {pool.id}")
        logger.info(f"  stake: {stake.id}")
        logger.info(f"  shares: {shares}")
        logger.info(f"  position shares: {position.shares}")


def handle_unstaked(context: HandlerContext, event: Unstaked) -> None:
    store, pool = context.store, context.pool
    tokens = get_pool_tokens(pool)
    platform = store.get_platform()

    user = store.require(UserTable, event.user.lower())
    position = store.require(PositionTable, f"{pool.id}_{user.id}")

    remaining = reconcile_position(
        store,
        context.reader,
        pool,
        position,
        user=event.user,
        decimals=tokens.staking.decimals,
        timestamp=event.meta.timestamp,
    )

    user.operations += 1
    pool.operations += 1
    platform.operations += 1

    update_pool(store, context.reader, context.oracle, pool, event.meta.timestamp)
    roll_up_pool(context, platform, event.meta.timestamp)
    store.save(user, pool, platform)

    if VerboseConfig.is_verbose(user_address=event.user, tx_hash=event.meta.transaction_hash):
        logger.info(f"Unstaked: {event.user} from {pool.id}")
        logger.info(f"  amount: {integer_to_decimal(event.amount, tokens.staking.decimals)}")
        logger.info(
            f"  position shares: {remaining.shares if remaining is not None else 'closed'}"
        )


def handle_rewards_funded(context: HandlerContext, event: RewardsFunded) -> None:
    store, pool = context.store, context.pool
    tokens = get_pool_tokens(pool)
    platform = store.get_platform()

    amount = integer_to_decimal(event.amount, tokens.reward.decimals)
    pool.funded += amount
    record_funding(
        store,
        pool,
        event.meta,
        token_id=tokens.reward.id,
        amount=amount,
        start=event.start,
        duration=event.duration,
    )

    # Remaining rewards are re-read from the contract, which already includes this funding
    update_pool(store, context.reader, context.oracle, pool, event.meta.timestamp)
    roll_up_pool(context, platform, event.meta.timestamp)
    store.save(pool, platform)


def handle_rewards_distributed(context: HandlerContext, event: RewardsDistributed) -> None:
    pool = context.pool
    tokens = get_pool_tokens(pool)

    amount = integer_to_decimal(event.amount, tokens.reward.decimals)
    pool.rewards -= amount
    pool.distributed += amount
    context.store.save(pool)


HANDLERS: dict[type, EventHandler] = {
    Staked: handle_staked,
    Unstaked: handle_unstaked,
    RewardsFunded: handle_rewards_funded,
    RewardsDistributed: handle_rewards_distributed,
    RewardsUnlocked: ignore_event,
    RewardsExpired: ignore_event,
    GysrSpent: ignore_event,
    OwnershipTransferred: handle_ownership_transferred,
}
