"""
Event handlers for the GeyserV1 contract (pool version 1).

On top of the pool and position state kept for the original Geyser, GeyserV1 pools record a
transaction audit trail, daily and platform USD volume, GYSR spending and funding tranches.

A GeyserV1 transaction emits its events in a fixed order, e.g. `Unstaked`, `RewardsDistributed`,
`GysrSpent`. Each writes its own fields of the shared transaction record.
"""

from geyser_indexer.constants import DEFAULT_DECIMALS
from geyser_indexer.database.models import (
    FundingTable,
    PositionTable,
    StakeTable,
    TokenTable,
    UserTable,
)
from geyser_indexer.database.store import new_token
from geyser_indexer.functions import integer_to_decimal
from geyser_indexer.geyser.aggregates import get_pool_tokens, update_pool, update_pool_day_data
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
from geyser_indexer.pricing import update_token_price

from .base import (
    EventHandler,
    HandlerContext,
    VerboseConfig,
    get_or_create_position,
    get_or_create_transaction,
    get_or_create_user,
    get_unused_entity_id,
    handle_ownership_transferred,
    ignore_event,
    record_funding,
    roll_up_pool,
)


def handle_staked(context: HandlerContext, event: Staked) -> None:
    """
    Process a Staked event.

    EVENT DEFINITION
    # event Staked(
    #     address indexed user,
    #     uint256 amount,
    #     uint256 total,
    #     bytes data
    # );
    """

    store, pool = context.store, context.pool
    tokens = get_pool_tokens(pool)
    platform = store.get_platform()
    timestamp = event.meta.timestamp

    user = get_or_create_user(store, platform, event.user)
    position = get_or_create_position(store, pool, user)

    # The share ratio must reflect the contract state after the stake
    update_pool(store, context.reader, context.oracle, pool, timestamp)

    amount = integer_to_decimal(event.amount, tokens.staking.decimals)
    shares = amount * pool.staking_shares_per_token
    stake = append_stake_lot(
        store,
        position,
        stake_id=get_unused_entity_id(
            store, StakeTable, f"{position.id}_{event.meta.transaction_hash}", event.meta
        ),
        shares=shares,
        timestamp=timestamp,
    )

    user.operations += 1
    pool.operations += 1
    platform.operations += 1

    transaction = get_or_create_transaction(store, event.meta, pool, user)
    transaction.type = "Stake"
    transaction.amount = amount

    volume = amount * tokens.staking.price
    pool_day_data = update_pool_day_data(store, pool, timestamp)
    platform.volume += volume
    pool.volume += volume
    pool_day_data.volume += volume

    roll_up_pool(context, platform, timestamp)
    store.save(position, user, pool, transaction, pool_day_data, platform)

    if VerboseConfig.is_verbose(user_address=event.user, tx_hash=event.meta.transaction_hash):
        logger.info(f"Staked: {event.user} in {pool.id}")
        logger.info(f"  amount: {amount}")
        logger.info(f"  stake: {stake.id}")
        logger.info(f"  shares: {shares}")
        logger.info(f"  position shares: {position.shares}")


def handle_unstaked(context: HandlerContext, event: Unstaked) -> None:
    """
    Process an Unstaked event.

    EVENT DEFINITION
    # event Unstaked(
    #     address indexed user,
    #     uint256 amount,
    #     uint256 total,
    #     bytes data
    # );
    """

    store, pool = context.store, context.pool
    tokens = get_pool_tokens(pool)
    platform = store.get_platform()
    timestamp = event.meta.timestamp

    user = store.require(UserTable, event.user.lower())
    position = store.require(PositionTable, f"{pool.id}_{user.id}")

    amount = integer_to_decimal(event.amount, tokens.staking.decimals)
    remaining = reconcile_position(
        store,
        context.reader,
        pool,
        position,
        user=event.user,
        decimals=tokens.staking.decimals,
        timestamp=timestamp,
    )

    user.operations += 1
    pool.operations += 1
    platform.operations += 1

    transaction = get_or_create_transaction(store, event.meta, pool, user)
    transaction.type = "Unstake"
    transaction.amount = amount

    update_pool(store, context.reader, context.oracle, pool, timestamp)
    pool_day_data = update_pool_day_data(store, pool, timestamp)

    roll_up_pool(context, platform, timestamp)
    store.save(user, pool, transaction, pool_day_data, platform)

    if VerboseConfig.is_verbose(user_address=event.user, tx_hash=event.meta.transaction_hash):
        logger.info(f"Unstaked: {event.user} from {pool.id}")
        logger.info(f"  amount: {amount}")
        logger.info(
            f"  position shares: {remaining.shares if remaining is not None else 'closed'}"
        )


def handle_rewards_funded(context: HandlerContext, event: RewardsFunded) -> None:
    """
    Process a RewardsFunded event.

    EVENT DEFINITION
    # event RewardsFunded(
    #     uint256 amount,
    #     uint256 duration,
    #     uint256 start,
    #     uint256 total
    # );
    """

    store, pool = context.store, context.pool
    tokens = get_pool_tokens(pool)
    platform = store.get_platform()

    amount = integer_to_decimal(event.amount, tokens.reward.decimals)
    pool.funded += amount

    # Widen the campaign window to cover the new tranche
    end = event.start + event.duration
    if event.start < pool.start or pool.start == 0:
        pool.start = event.start
    if end > pool.end or pool.end == 0:
        pool.end = end

    record_funding(
        store,
        pool,
        event.meta,
        token_id=tokens.reward.id,
        amount=amount,
        start=event.start,
        duration=event.duration,
    )

    update_pool(store, context.reader, context.oracle, pool, event.meta.timestamp)
    roll_up_pool(context, platform, event.meta.timestamp)
    store.save(pool, platform)


def handle_rewards_distributed(context: HandlerContext, event: RewardsDistributed) -> None:
    """
    Process a RewardsDistributed event.

    EVENT DEFINITION
    # event RewardsDistributed(
    #     address indexed user,
    #     uint256 amount
    # );
    """

    store, pool = context.store, context.pool
    token = get_pool_tokens(pool).reward
    platform = store.get_platform()
    timestamp = event.meta.timestamp

    user = store.require(UserTable, event.user.lower())

    amount = integer_to_decimal(event.amount, token.decimals)
    pool.distributed += amount

    price = update_token_price(context.oracle, token, timestamp, historical=True)
    volume = amount * price
    pool_day_data = update_pool_day_data(store, pool, timestamp)
    platform.volume += volume
    platform.rewards_volume += volume
    pool.volume += volume
    pool_day_data.volume += volume
    user.earned += volume

    transaction = get_or_create_transaction(store, event.meta, pool, user)
    transaction.earnings = amount
    transaction.earnings_usd = volume

    store.save(token, pool, transaction, user, platform, pool_day_data)


def handle_rewards_expired(context: HandlerContext, event: RewardsExpired) -> None:
    """
    Process a RewardsExpired event.

    EVENT DEFINITION
    # event RewardsExpired(
    #     uint256 amount,
    #     uint256 duration,
    #     uint256 start
    # );

    Marks the first live funding tranche with the same window and original amount as cleaned.
    """

    store, pool = context.store, context.pool
    token = get_pool_tokens(pool).reward
    amount = integer_to_decimal(event.amount, token.decimals)

    for funding_id in pool.fundings:
        funding = store.require(FundingTable, funding_id)
        if (
            not funding.cleaned
            and funding.start == event.start
            and funding.end == event.start + event.duration
            and funding.original_amount == amount
        ):
            funding.cleaned = True
            store.save(funding)
            break
    else:
        logger.warning(
            f"No funding of {pool.id} matches expired rewards {amount} starting {event.start}"
        )


def handle_gysr_spent(context: HandlerContext, event: GysrSpent) -> None:
    """
    Process a GysrSpent event.

    EVENT DEFINITION
    # event GysrSpent(
    #     address indexed user,
    #     uint256 amount
    # );
    """

    store, pool = context.store, context.pool
    platform = store.get_platform()
    timestamp = event.meta.timestamp

    amount = integer_to_decimal(event.amount, DEFAULT_DECIMALS)
    user = store.require(UserTable, event.user.lower())

    transaction = get_or_create_transaction(store, event.meta, pool, user)
    transaction.gysr_spent = amount

    user.gysr_spent += amount
    pool.gysr_spent += amount
    pool.gysr_vested += amount
    platform.gysr_spent += amount
    platform.gysr_vested += amount

    gysr, _ = store.load_or_create(
        TokenTable,
        context.settings.gysr_token.lower(),
        lambda token_id: new_token(token_id, decimals=DEFAULT_DECIMALS, name="GYSR", symbol="GYSR"),
    )
    price = update_token_price(context.oracle, gysr, timestamp, historical=True)

    volume = amount * price
    pool_day_data = update_pool_day_data(store, pool, timestamp)
    platform.volume += volume
    pool.volume += volume
    pool_day_data.volume += volume

    store.save(transaction, user, pool, platform, pool_day_data, gysr)


HANDLERS: dict[type, EventHandler] = {
    Staked: handle_staked,
    Unstaked: handle_unstaked,
    RewardsFunded: handle_rewards_funded,
    RewardsDistributed: handle_rewards_distributed,
    RewardsUnlocked: ignore_event,
    RewardsExpired: handle_rewards_expired,
    GysrSpent: handle_gysr_spent,
    OwnershipTransferred: handle_ownership_transferred,
}
