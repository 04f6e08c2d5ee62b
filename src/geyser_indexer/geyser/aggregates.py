"""
Pool and platform aggregate updates.

Every stake, unstake and funding event refreshes the pool's token prices, share ratios, TVL and
reward unlock progress from contract state, then rolls the pool's TVL up into the platform.
"""

from dataclasses import dataclass
from decimal import Decimal

from geyser_indexer.constants import INITIAL_SHARES_PER_TOKEN, SECONDS_PER_DAY, ZERO_DECIMAL
from geyser_indexer.database.models import (
    FundingTable,
    PlatformTable,
    PoolDayDataTable,
    PoolTable,
    TokenTable,
)
from geyser_indexer.database.store import EntityStore
from geyser_indexer.exceptions import GeyserIndexerValueError
from geyser_indexer.functions import day_index, integer_to_decimal
from geyser_indexer.geyser.state_reader import GeyserStateReader
from geyser_indexer.logging import logger
from geyser_indexer.pricing import PriceOracle, update_token_price


@dataclass(frozen=True, slots=True)
class PoolTokens:
    """
    A pool's tokens addressed by role. Reward tokens are in their fixed pool index order.
    """

    staking: TokenTable
    rewards: list[TokenTable]

    @property
    def reward(self) -> TokenTable:
        return self.rewards[0]


def get_pool_tokens(pool: PoolTable) -> PoolTokens:
    """
    Resolve the pool's staking and reward tokens.

    Geyser pools distribute a single reward token. A pool registered with more than one is handled
    through the token at index 0.
    """

    rewards = [reward_token.token for reward_token in pool.reward_tokens]
    if not rewards:
        raise GeyserIndexerValueError(f"Pool {pool.id} has no reward token.")
    if len(rewards) > 1:
        logger.warning(
            f"Pool {pool.id} has {len(rewards)} reward tokens, only {rewards[0].id} is tracked"
        )
    return PoolTokens(staking=pool.staking_token, rewards=rewards)


def _ratio_or_initial(numerator: int, denominator: int) -> Decimal:
    if denominator == 0:
        return INITIAL_SHARES_PER_TOKEN
    return Decimal(numerator) / Decimal(denominator)


def get_unlocked_amount(store: EntityStore, pool: PoolTable, timestamp: int) -> Decimal:
    """
    Get the reward amount unlocked so far across the pool's live funding tranches. Each tranche
    unlocks linearly over its [start, end) window.
    """

    unlocked = ZERO_DECIMAL
    for funding_id in pool.fundings:
        funding = store.require(FundingTable, funding_id)
        if funding.cleaned:
            continue

        if funding.end <= funding.start:
            fraction = Decimal(1) if timestamp >= funding.end else ZERO_DECIMAL
        else:
            fraction = Decimal(timestamp - funding.start) / Decimal(funding.end - funding.start)
            fraction = min(max(fraction, ZERO_DECIMAL), Decimal(1))

        unlocked += funding.original_amount * fraction
    return unlocked


def update_pool(
    store: EntityStore,
    reader: GeyserStateReader,
    oracle: PriceOracle,
    pool: PoolTable,
    timestamp: int,
) -> None:
    """
    Refresh the pool's token prices, share ratios, reward balance, unlock progress and TVL.
    """

    tokens = get_pool_tokens(pool)
    staking_price = update_token_price(oracle, tokens.staking, timestamp)
    reward_price = update_token_price(oracle, tokens.reward, timestamp)

    totals = reader.pool_totals()

    pool.staked = integer_to_decimal(totals.staked, tokens.staking.decimals)
    pool.rewards = integer_to_decimal(totals.locked + totals.unlocked, tokens.reward.decimals)
    pool.staking_shares_per_token = _ratio_or_initial(totals.staking_shares, totals.staked)
    pool.reward_shares_per_token = _ratio_or_initial(totals.locked_shares, totals.locked)
    pool.unlocked = get_unlocked_amount(store, pool, timestamp)
    pool.tvl = pool.staked * staking_price + pool.rewards * reward_price
    pool.updated = timestamp

    store.save(tokens.staking, tokens.reward, pool)


def activate_pool(platform: PlatformTable, pool: PoolTable, min_tvl: Decimal) -> bool:
    """
    Add the pool to the platform pricing set once its TVL exceeds `min_tvl`. Pools are never
    removed from the set. Returns True if the pool was added by this call.
    """

    if pool.tvl <= min_tvl or pool.id in platform.active_pools:
        return False

    logger.info(f"Adding pool to active pricing {pool.id}")
    platform.active_pools = [*platform.active_pools, pool.id]
    return True


def update_platform(
    store: EntityStore,
    platform: PlatformTable,
    pool: PoolTable,
    timestamp: int,
) -> None:
    """
    Recompute platform TVL as the sum over all active pools. The in-memory `pool` is used in place
    of its stored copy.
    """

    tvl = ZERO_DECIMAL
    for pool_id in platform.active_pools:
        active_pool = pool if pool_id == pool.id else store.require(PoolTable, pool_id)
        tvl += active_pool.tvl

    platform.tvl = tvl
    platform.updated = timestamp
    store.save(platform)


def update_pool_day_data(store: EntityStore, pool: PoolTable, timestamp: int) -> PoolDayDataTable:
    """
    Get the daily volume bucket for the pool, creating it on the first event of the day. `date` is
    the timestamp at the start of the day.
    """

    day = day_index(timestamp)
    day_data, _ = store.load_or_create(
        PoolDayDataTable,
        f"{pool.id}_{day}",
        lambda day_data_id: PoolDayDataTable(
            id=day_data_id,
            pool_id=pool.id,
            date=day * SECONDS_PER_DAY,
            volume=ZERO_DECIMAL,
        ),
    )
    return day_data
