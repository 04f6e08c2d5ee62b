from decimal import Decimal

import pytest

from geyser_indexer.constants import INITIAL_SHARES_PER_TOKEN, SECONDS_PER_DAY
from geyser_indexer.database.models import FundingTable, PoolDayDataTable
from geyser_indexer.database.store import EntityStore, new_pool, new_token
from geyser_indexer.geyser.aggregates import (
    activate_pool,
    get_pool_tokens,
    get_unlocked_amount,
    update_platform,
    update_pool,
    update_pool_day_data,
)
from geyser_indexer.pricing import FixedPriceOracle

from ..conftest import (
    REWARD_TOKEN_ADDRESS,
    REWARD_TOKEN_PRICE,
    STAKING_TOKEN_ADDRESS,
    STAKING_TOKEN_PRICE,
    FakeGeyser,
    add_pool,
)


def _add_funding(
    store: EntityStore,
    pool_id: str,
    created: int,
    start: int,
    end: int,
    amount: Decimal,
    *,
    cleaned: bool = False,
) -> FundingTable:
    funding = FundingTable(
        id=f"{pool_id}_{created}",
        pool_id=pool_id,
        token_id=REWARD_TOKEN_ADDRESS.lower(),
        created_timestamp=created,
        start=start,
        end=end,
        original_amount=amount,
        shares=amount,
        shares_per_second=Decimal(0),
        cleaned=cleaned,
    )
    store.save(funding)
    return funding


def test_update_pool(store: EntityStore, fake_geyser: FakeGeyser, oracle: FixedPriceOracle):
    pool = add_pool(store, version=1, staking_decimals=6, reward_decimals=18)
    fake_geyser.staked = 5_000_000
    fake_geyser.staking_shares = 10_000_000
    fake_geyser.locked = 3 * 10**18
    fake_geyser.unlocked = 10**18
    fake_geyser.locked_shares = 6 * 10**18

    update_pool(store, fake_geyser, oracle, pool, timestamp=1_600_000_100)

    assert pool.staked == Decimal(5)
    assert pool.rewards == Decimal(4)
    assert pool.staking_shares_per_token == Decimal(2)
    assert pool.reward_shares_per_token == Decimal(2)
    assert pool.tvl == Decimal(5) * STAKING_TOKEN_PRICE + Decimal(4) * REWARD_TOKEN_PRICE
    assert pool.updated == 1_600_000_100

    tokens = get_pool_tokens(pool)
    assert tokens.staking.price == STAKING_TOKEN_PRICE
    assert tokens.staking.updated == 1_600_000_100
    assert tokens.reward.price == REWARD_TOKEN_PRICE


def test_update_pool_with_empty_contract(
    store: EntityStore, fake_geyser: FakeGeyser, oracle: FixedPriceOracle
):
    pool = add_pool(store, version=1)

    update_pool(store, fake_geyser, oracle, pool, timestamp=1_600_000_100)

    assert pool.staked == 0
    assert pool.tvl == 0
    assert pool.staking_shares_per_token == INITIAL_SHARES_PER_TOKEN
    assert pool.reward_shares_per_token == INITIAL_SHARES_PER_TOKEN


def test_update_pool_with_pricing_gap(store: EntityStore, fake_geyser: FakeGeyser):
    pool = add_pool(store, version=1)
    fake_geyser.staked = fake_geyser.staking_shares = 10**18

    update_pool(
        store,
        fake_geyser,
        FixedPriceOracle({STAKING_TOKEN_ADDRESS: Decimal(3)}),
        pool,
        timestamp=1_600_000_100,
    )

    assert pool.tvl == Decimal(3)
    assert get_pool_tokens(pool).reward.price == 0


def test_unlocked_amount(store: EntityStore):
    pool = add_pool(store, version=1)
    first = _add_funding(store, pool.id, 1, start=1_000, end=2_000, amount=Decimal(100))
    second = _add_funding(store, pool.id, 2, start=1_500, end=1_600, amount=Decimal(10))
    cleaned = _add_funding(
        store, pool.id, 3, start=0, end=100, amount=Decimal(1_000), cleaned=True
    )
    pool.fundings = [first.id, second.id, cleaned.id]
    store.session.flush()

    assert get_unlocked_amount(store, pool, 500) == 0
    assert get_unlocked_amount(store, pool, 1_500) == Decimal(50)
    assert get_unlocked_amount(store, pool, 1_550) == Decimal(55) + Decimal(5)
    assert get_unlocked_amount(store, pool, 5_000) == Decimal(110)


def test_activate_pool_is_monotonic(store: EntityStore):
    pool = add_pool(store, version=1)
    platform = store.get_platform()
    min_tvl = Decimal(1_000)

    pool.tvl = Decimal(1_000)
    assert not activate_pool(platform, pool, min_tvl)
    assert platform.active_pools == []

    pool.tvl = Decimal("1000.01")
    assert activate_pool(platform, pool, min_tvl)
    assert platform.active_pools == [pool.id]

    pool.tvl = Decimal(0)
    assert not activate_pool(platform, pool, min_tvl)
    pool.tvl = Decimal(5_000)
    assert not activate_pool(platform, pool, min_tvl)
    assert platform.active_pools == [pool.id]


def test_update_platform_sums_active_pools(store: EntityStore):
    pool = add_pool(store, version=1)
    other = new_pool(
        "0x4444444444444444444444444444444444444444",
        version=0,
        staking_token_id=STAKING_TOKEN_ADDRESS.lower(),
        reward_token_ids=[REWARD_TOKEN_ADDRESS.lower()],
        created=0,
    )
    other.tvl = Decimal(2_500)
    inactive = new_pool(
        "0x5555555555555555555555555555555555555555",
        version=0,
        staking_token_id=STAKING_TOKEN_ADDRESS.lower(),
        reward_token_ids=[REWARD_TOKEN_ADDRESS.lower()],
        created=0,
    )
    inactive.tvl = Decimal(10**6)
    store.save(other, inactive)

    platform = store.get_platform()
    platform.active_pools = [other.id, pool.id]
    pool.tvl = Decimal(1_500)

    update_platform(store, platform, pool, timestamp=1_700_000_000)

    assert platform.tvl == Decimal(4_000)
    assert platform.updated == 1_700_000_000


def test_update_pool_day_data(store: EntityStore):
    pool = add_pool(store, version=1)
    timestamp = 1_600_000_000

    day_data = update_pool_day_data(store, pool, timestamp)
    day_data.volume += Decimal(10)
    store.session.flush()

    same_day = update_pool_day_data(store, pool, timestamp + 60)
    assert same_day is day_data
    assert same_day.id == f"{pool.id}_{timestamp // SECONDS_PER_DAY}"
    assert same_day.date == (timestamp // SECONDS_PER_DAY) * SECONDS_PER_DAY
    assert same_day.volume == Decimal(10)

    next_day = update_pool_day_data(store, pool, timestamp + SECONDS_PER_DAY)
    assert next_day is not day_data
    assert next_day.volume == 0
    assert store.session.query(PoolDayDataTable).count() == 2


def test_get_pool_tokens_with_several_reward_tokens(store: EntityStore):
    store.save(
        new_token("0xa", decimals=18),
        new_token("0xb", decimals=6),
        new_token("0xc", decimals=8),
    )
    pool = new_pool(
        "0xpool", version=1, staking_token_id="0xa", reward_token_ids=["0xb", "0xc"], created=0
    )
    store.save(pool)
    store.session.flush()

    tokens = get_pool_tokens(pool)

    assert tokens.staking.id == "0xa"
    assert [token.id for token in tokens.rewards] == ["0xb", "0xc"]
    assert tokens.reward.id == "0xb"


@pytest.mark.parametrize("timestamp", [0, 1_600_000_000])
def test_update_pool_sets_unlocked(
    store: EntityStore, fake_geyser: FakeGeyser, oracle: FixedPriceOracle, timestamp: int
):
    pool = add_pool(store, version=1)
    funding = _add_funding(store, pool.id, 1, start=0, end=timestamp + 1, amount=Decimal(1))
    pool.fundings = [funding.id]
    store.session.flush()

    update_pool(store, fake_geyser, oracle, pool, timestamp=timestamp)

    assert pool.unlocked == get_unlocked_amount(store, pool, timestamp)
