import logging
import os
import tempfile
from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from decimal import Decimal

import pytest

# Keep the test run away from the user's configuration and database
os.environ.setdefault("GEYSER_INDEXER_CONFIG_DIR", tempfile.mkdtemp(prefix="geyser_indexer_"))

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from geyser_indexer.checksum_cache import get_checksum_address  # noqa: E402
from geyser_indexer.config import IndexerSettings  # noqa: E402
from geyser_indexer.constants import INITIAL_SHARES_PER_TOKEN  # noqa: E402
from geyser_indexer.database.models import Base, PoolTable  # noqa: E402
from geyser_indexer.database.store import EntityStore, new_pool, new_token  # noqa: E402
from geyser_indexer.geyser.events import EventMeta  # noqa: E402
from geyser_indexer.geyser.handlers import HandlerContext  # noqa: E402
from geyser_indexer.geyser.state_reader import PoolTotals, StakeLot, UserTotals  # noqa: E402
from geyser_indexer.logging import logger  # noqa: E402
from geyser_indexer.pricing import FixedPriceOracle  # noqa: E402

POOL_ADDRESS = get_checksum_address("0x1111111111111111111111111111111111111111")
STAKING_TOKEN_ADDRESS = get_checksum_address("0x2222222222222222222222222222222222222222")
REWARD_TOKEN_ADDRESS = get_checksum_address("0x3333333333333333333333333333333333333333")
ALICE = get_checksum_address("0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa")
BOB = get_checksum_address("0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb")

STAKING_TOKEN_PRICE = Decimal(1)
REWARD_TOKEN_PRICE = Decimal(2)


@dataclass
class FakeGeyser:
    """
    In-memory stand-in for a Geyser contract's staking state.

    Stake lots are appended on stake and consumed from the end on unstake, partially consuming the
    last lot that survives, as the contract does.
    """

    lots: dict[str, list[StakeLot]] = field(default_factory=dict)
    staked: int = 0
    staking_shares: int = 0
    locked: int = 0
    unlocked: int = 0
    locked_shares: int = 0

    def stake(self, user: str, amount: int, timestamp: int) -> int:
        """
        Stake `amount` raw tokens for the user and return the minted raw shares.
        """

        if self.staked == 0:
            shares = amount * int(INITIAL_SHARES_PER_TOKEN)
        else:
            shares = amount * self.staking_shares // self.staked
        self.lots.setdefault(user.lower(), []).append(StakeLot(shares=shares, timestamp=timestamp))
        self.staked += amount
        self.staking_shares += shares
        return shares

    def unstake(self, user: str, shares: int) -> int:
        """
        Burn `shares` raw shares from the end of the user's lot list and return the raw token
        amount released.
        """

        user_lots = self.lots[user.lower()]
        assert shares <= sum(lot.shares for lot in user_lots)

        amount = shares * self.staked // self.staking_shares
        remaining = shares
        while remaining > 0:
            last = user_lots[-1]
            if last.shares <= remaining:
                user_lots.pop()
                remaining -= last.shares
            else:
                user_lots[-1] = StakeLot(shares=last.shares - remaining, timestamp=last.timestamp)
                remaining = 0

        self.staked -= amount
        self.staking_shares -= shares
        return amount

    def stake_count(self, user: str) -> int:
        return len(self.lots.get(user.lower(), []))

    def user_stake(self, user: str, index: int) -> StakeLot:
        return self.lots[user.lower()][index]

    def user_totals(self, user: str) -> UserTotals:
        return UserTotals(
            shares=sum(lot.shares for lot in self.lots.get(user.lower(), [])),
            last_updated=0,
            share_seconds=0,
        )

    def pool_totals(self) -> PoolTotals:
        return PoolTotals(
            staked=self.staked,
            staking_shares=self.staking_shares,
            locked=self.locked,
            unlocked=self.unlocked,
            locked_shares=self.locked_shares,
        )


def make_session() -> Session:
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    return Session(engine)


def add_pool(
    store: EntityStore,
    version: int,
    staking_decimals: int = 18,
    reward_decimals: int = 18,
    created: int = 1_600_000_000,
) -> PoolTable:
    store.save(
        new_token(STAKING_TOKEN_ADDRESS.lower(), decimals=staking_decimals, symbol="STK"),
        new_token(REWARD_TOKEN_ADDRESS.lower(), decimals=reward_decimals, symbol="RWD"),
    )
    store.get_platform()
    pool = new_pool(
        POOL_ADDRESS.lower(),
        version=version,
        staking_token_id=STAKING_TOKEN_ADDRESS.lower(),
        reward_token_ids=[REWARD_TOKEN_ADDRESS.lower()],
        created=created,
    )
    store.save(pool)
    store.session.flush()
    return pool


def make_meta(
    timestamp: int,
    transaction_hash: str | None = None,
    block_number: int = 1,
    log_index: int = 0,
) -> EventMeta:
    return EventMeta(
        address=POOL_ADDRESS,
        block_number=block_number,
        log_index=log_index,
        timestamp=timestamp,
        transaction_hash=transaction_hash or f"0x{timestamp:064x}",
    )


def make_oracle() -> FixedPriceOracle:
    return FixedPriceOracle(
        {
            STAKING_TOKEN_ADDRESS: STAKING_TOKEN_PRICE,
            REWARD_TOKEN_ADDRESS: REWARD_TOKEN_PRICE,
        }
    )


@pytest.fixture(scope="session", autouse=True)
def _set_geyser_indexer_logging():
    """
    Set the logging level to DEBUG for the test run
    """
    logger.setLevel(logging.DEBUG)


@pytest.fixture
def session() -> Generator[Session, None, None]:
    session = make_session()
    yield session
    session.close()


@pytest.fixture
def store(session: Session) -> EntityStore:
    return EntityStore(session)


@pytest.fixture
def fake_geyser() -> FakeGeyser:
    return FakeGeyser()


@pytest.fixture
def oracle() -> FixedPriceOracle:
    return make_oracle()


@pytest.fixture
def context_factory(
    store: EntityStore,
    fake_geyser: FakeGeyser,
    oracle: FixedPriceOracle,
) -> Callable[[PoolTable], HandlerContext]:
    def _make_context(pool: PoolTable) -> HandlerContext:
        return HandlerContext(
            store=store,
            pool=pool,
            reader=fake_geyser,
            oracle=oracle,
            settings=IndexerSettings(),
        )

    return _make_context
