import hypothesis
import hypothesis.strategies
import pytest
from sqlalchemy import func, select

from geyser_indexer.config import IndexerSettings
from geyser_indexer.database.models import PositionTable, StakeTable
from geyser_indexer.database.store import EntityStore
from geyser_indexer.functions import integer_to_decimal
from geyser_indexer.geyser import GeyserEventProcessor
from geyser_indexer.geyser.events import Staked, Unstaked

from ..conftest import ALICE, FakeGeyser, add_pool, make_meta, make_oracle, make_session

TIMESTAMP = 1_600_000_000
MAX_AMOUNT = 10**30

operations = hypothesis.strategies.lists(
    hypothesis.strategies.one_of(
        hypothesis.strategies.tuples(
            hypothesis.strategies.just("stake"),
            hypothesis.strategies.integers(min_value=1, max_value=MAX_AMOUNT),
        ),
        hypothesis.strategies.tuples(
            hypothesis.strategies.just("unstake"),
            hypothesis.strategies.integers(min_value=1, max_value=100),
        ),
    ),
    min_size=1,
    max_size=12,
)


def _setup(version: int) -> tuple[EntityStore, FakeGeyser, GeyserEventProcessor, str]:
    session = make_session()
    store = EntityStore(session)
    pool = add_pool(store, version=version)
    position_id = f"{pool.id}_{ALICE.lower()}"
    session.commit()

    fake_geyser = FakeGeyser()
    processor = GeyserEventProcessor(
        session_factory=lambda: session,
        reader_factory=lambda address, block_number: fake_geyser,  # noqa: ARG005
        oracle=make_oracle(),
        settings=IndexerSettings(),
    )
    return store, fake_geyser, processor, position_id


def _stake(processor: GeyserEventProcessor, fake: FakeGeyser, amount: int, timestamp: int) -> None:
    fake.stake(ALICE, amount, timestamp)
    processor.process(Staked(meta=make_meta(timestamp), user=ALICE, amount=amount, total=0))


def _unstake(
    processor: GeyserEventProcessor, fake: FakeGeyser, shares: int, timestamp: int
) -> None:
    amount = fake.unstake(ALICE, shares)
    processor.process(Unstaked(meta=make_meta(timestamp), user=ALICE, amount=amount, total=0))


def _count_stakes(store: EntityStore) -> int:
    return store.session.scalar(select(func.count()).select_from(StakeTable))


@hypothesis.settings(max_examples=50, deadline=None)
@hypothesis.given(operations=operations)
def test_stake_lots_mirror_contract(operations: list[tuple[str, int]]) -> None:
    """
    After every event the stored lots match the contract's lot list one for one, and the position
    holds the sum of the contract's lot shares.
    """

    store, fake_geyser, processor, position_id = _setup(version=0)

    for i, (operation, value) in enumerate(operations):
        timestamp = TIMESTAMP + i
        if operation == "stake":
            _stake(processor, fake_geyser, value, timestamp)
        else:
            total_shares = fake_geyser.user_totals(ALICE).shares
            if total_shares == 0:
                continue
            _unstake(processor, fake_geyser, max(1, total_shares * value // 100), timestamp)

        contract_lots = fake_geyser.lots.get(ALICE.lower(), [])
        position = store.load(PositionTable, position_id)

        if not contract_lots:
            assert position is None
            assert _count_stakes(store) == 0
            continue

        assert position is not None
        assert store.get_pools()[0].users == 1
        assert len(position.stakes) == len(contract_lots)
        assert position.shares == integer_to_decimal(fake_geyser.user_totals(ALICE).shares)
        for stake_id, contract_lot in zip(position.stakes, contract_lots, strict=True):
            stake = store.require(StakeTable, stake_id)
            assert stake.shares == integer_to_decimal(contract_lot.shares)
            assert stake.timestamp == contract_lot.timestamp


@pytest.mark.parametrize("version", [0, 1])
@pytest.mark.parametrize("amount", [1, MAX_AMOUNT])
def test_full_unstake_closes_position(version: int, amount: int) -> None:
    store, fake_geyser, processor, position_id = _setup(version=version)

    _stake(processor, fake_geyser, amount, TIMESTAMP)
    position = store.require(PositionTable, position_id)
    assert position.shares == integer_to_decimal(fake_geyser.user_totals(ALICE).shares)
    assert store.get_pools()[0].users == 1

    _unstake(processor, fake_geyser, fake_geyser.user_totals(ALICE).shares, TIMESTAMP + 1)

    assert store.load(PositionTable, position_id) is None
    assert _count_stakes(store) == 0
    pool = store.get_pools()[0]
    assert pool.users == 0
    assert pool.staked == 0


@hypothesis.settings(max_examples=25, deadline=None)
@hypothesis.given(
    version=hypothesis.strategies.sampled_from([0, 1]),
    amounts=hypothesis.strategies.lists(
        hypothesis.strategies.integers(min_value=1, max_value=MAX_AMOUNT),
        min_size=1,
        max_size=5,
    ),
)
def test_stake_then_unstake_everything(version: int, amounts: list[int]) -> None:
    store, fake_geyser, processor, position_id = _setup(version=version)

    for i, amount in enumerate(amounts):
        _stake(processor, fake_geyser, amount, TIMESTAMP + i)

    position = store.require(PositionTable, position_id)
    assert len(position.stakes) == len(amounts)
    assert position.shares == integer_to_decimal(fake_geyser.user_totals(ALICE).shares)

    _unstake(
        processor, fake_geyser, fake_geyser.user_totals(ALICE).shares, TIMESTAMP + len(amounts)
    )

    assert store.load(PositionTable, position_id) is None
    assert _count_stakes(store) == 0
    assert store.get_pools()[0].users == 0
