import eth_abi.abi
import pytest
from eth_utils.crypto import keccak
from hexbytes import HexBytes
from web3.types import LogReceipt

from geyser_indexer.exceptions import UnknownEventError
from geyser_indexer.geyser.events import (
    GeyserEventTopic,
    OwnershipTransferred,
    RewardsExpired,
    RewardsFunded,
    Staked,
    Unstaked,
    decode_geyser_log,
)

from ..conftest import ALICE, BOB, POOL_ADDRESS

TX_HASH = HexBytes("0x" + "ab" * 32)


def _address_topic(address: str) -> HexBytes:
    return HexBytes(eth_abi.abi.encode(["address"], [address]))


def _make_log(topics: list[HexBytes], data: bytes) -> LogReceipt:
    return LogReceipt(
        address=POOL_ADDRESS.lower(),  # type: ignore[typeddict-item]
        blockHash=HexBytes("0x" + "00" * 32),  # type: ignore[typeddict-item]
        blockNumber=12_345_678,  # type: ignore[typeddict-item]
        data=HexBytes(data),
        logIndex=7,
        removed=False,
        topics=topics,  # type: ignore[typeddict-item]
        transactionHash=TX_HASH,  # type: ignore[typeddict-item]
        transactionIndex=0,
    )


def test_topic_hashes():
    assert GeyserEventTopic.STAKED.value == HexBytes(
        keccak(text="Staked(address,uint256,uint256,bytes)")
    )
    assert len({topic.value for topic in GeyserEventTopic}) == len(GeyserEventTopic)


def test_decode_staked():
    log = _make_log(
        topics=[GeyserEventTopic.STAKED.value, _address_topic(ALICE)],
        data=eth_abi.abi.encode(["uint256", "uint256", "bytes"], [5_000_000, 7_000_000, b""]),
    )

    event = decode_geyser_log(log, timestamp=1_600_000_000)

    assert isinstance(event, Staked)
    assert event.user == ALICE
    assert event.amount == 5_000_000
    assert event.total == 7_000_000
    assert event.meta.address == POOL_ADDRESS
    assert event.meta.block_number == 12_345_678
    assert event.meta.log_index == 7
    assert event.meta.timestamp == 1_600_000_000
    assert event.meta.transaction_hash == "0x" + "ab" * 32


def test_decode_unstaked():
    log = _make_log(
        topics=[GeyserEventTopic.UNSTAKED.value, _address_topic(BOB)],
        data=eth_abi.abi.encode(["uint256", "uint256", "bytes"], [1, 0, b"\x01\x02"]),
    )

    event = decode_geyser_log(log, timestamp=0)

    assert isinstance(event, Unstaked)
    assert event.user == BOB
    assert event.amount == 1
    assert event.total == 0


def test_decode_rewards_funded():
    log = _make_log(
        topics=[GeyserEventTopic.REWARDS_FUNDED.value],
        data=eth_abi.abi.encode(["uint256"] * 4, [10**18, 86_400, 1_600_000_000, 10**18]),
    )

    event = decode_geyser_log(log, timestamp=1_600_000_000)

    assert event == RewardsFunded(
        meta=event.meta,
        amount=10**18,
        duration=86_400,
        start=1_600_000_000,
        total=10**18,
    )


def test_decode_rewards_expired():
    log = _make_log(
        topics=[GeyserEventTopic.REWARDS_EXPIRED.value],
        data=eth_abi.abi.encode(["uint256"] * 3, [500, 3_600, 1_600_000_000]),
    )

    event = decode_geyser_log(log, timestamp=1_600_100_000)

    assert isinstance(event, RewardsExpired)
    assert (event.amount, event.duration, event.start) == (500, 3_600, 1_600_000_000)


def test_decode_ownership_transferred():
    log = _make_log(
        topics=[
            GeyserEventTopic.OWNERSHIP_TRANSFERRED.value,
            _address_topic(ALICE),
            _address_topic(BOB),
        ],
        data=b"",
    )

    event = decode_geyser_log(log, timestamp=0)

    assert isinstance(event, OwnershipTransferred)
    assert event.previous_owner == ALICE
    assert event.new_owner == BOB


def test_decode_unknown_topic():
    log = _make_log(
        topics=[HexBytes(keccak(text="Transfer(address,address,uint256)"))],
        data=b"",
    )

    with pytest.raises(UnknownEventError):
        decode_geyser_log(log, timestamp=0)
