"""
Typed Geyser events and decoding of raw logs.

Both contract versions emit the same event signatures:

    event Staked(address indexed user, uint256 amount, uint256 total, bytes data);
    event Unstaked(address indexed user, uint256 amount, uint256 total, bytes data);
    event RewardsFunded(uint256 amount, uint256 duration, uint256 start, uint256 total);
    event RewardsDistributed(address indexed user, uint256 amount);
    event RewardsUnlocked(uint256 amount, uint256 total);
    event RewardsExpired(uint256 amount, uint256 duration, uint256 start);
    event GysrSpent(address indexed user, uint256 amount);
    event OwnershipTransferred(address indexed previousOwner, address indexed newOwner);
"""

from dataclasses import dataclass
from enum import Enum

import eth_abi.abi
from eth_typing import ChecksumAddress
from eth_utils.crypto import keccak
from hexbytes import HexBytes
from web3.types import LogReceipt

from geyser_indexer.checksum_cache import get_checksum_address
from geyser_indexer.exceptions import UnknownEventError
from geyser_indexer.types.aliases import BlockNumber, Timestamp, TransactionHash


class GeyserEventTopic(Enum):
    STAKED = HexBytes(keccak(text="Staked(address,uint256,uint256,bytes)"))
    UNSTAKED = HexBytes(keccak(text="Unstaked(address,uint256,uint256,bytes)"))
    REWARDS_FUNDED = HexBytes(keccak(text="RewardsFunded(uint256,uint256,uint256,uint256)"))
    REWARDS_DISTRIBUTED = HexBytes(keccak(text="RewardsDistributed(address,uint256)"))
    REWARDS_UNLOCKED = HexBytes(keccak(text="RewardsUnlocked(uint256,uint256)"))
    REWARDS_EXPIRED = HexBytes(keccak(text="RewardsExpired(uint256,uint256,uint256)"))
    GYSR_SPENT = HexBytes(keccak(text="GysrSpent(address,uint256)"))
    OWNERSHIP_TRANSFERRED = HexBytes(keccak(text="OwnershipTransferred(address,address)"))


@dataclass(frozen=True, slots=True)
class EventMeta:
    """Where and when an event was emitted."""

    address: ChecksumAddress
    block_number: BlockNumber
    log_index: int
    timestamp: Timestamp
    transaction_hash: TransactionHash


@dataclass(frozen=True, slots=True)
class Staked:
    meta: EventMeta
    user: ChecksumAddress
    amount: int
    total: int


@dataclass(frozen=True, slots=True)
class Unstaked:
    meta: EventMeta
    user: ChecksumAddress
    amount: int
    total: int


@dataclass(frozen=True, slots=True)
class RewardsFunded:
    meta: EventMeta
    amount: int
    duration: int
    start: int
    total: int


@dataclass(frozen=True, slots=True)
class RewardsDistributed:
    meta: EventMeta
    user: ChecksumAddress
    amount: int


@dataclass(frozen=True, slots=True)
class RewardsUnlocked:
    meta: EventMeta
    amount: int
    total: int


@dataclass(frozen=True, slots=True)
class RewardsExpired:
    meta: EventMeta
    amount: int
    duration: int
    start: int


@dataclass(frozen=True, slots=True)
class GysrSpent:
    meta: EventMeta
    user: ChecksumAddress
    amount: int


@dataclass(frozen=True, slots=True)
class OwnershipTransferred:
    meta: EventMeta
    previous_owner: ChecksumAddress
    new_owner: ChecksumAddress


type GeyserEvent = (
    Staked
    | Unstaked
    | RewardsFunded
    | RewardsDistributed
    | RewardsUnlocked
    | RewardsExpired
    | GysrSpent
    | OwnershipTransferred
)


def _decode_address(input_: bytes) -> ChecksumAddress:
    """
    Get the checksummed address from the given byte stream.
    """

    (address,) = eth_abi.abi.decode(types=["address"], data=input_)
    return get_checksum_address(address)


def _decode_uint_values(
    log: LogReceipt,
    num_values: int | None = None,
) -> tuple[int, ...]:
    """
    Decode uint256 values from event data.
    """

    if num_values is None:
        num_values = len(log["data"]) // 32
    types = ["uint256"] * num_values
    return eth_abi.abi.decode(types=types, data=log["data"])


def decode_geyser_log(log: LogReceipt, timestamp: Timestamp) -> GeyserEvent:
    """
    Decode a raw log emitted by a Geyser contract into its typed event.
    """

    topic = HexBytes(log["topics"][0])
    meta = EventMeta(
        address=get_checksum_address(log["address"]),
        block_number=log["blockNumber"],
        log_index=log["logIndex"],
        timestamp=timestamp,
        transaction_hash=HexBytes(log["transactionHash"]).to_0x_hex(),
    )

    try:
        event_topic = GeyserEventTopic(topic)
    except ValueError:
        raise UnknownEventError(topic=topic.to_0x_hex()) from None

    match event_topic:
        case GeyserEventTopic.STAKED | GeyserEventTopic.UNSTAKED:
            amount, total, _ = eth_abi.abi.decode(
                types=["uint256", "uint256", "bytes"], data=log["data"]
            )
            event_class = Staked if event_topic is GeyserEventTopic.STAKED else Unstaked
            return event_class(
                meta=meta,
                user=_decode_address(log["topics"][1]),
                amount=amount,
                total=total,
            )
        case GeyserEventTopic.REWARDS_FUNDED:
            amount, duration, start, total = _decode_uint_values(log=log, num_values=4)
            return RewardsFunded(
                meta=meta, amount=amount, duration=duration, start=start, total=total
            )
        case GeyserEventTopic.REWARDS_DISTRIBUTED:
            (amount,) = _decode_uint_values(log=log, num_values=1)
            return RewardsDistributed(
                meta=meta, user=_decode_address(log["topics"][1]), amount=amount
            )
        case GeyserEventTopic.REWARDS_UNLOCKED:
            amount, total = _decode_uint_values(log=log, num_values=2)
            return RewardsUnlocked(meta=meta, amount=amount, total=total)
        case GeyserEventTopic.REWARDS_EXPIRED:
            amount, duration, start = _decode_uint_values(log=log, num_values=3)
            return RewardsExpired(meta=meta, amount=amount, duration=duration, start=start)
        case GeyserEventTopic.GYSR_SPENT:
            (amount,) = _decode_uint_values(log=log, num_values=1)
            return GysrSpent(meta=meta, user=_decode_address(log["topics"][1]), amount=amount)
        case GeyserEventTopic.OWNERSHIP_TRANSFERRED:
            return OwnershipTransferred(
                meta=meta,
                previous_owner=_decode_address(log["topics"][1]),
                new_owner=_decode_address(log["topics"][2]),
            )
