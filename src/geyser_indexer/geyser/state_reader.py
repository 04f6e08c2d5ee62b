"""
Read access to the authoritative staking state held by a Geyser contract.

The contract keeps an append-only list of stake lots per user. Unstaking consumes lots from the end
of the list, removing whole lots and shrinking the last one that survives. The reader exposes the
current snapshot of that list and the user and pool totals, always as of one block.
"""

from dataclasses import dataclass
from typing import Protocol

import eth_abi.exceptions
from eth_typing import ChecksumAddress
from web3 import Web3
from web3.exceptions import Web3Exception
from web3.types import BlockIdentifier

from geyser_indexer.exceptions import StateReaderError
from geyser_indexer.functions import encode_function_calldata, raw_call
from geyser_indexer.logging import logger


@dataclass(frozen=True, slots=True)
class StakeLot:
    shares: int
    timestamp: int


@dataclass(frozen=True, slots=True)
class UserTotals:
    shares: int
    last_updated: int
    share_seconds: int


@dataclass(frozen=True, slots=True)
class PoolTotals:
    staked: int
    staking_shares: int
    locked: int
    unlocked: int
    locked_shares: int


class GeyserStateReader(Protocol):
    """
    Authoritative contract state for one Geyser. All values are raw on-chain integers.
    """

    def stake_count(self, user: str) -> int: ...

    def user_stake(self, user: str, index: int) -> StakeLot: ...

    def user_totals(self, user: str) -> UserTotals: ...

    def pool_totals(self) -> PoolTotals: ...


class Web3GeyserStateReader:
    """
    Reads Geyser state with `eth_call` at a fixed block.
    """

    def __init__(
        self,
        w3: Web3,
        address: ChecksumAddress,
        block_identifier: BlockIdentifier | None = None,
    ) -> None:
        self.w3 = w3
        self.address = address
        self.block_identifier = block_identifier

    def _call(
        self,
        function_prototype: str,
        function_arguments: list[str | int] | None,
        return_types: list[str],
    ) -> tuple[int, ...]:
        try:
            return raw_call(
                w3=self.w3,
                address=self.address,
                calldata=encode_function_calldata(
                    function_prototype=function_prototype,
                    function_arguments=function_arguments,
                ),
                return_types=return_types,
                block_identifier=self.block_identifier,
            )
        except (Web3Exception, eth_abi.exceptions.DecodingError) as exc:
            logger.error(
                f"Call to {function_prototype} on {self.address} at block "
                f"{self.block_identifier} failed: {exc}"
            )
            raise StateReaderError(address=self.address, function=function_prototype) from exc

    def stake_count(self, user: str) -> int:
        (count,) = self._call(
            function_prototype="stakeCount(address)",
            function_arguments=[user],
            return_types=["uint256"],
        )
        return count

    def user_stake(self, user: str, index: int) -> StakeLot:
        shares, timestamp = self._call(
            function_prototype="userStakes(address,uint256)",
            function_arguments=[user, index],
            return_types=["uint256", "uint256"],
        )
        return StakeLot(shares=shares, timestamp=timestamp)

    def user_totals(self, user: str) -> UserTotals:
        shares, last_updated, share_seconds = self._call(
            function_prototype="userTotals(address)",
            function_arguments=[user],
            return_types=["uint256", "uint256", "uint256"],
        )
        return UserTotals(shares=shares, last_updated=last_updated, share_seconds=share_seconds)

    def pool_totals(self) -> PoolTotals:
        (staked,) = self._call("totalStaked()", None, ["uint256"])
        (staking_shares,) = self._call("totalStakingShares()", None, ["uint256"])
        (locked,) = self._call("totalLocked()", None, ["uint256"])
        (unlocked,) = self._call("totalUnlocked()", None, ["uint256"])
        (locked_shares,) = self._call("totalLockedShares()", None, ["uint256"])
        return PoolTotals(
            staked=staked,
            staking_shares=staking_shares,
            locked=locked,
            unlocked=unlocked,
            locked_shares=locked_shares,
        )
