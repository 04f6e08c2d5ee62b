from decimal import Decimal

import eth_abi.exceptions
from eth_typing import ChecksumAddress
from web3 import Web3
from web3.exceptions import Web3Exception
from web3.types import BlockIdentifier

from geyser_indexer.checksum_cache import get_checksum_address
from geyser_indexer.exceptions import PriceUnavailable
from geyser_indexer.functions import encode_function_calldata, integer_to_decimal, raw_call
from geyser_indexer.logging import logger
from geyser_indexer.types.aliases import Timestamp

ONE_USD = Decimal(1)


class ChainlinkPriceOracle:
    """
    Prices tokens from Chainlink USD aggregators.

    Reads are made at `block_identifier`, which the event processor moves to the block of the event
    being handled. A price requested "as of" an event timestamp is therefore the price at that
    event's block.
    """

    def __init__(
        self,
        w3: Web3,
        feeds: dict[str, str],
        stablecoins: list[str] | None = None,
        block_identifier: BlockIdentifier | None = None,
    ) -> None:
        self.w3 = w3
        self.feeds: dict[str, ChecksumAddress] = {
            token.lower(): get_checksum_address(feed) for token, feed in feeds.items()
        }
        self.stablecoins = {token.lower() for token in stablecoins or []}
        self.block_identifier = block_identifier
        self._feed_decimals: dict[ChecksumAddress, int] = {}

    def _get_feed_decimals(self, feed: ChecksumAddress) -> int:
        if feed not in self._feed_decimals:
            (decimals,) = raw_call(
                w3=self.w3,
                address=feed,
                calldata=encode_function_calldata(
                    function_prototype="decimals()",
                    function_arguments=None,
                ),
                return_types=["uint8"],
            )
            self._feed_decimals[feed] = decimals
        return self._feed_decimals[feed]

    def get_price(
        self,
        token: str,
        timestamp: Timestamp | None = None,  # noqa: ARG002
    ) -> Decimal:
        token = token.lower()

        if token in self.stablecoins:
            return ONE_USD

        if (feed := self.feeds.get(token)) is None:
            raise PriceUnavailable(token=token, reason="no Chainlink feed configured")

        try:
            _, answer, *_ = raw_call(
                w3=self.w3,
                address=feed,
                calldata=encode_function_calldata(
                    function_prototype="latestRoundData()",
                    function_arguments=None,
                ),
                return_types=["uint80", "int256", "uint256", "uint256", "uint80"],
                block_identifier=self.block_identifier,
            )
            decimals = self._get_feed_decimals(feed)
        except (Web3Exception, eth_abi.exceptions.DecodingError) as exc:
            logger.debug(f"Chainlink feed {feed} call failed: {exc}")
            raise PriceUnavailable(token=token, reason=f"feed {feed} call failed") from exc

        if answer <= 0:
            raise PriceUnavailable(token=token, reason=f"feed {feed} returned {answer}")

        return integer_to_decimal(answer, decimals)
