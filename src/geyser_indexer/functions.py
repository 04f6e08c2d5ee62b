from collections.abc import Sequence
from decimal import Decimal, localcontext
from typing import TYPE_CHECKING, Any

import eth_abi.abi
from eth_typing import ChecksumAddress
from eth_utils.crypto import keccak
from hexbytes import HexBytes
from requests.exceptions import RequestException
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)
from web3 import Web3
from web3._utils.threads import Timeout
from web3.exceptions import Web3Exception
from web3.types import BlockIdentifier, FilterParams, LogReceipt, TxParams

from geyser_indexer.constants import DEFAULT_DECIMALS, SECONDS_PER_DAY
from geyser_indexer.exceptions import GeyserIndexerError, GeyserIndexerValueError
from geyser_indexer.logging import logger
from geyser_indexer.types.aliases import BlockNumber, Timestamp

# Wide enough to hold any uint256 without rounding
UINT256_DECIMAL_PRECISION = 80


def integer_to_decimal(value: int, decimals: int = DEFAULT_DECIMALS) -> Decimal:
    """
    Convert a raw on-chain integer amount to a decimal value, e.g. 1_500_000 with 6 decimals is
    1.5. The conversion is exact for any uint256 input.
    """

    with localcontext(prec=UINT256_DECIMAL_PRECISION):
        return Decimal(value) / Decimal(10) ** decimals


def day_index(timestamp: Timestamp) -> int:
    """
    Get the number of whole days elapsed since the Unix epoch.
    """

    return timestamp // SECONDS_PER_DAY


def to_entity_id(value: str | bytes) -> str:
    """
    Normalize an address or hash to the lowercase 0x-prefixed string used as an entity id.
    """

    if isinstance(value, bytes):
        return HexBytes(value).to_0x_hex()
    return value.lower()


def encode_function_calldata(
    function_prototype: str, function_arguments: Sequence[Any] | None
) -> bytes:
    """
    Encode the calldata to execute a call to the given function prototype, with ordered arguments.
    The resulting bytes array will include the 4-byte function selector, followed by the
    ABI-encoded arguments.
    """

    if function_arguments is None:
        function_arguments = ()

    return keccak(text=function_prototype)[:4] + eth_abi.abi.encode(
        types=extract_argument_types_from_function_prototype(function_prototype),
        args=function_arguments,
    )


def extract_argument_types_from_function_prototype(function_prototype: str) -> list[str]:
    """
    Extract the argument types from the function prototype.

    e.g. the argument types for the prototype 'function(address,uint256)' are ['address','uint256']
    """

    if function_args := function_prototype[
        function_prototype.find("(") + 1 : function_prototype.find(")") :
    ]:
        return function_args.split(",")

    return []


def raw_call(
    w3: Web3,
    address: ChecksumAddress,
    calldata: bytes,
    return_types: list[str],
    block_identifier: BlockIdentifier | None = None,
) -> tuple[Any, ...]:
    """
    Perform an eth_call at the given address and returns the decoded response.
    """

    return eth_abi.abi.decode(
        types=return_types,
        data=w3.eth.call(
            transaction=TxParams(
                to=address,
                data=calldata,
            ),
            block_identifier=block_identifier,
        ),
    )


def _increase_working_span(
    working_span: int,
    percent: int,
    ceiling: int,
) -> int:
    """
    Increase the working span by the given percentage, not to exceed the given ceiling.
    """

    return min(
        ceiling,
        int(
            working_span + working_span * (percent / 100),
        ),
    )


def _reduce_working_span(
    working_span: int,
    percent: int,
) -> int:
    """
    Reduce the working span by the given percentage, not to fall below 1.
    """

    return max(
        1,
        int(
            working_span - working_span * (percent / 100),
        ),
    )


def fetch_logs_retrying(
    w3: Web3,
    start_block: BlockNumber,
    end_block: BlockNumber,
    max_retries: int = 10,
    max_blocks_per_request: int | None = None,
    address: list[ChecksumAddress] | None = None,
    topic_signature: Sequence[Sequence[HexBytes] | HexBytes] | None = None,
) -> list[LogReceipt]:
    """
    Fetch all event logs emitted by the given addresses for the topic signature (or all logs, if
    omitted), inclusive for the given block range.

    The block span of each request adapts to the node: it shrinks by 25% after a failed request and
    grows by 1% after a successful one, up to `max_blocks_per_request` (5,000 if not specified).
    """

    if end_block < start_block:
        msg = "End block cannot be earlier than start block."
        raise GeyserIndexerValueError(message=msg)

    if address is None:
        address = []

    if topic_signature is None:
        topic_signature = []

    if max_blocks_per_request is None:
        max_blocks_per_request = 5_000

    working_span = 100

    retrier = Retrying(
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential_jitter(),
        retry=retry_if_exception_type(
            (Timeout, Web3Exception, RequestException),
        ),
    )

    event_logs: list[LogReceipt] = []

    while True:
        try:
            for attempt in retrier:
                chunk_end = min(end_block, start_block + working_span - 1)

                with attempt:
                    try:
                        logger.debug(
                            f"Fetching logs for range {start_block}-{chunk_end} "
                            f" ({chunk_end - start_block + 1} blocks)"
                        )
                        event_logs.extend(
                            w3.eth.get_logs(
                                FilterParams(
                                    address=address,
                                    fromBlock=start_block,
                                    toBlock=chunk_end,
                                    topics=topic_signature,
                                )
                            )
                        )
                    except Exception:
                        working_span = _reduce_working_span(
                            working_span=working_span,
                            percent=25,
                        )
                        logger.debug(
                            f"Attempt {attempt.retry_state.attempt_number} failed "
                            f"fetching {chunk_end - start_block + 1} blocks. "
                            f"Reducing to {working_span}..."
                        )
                        raise
                    else:
                        working_span = _increase_working_span(
                            working_span=working_span,
                            percent=1,
                            ceiling=max_blocks_per_request,
                        )

            if chunk_end == end_block:
                return event_logs

            start_block = chunk_end + 1

        except RetryError:
            raise GeyserIndexerError(
                message=f"Timed out fetching logs after {max_retries} tries."
            ) from None


def get_number_for_block_identifier(identifier: BlockIdentifier | None, w3: Web3) -> BlockNumber:
    match identifier:
        case None:
            return w3.eth.get_block_number()
        case int() as block_number_as_int:
            return block_number_as_int
        case "latest" | "earliest" | "pending" | "safe" | "finalized" as block_tag:
            block = w3.eth.get_block(block_tag)
            block_number = block.get("number")
            if TYPE_CHECKING:
                assert block_number is not None
            return block_number
        case str() as block_number_as_str:
            try:
                return int(block_number_as_str, 16)
            except ValueError:
                raise GeyserIndexerValueError(
                    message=f"Invalid block identifier {identifier!r}"
                ) from None
        case _:
            raise GeyserIndexerValueError(message=f"Invalid block identifier {identifier!r}")


def get_block_timestamp(w3: Web3, block_number: BlockNumber) -> Timestamp:
    block = w3.eth.get_block(block_number)
    timestamp = block.get("timestamp")
    if TYPE_CHECKING:
        assert timestamp is not None
    return timestamp
