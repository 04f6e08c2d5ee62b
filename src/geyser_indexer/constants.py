__all__ = (
    "DEFAULT_DECIMALS",
    "GYSR_TOKEN",
    "INITIAL_SHARES_PER_TOKEN",
    "PLATFORM_ID",
    "PRICING_MIN_TVL",
    "SECONDS_PER_DAY",
    "ZERO_ADDRESS",
    "ZERO_DECIMAL",
)

from decimal import Decimal

from eth_typing import ChecksumAddress

from geyser_indexer.checksum_cache import get_checksum_address

ZERO_ADDRESS: ChecksumAddress = get_checksum_address("0x0000000000000000000000000000000000000000")

# The platform rollup is a singleton keyed by the zero address
PLATFORM_ID: str = ZERO_ADDRESS.lower()

# GYSR token on Ethereum mainnet
GYSR_TOKEN: ChecksumAddress = get_checksum_address("0xbEa98c05eEAe2f3bC8c3565Db7551Eb738c8CCAb")

DEFAULT_DECIMALS = 18
SECONDS_PER_DAY = 86_400

# Share ratio used by the Geyser contracts before any stake or funding exists
INITIAL_SHARES_PER_TOKEN = Decimal(10**6)

# A pool joins the platform pricing set once its TVL crosses this USD value
PRICING_MIN_TVL = Decimal(1_000)

ZERO_DECIMAL = Decimal(0)
