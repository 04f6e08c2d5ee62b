from .checksum_cache import get_checksum_address
from .config import settings
from .version import __version__

# isort: split

from .database import EntityStore
from .geyser import (
    GeyserEventProcessor,
    GeyserStateReader,
    Web3GeyserStateReader,
    decode_geyser_log,
)
from .logging import logger
from .pricing import ChainlinkPriceOracle, FixedPriceOracle, PriceOracle

__all__ = (
    "ChainlinkPriceOracle",
    "EntityStore",
    "FixedPriceOracle",
    "GeyserEventProcessor",
    "GeyserStateReader",
    "PriceOracle",
    "Web3GeyserStateReader",
    "__version__",
    "constants",
    "database",
    "decode_geyser_log",
    "exceptions",
    "functions",
    "geyser",
    "get_checksum_address",
    "logger",
    "pricing",
    "settings",
    "types",
)
