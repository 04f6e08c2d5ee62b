from .chainlink import ChainlinkPriceOracle
from .oracle import FixedPriceOracle, PriceOracle, get_token_price, update_token_price

__all__ = (
    "ChainlinkPriceOracle",
    "FixedPriceOracle",
    "PriceOracle",
    "get_token_price",
    "update_token_price",
)
