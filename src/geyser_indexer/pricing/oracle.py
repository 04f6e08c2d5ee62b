from decimal import Decimal
from typing import Protocol

from geyser_indexer.constants import ZERO_DECIMAL
from geyser_indexer.database.models import TokenTable
from geyser_indexer.exceptions import PriceUnavailable, PricingError
from geyser_indexer.logging import logger
from geyser_indexer.types.aliases import Timestamp


class PriceOracle(Protocol):
    """
    Source of USD unit prices for tokens.

    Implementations raise `PriceUnavailable` when a token cannot be priced. They must not update
    any entity; caching the result on the token is the caller's job.
    """

    def get_price(self, token: str, timestamp: Timestamp | None = None) -> Decimal:
        """
        Get the USD price of one whole token, either current (no timestamp) or as of the given
        timestamp.
        """
        ...


class FixedPriceOracle:
    """
    Prices tokens from a fixed table, ignoring the timestamp.
    """

    def __init__(self, prices: dict[str, Decimal] | None = None) -> None:
        self.prices = {token.lower(): price for token, price in (prices or {}).items()}

    def set_price(self, token: str, price: Decimal) -> None:
        self.prices[token.lower()] = price

    def get_price(
        self,
        token: str,
        timestamp: Timestamp | None = None,  # noqa: ARG002
    ) -> Decimal:
        try:
            return self.prices[token.lower()]
        except KeyError:
            raise PriceUnavailable(token=token, reason="no fixed price") from None


def get_token_price(
    oracle: PriceOracle,
    token: TokenTable,
    timestamp: Timestamp | None = None,
) -> Decimal:
    """
    Get the USD price for the token. A token that cannot be priced is worth zero, indexing never
    stops on a pricing gap.
    """

    try:
        return oracle.get_price(token.id, timestamp)
    except PricingError as exc:
        logger.warning(f"Pricing gap for token {token.id}, using 0: {exc}")
        return ZERO_DECIMAL


def update_token_price(
    oracle: PriceOracle,
    token: TokenTable,
    timestamp: Timestamp,
    *,
    historical: bool = False,
) -> Decimal:
    """
    Refresh the cached price on the token record and return it.

    With `historical` set the oracle is asked for the price as of `timestamp`, otherwise for the
    current price.
    """

    token.price = get_token_price(oracle, token, timestamp if historical else None)
    token.updated = timestamp
    return token.price
