from geyser_indexer.exceptions.base import GeyserIndexerError


class PricingError(GeyserIndexerError):
    """
    Exception raised inside price oracle helpers.
    """


class PriceUnavailable(PricingError):
    """
    Raised by a price oracle that cannot produce a USD price for a token.
    """

    def __init__(self, token: str, reason: str | None = None) -> None:
        self.token = token
        self.reason = reason
        message = f"No USD price available for token {token}"
        if reason is not None:
            message += f": {reason}"
        super().__init__(message=message)

    def __reduce__(self) -> tuple[type["PriceUnavailable"], tuple[str, str | None]]:
        return self.__class__, (self.token, self.reason)
