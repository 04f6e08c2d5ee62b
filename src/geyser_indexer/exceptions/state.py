from geyser_indexer.exceptions.base import GeyserIndexerError


class StateReaderError(GeyserIndexerError):
    """
    Raised when a read of Geyser contract state fails.
    """

    def __init__(self, address: str, function: str) -> None:
        self.address = address
        self.function = function
        super().__init__(message=f"Call to {function} on Geyser {address} failed.")

    def __reduce__(self) -> tuple[type["StateReaderError"], tuple[str, str]]:
        return self.__class__, (self.address, self.function)


class UnknownEventError(GeyserIndexerError):
    """
    Raised when a log cannot be decoded as a Geyser event.
    """

    def __init__(self, topic: str) -> None:
        self.topic = topic
        super().__init__(message=f"Unknown Geyser event topic {topic}")

    def __reduce__(self) -> tuple[type["UnknownEventError"], tuple[str]]:
        return self.__class__, (self.topic,)
