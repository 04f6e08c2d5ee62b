class GeyserIndexerError(Exception):
    """
    Base exception used as the parent class for all exceptions raised by this package.

    Calling code should catch `GeyserIndexerError` and derived classes separately before general
    exceptions, e.g.:

    ```
    try:
        processor.process(event)
    except EntityNotFound:
        ... # the event stream references an entity that was never indexed
    except GeyserIndexerError:
        ... # handle non-specific indexer exception
    except Exception:
        ... # handle exceptions raised by 3rd party dependencies or Python built-ins
    ```

    An optional string-formatted message may be attached to the exception and retrieved by accessing
    the `.message` attribute.
    """

    message: str | None = None

    def __init__(self, message: str | None = None) -> None:
        if message:
            self.message = message
            super().__init__(message)


class GeyserIndexerValueError(GeyserIndexerError): ...


class GeyserIndexerTypeError(GeyserIndexerError): ...


class ExternalServiceError(GeyserIndexerError):
    """
    Raised on errors resulting to some call to an external service.
    """

    def __init__(self, error: str) -> None:
        self.error = error
        super().__init__(message=f"External service error: {error}")
