import pathlib

from geyser_indexer.exceptions.base import GeyserIndexerError


class BackupExists(GeyserIndexerError):
    """
    Raised by `geyser-indexer database backup` if a file exists at the target path.
    """

    def __init__(self, path: pathlib.Path) -> None:
        self.path = path
        super().__init__(message=f"A backup at {path} already exists.")


class EntityNotFound(GeyserIndexerError):
    """
    Raised when a required entity is absent from the store.

    Indexing assumes a gap-free, ordered event stream, so a missing entity that an event depends
    on (e.g. an unstake from an address with no position) means the stream or the store is
    corrupt.
    """

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message=f"{entity} with id {entity_id} was not found.")

    def __reduce__(self) -> tuple[type["EntityNotFound"], tuple[str, str]]:
        return self.__class__, (self.entity, self.entity_id)
