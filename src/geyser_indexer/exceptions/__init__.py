from geyser_indexer.exceptions.base import (
    ExternalServiceError,
    GeyserIndexerError,
    GeyserIndexerTypeError,
    GeyserIndexerValueError,
)
from geyser_indexer.exceptions.database import BackupExists, EntityNotFound
from geyser_indexer.exceptions.pricing import PriceUnavailable, PricingError
from geyser_indexer.exceptions.state import StateReaderError, UnknownEventError

from . import database, pricing, state

__all__ = (
    "BackupExists",
    "EntityNotFound",
    "ExternalServiceError",
    "GeyserIndexerError",
    "GeyserIndexerTypeError",
    "GeyserIndexerValueError",
    "PriceUnavailable",
    "PricingError",
    "StateReaderError",
    "UnknownEventError",
    "database",
    "pricing",
    "state",
)
