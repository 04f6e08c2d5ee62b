from . import aggregates, events, handlers, reconciliation, state_reader
from .events import GeyserEvent, decode_geyser_log
from .processor import GeyserEventProcessor
from .state_reader import (
    GeyserStateReader,
    PoolTotals,
    StakeLot,
    UserTotals,
    Web3GeyserStateReader,
)

__all__ = (
    "GeyserEvent",
    "GeyserEventProcessor",
    "GeyserStateReader",
    "PoolTotals",
    "StakeLot",
    "UserTotals",
    "Web3GeyserStateReader",
    "aggregates",
    "decode_geyser_log",
    "events",
    "handlers",
    "reconciliation",
    "state_reader",
)
