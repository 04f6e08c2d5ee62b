from .base import Base, DecimalMappedToString
from .geyser import (
    FundingTable,
    PoolRewardTokenTable,
    PoolTable,
    PositionTable,
    StakeTable,
)
from .platform import PlatformTable, PoolDayDataTable, TransactionTable
from .tokens import TokenTable
from .users import UserTable

__all__ = (
    "Base",
    "DecimalMappedToString",
    "FundingTable",
    "PlatformTable",
    "PoolDayDataTable",
    "PoolRewardTokenTable",
    "PoolTable",
    "PositionTable",
    "StakeTable",
    "TokenTable",
    "TransactionTable",
    "UserTable",
)
