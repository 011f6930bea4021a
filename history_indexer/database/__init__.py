# history_indexer/database/__init__.py

from .base import Base, TimestampMixin
from .connection import DatabaseManager
from .tables import (
    DBToken,
    DBPair,
    DBPairLiquidityInfoHistory,
    DBPairLiquidityInfoHistoryError,
)
