# history_indexer/database/tables/__init__.py

from .token import DBToken
from .pair import DBPair
from .liquidity_history import DBPairLiquidityInfoHistory
from .liquidity_history_error import DBPairLiquidityInfoHistoryError

__all__ = [
    'DBToken',
    'DBPair',
    'DBPairLiquidityInfoHistory',
    'DBPairLiquidityInfoHistoryError',
]
