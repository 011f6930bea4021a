# history_indexer/database/repositories/__init__.py

from .token_repository import TokenRepository
from .pair_repository import PairRepository
from .liquidity_history_repository import LiquidityHistoryRepository
from .liquidity_history_error_repository import LiquidityHistoryErrorRepository

__all__ = [
    'TokenRepository',
    'PairRepository',
    'LiquidityHistoryRepository',
    'LiquidityHistoryErrorRepository',
]
