# history_indexer/services/__init__.py

from .history_service import HistoryService, calculate_usd_value, map_to_entry_with_price
from .graph_service import GraphService
