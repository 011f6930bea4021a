# history_indexer/tasks/__init__.py

from .cooldown import is_within_cooldown
from .decoder import decode_log
from .importer import LiquidityHistoryImporter
from .validator import LiquidityHistoryValidator
from .runner import TaskRunner
