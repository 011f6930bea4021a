# history_indexer/core/__init__.py

from .config import IndexerConfig
from .container import IndexerContainer
from .errors import HistoryIndexerError, UsageError, NotFoundError, DecodeError, MiddlewareError
from .logging import IndexerLogger, LoggingMixin, log_with_context
