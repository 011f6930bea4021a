# history_indexer/core/errors.py


class HistoryIndexerError(Exception):
    """Base class for errors raised by the history indexer"""


class UsageError(HistoryIndexerError):
    """Invalid or conflicting request parameters"""


class NotFoundError(HistoryIndexerError):
    """Requested pair or token does not exist"""


class DecodeError(HistoryIndexerError):
    """A contract log could not be decoded into a ledger event"""

    def __init__(self, message: str, event_name: str = None):
        super().__init__(message)
        self.event_name = event_name


class MiddlewareError(HistoryIndexerError):
    """The middleware returned an unusable response"""

    def __init__(self, message: str, status_code: int = None, url: str = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url
