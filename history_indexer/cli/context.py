# history_indexer/cli/context.py

"""
CLI Context

Single point for building the service container on first use and shutting
its database connections down when the command exits.
"""

from typing import Optional, Type, TypeVar

from .. import create_indexer
from ..core.container import IndexerContainer
from ..core.logging import IndexerLogger
from ..database.connection import DatabaseManager

T = TypeVar('T')


class CLIContext:
    def __init__(self):
        self.logger = IndexerLogger.get_logger('cli.context')
        self._container: Optional[IndexerContainer] = None

    @property
    def container(self) -> IndexerContainer:
        if self._container is None:
            self._container = create_indexer()
        return self._container

    def get(self, service_type: Type[T]) -> T:
        return self.container.get(service_type)

    @property
    def db_manager(self) -> DatabaseManager:
        return self.get(DatabaseManager)

    def shutdown(self):
        if self._container is not None and self._container.has_instance(DatabaseManager):
            self._container.get(DatabaseManager).shutdown()
        self._container = None
