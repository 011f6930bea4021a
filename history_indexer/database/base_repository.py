# history_indexer/database/base_repository.py

from contextlib import contextmanager
from typing import Generic, Iterator, List, Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session

from ..core.logging import IndexerLogger, log_with_context, ERROR


T = TypeVar('T')


class BaseRepository(Generic[T]):
    """Shared lookups for one mapped table; subclasses add the table's own queries"""

    def __init__(self, db_manager, model_class: Type[T]):
        self.db_manager = db_manager
        self.model_class = model_class
        self.logger = IndexerLogger.get_logger(f'database.repository.{model_class.__tablename__}')

    @contextmanager
    def failing(self, operation: str, **context) -> Iterator[None]:
        """Log a failed query with its context and re-raise"""
        try:
            yield
        except Exception as e:
            log_with_context(self.logger, ERROR, f"{self.model_class.__name__} {operation} failed",
                             error=str(e), exception_type=type(e).__name__, **context)
            raise

    def query(self, session: Session) -> Query:
        return session.query(self.model_class)

    def get_by_address(self, session: Session, address: str) -> Optional[T]:
        with self.failing("lookup by address", address=address):
            return self.query(session).filter(self.model_class.address == address).first()

    def list_all(self, session: Session) -> List[T]:
        with self.failing("listing"):
            return self.query(session).order_by(self.model_class.id).all()
