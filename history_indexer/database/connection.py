# history_indexer/database/connection.py

from contextlib import contextmanager
from typing import Dict, Generator, Optional

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from ..core.logging import IndexerLogger, log_with_context, INFO, DEBUG, ERROR
from ..types import DatabaseConfig
from .base import Base


class DatabaseManager:
    """
    Engine, sessions and repositories for the history database.

    Sessions never expire loaded rows on commit, so entities read inside a
    transaction stay usable after it closes. Repositories are created lazily
    and cached per manager.
    """

    def __init__(self, config: DatabaseConfig):
        if not config:
            raise ValueError("DatabaseConfig is required")

        self.config = config
        self.logger = IndexerLogger.get_logger('database.manager')
        self._engine: Optional[Engine] = None
        self._sessions: Optional[sessionmaker] = None
        self._repositories: Dict[str, object] = {}

    @property
    def is_sqlite(self) -> bool:
        return self.config.url.startswith('sqlite')

    def _engine_options(self) -> dict:
        if self.is_sqlite:
            # in-memory databases only exist on the connection that created them
            return {
                'poolclass': StaticPool,
                'connect_args': {'check_same_thread': False},
                'echo': self.config.echo,
            }

        return {
            'poolclass': QueuePool,
            'pool_size': self.config.pool_size,
            'max_overflow': self.config.max_overflow,
            'pool_recycle': 3600,
            'pool_pre_ping': True,
            'echo': self.config.echo,
        }

    def initialize(self) -> None:
        if self._engine is not None:
            return

        url = make_url(self.config.url)
        log_with_context(self.logger, INFO, "Connecting to history database",
                         backend=url.get_backend_name(), host=url.host or '-', database=url.database)

        engine = create_engine(url, **self._engine_options())
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as e:
            engine.dispose()
            log_with_context(self.logger, ERROR, "History database unreachable",
                             error=str(e), exception_type=type(e).__name__)
            raise

        self._engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def create_tables(self) -> None:
        from . import tables  # noqa: F401 registers table metadata

        Base.metadata.create_all(self.engine)
        log_with_context(self.logger, INFO, "Database tables created",
                         tables=",".join(sorted(Base.metadata.tables)))

    def shutdown(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self.logger.info("Database connections closed")

        self._engine = None
        self._sessions = None
        self._repositories.clear()

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._engine

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Read session, rolled back on error and always closed"""
        if self._sessions is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        session = self._sessions()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def get_transaction(self) -> Generator[Session, None, None]:
        """Session committed when the block exits cleanly"""
        with self.get_session() as session:
            try:
                yield session
                session.commit()
            except Exception as e:
                log_with_context(self.logger, DEBUG, "Transaction rolled back",
                                 error=str(e), exception_type=type(e).__name__)
                raise

    def health_check(self) -> bool:
        try:
            with self.get_session() as session:
                session.execute(text("SELECT 1"))
        except Exception as e:
            log_with_context(self.logger, ERROR, "Database health check failed",
                             error=str(e), exception_type=type(e).__name__)
            return False
        return True

    def _repository(self, key: str, repo_class):
        repo = self._repositories.get(key)
        if repo is None:
            repo = self._repositories[key] = repo_class(self)
        return repo

    def get_token_repo(self):
        from .repositories.token_repository import TokenRepository
        return self._repository('token', TokenRepository)

    def get_pair_repo(self):
        from .repositories.pair_repository import PairRepository
        return self._repository('pair', PairRepository)

    def get_liquidity_history_repo(self):
        from .repositories.liquidity_history_repository import LiquidityHistoryRepository
        return self._repository('liquidity_history', LiquidityHistoryRepository)

    def get_liquidity_history_error_repo(self):
        from .repositories.liquidity_history_error_repository import LiquidityHistoryErrorRepository
        return self._repository('liquidity_history_error', LiquidityHistoryErrorRepository)
