# history_indexer/__init__.py

import logging
from typing import Mapping, Optional

from .core.container import IndexerContainer
from .core.config import IndexerConfig
from .core.logging import IndexerLogger, log_with_context
from .clients import FiatPriceClient, MiddlewareClientInterface, MiddlewareHttpClient
from .database.connection import DatabaseManager
from .services import GraphService, HistoryService
from .tasks import LiquidityHistoryImporter, LiquidityHistoryValidator, TaskRunner


def create_indexer(env_vars: Optional[Mapping[str, str]] = None, **overrides) -> IndexerContainer:
    """Build a container with every service wired from environment configuration.

    `overrides` replace registered services by type name, e.g.
    `middleware=FakeMiddleware()` or `db_manager=DatabaseManager(...)`.
    """
    _configure_logging_early(env_vars)

    logger = IndexerLogger.get_logger('core.init')
    logger.info("Creating history indexer instance")

    config = IndexerConfig.from_env(env_vars)
    container = IndexerContainer(config)

    _register_services(container, **overrides)

    log_with_context(logger, logging.INFO, "History indexer created successfully",
                    services=len(container.get_service_info()['services']))

    return container


def _configure_logging_early(env_vars: Optional[Mapping[str, str]]):
    if env_vars is None:
        import os
        from dotenv import load_dotenv
        load_dotenv()
        env_vars = os.environ

    IndexerLogger.configure_from(IndexerConfig.create_logging_config(env_vars))


def _register_services(container: IndexerContainer, db_manager=None, middleware=None, fiat_price_client=None):
    logger = IndexerLogger.get_logger('core.services')
    logger.info("Registering services in container")

    logger.debug("Registering database services")
    if db_manager is not None:
        container.register_instance(DatabaseManager, db_manager)
    else:
        container.register_factory(DatabaseManager, _create_database_manager)

    logger.debug("Registering client services")
    if middleware is not None:
        container.register_instance(MiddlewareClientInterface, middleware)
    else:
        container.register_factory(MiddlewareClientInterface, _create_middleware_client)

    if fiat_price_client is not None:
        container.register_instance(FiatPriceClient, fiat_price_client)
    else:
        container.register_factory(FiatPriceClient, _create_fiat_price_client)

    logger.debug("Registering task services")
    container.register_singleton(LiquidityHistoryImporter, LiquidityHistoryImporter)
    container.register_singleton(LiquidityHistoryValidator, LiquidityHistoryValidator)
    container.register_singleton(TaskRunner, TaskRunner)

    logger.debug("Registering read services")
    container.register_singleton(HistoryService, HistoryService)
    container.register_singleton(GraphService, GraphService)

    logger.info("Service registration completed")


def _create_database_manager(container: IndexerContainer) -> DatabaseManager:
    logger = IndexerLogger.get_logger('core.factory.database')
    logger.info("Creating database manager")

    db_manager = DatabaseManager(container.config.database)
    db_manager.initialize()
    return db_manager


def _create_middleware_client(container: IndexerContainer) -> MiddlewareHttpClient:
    """Factory function to create the middleware client with configuration"""
    return MiddlewareHttpClient(container.config.middleware)


def _create_fiat_price_client(container: IndexerContainer) -> FiatPriceClient:
    return FiatPriceClient(container.config.fiat_price)
