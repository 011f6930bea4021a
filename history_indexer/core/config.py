# history_indexer/core/config.py

from typing import Mapping, Optional
from pathlib import Path
import os
import logging

from msgspec import Struct

from ..types import (
    DatabaseConfig,
    MiddlewareConfig,
    FiatPriceConfig,
    ImporterConfig,
    ValidatorConfig,
    SchedulerConfig,
    LoggingConfig,
)
from .logging import IndexerLogger, log_with_context


def _env_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    value = env.get(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class IndexerConfig(Struct):
    database: DatabaseConfig
    middleware: MiddlewareConfig
    fiat_price: FiatPriceConfig
    importer: ImporterConfig
    validator: ValidatorConfig
    scheduler: SchedulerConfig
    log_config: LoggingConfig

    @classmethod
    def from_env(cls, env_vars: Optional[Mapping[str, str]] = None) -> 'IndexerConfig':
        if env_vars is None:
            from dotenv import load_dotenv
            load_dotenv()
            env = os.environ
        else:
            env = env_vars

        logger = IndexerLogger.get_logger('core.config')

        config = cls(
            database=cls._create_database_config(env),
            middleware=cls._create_middleware_config(env),
            fiat_price=cls._create_fiat_price_config(env),
            importer=cls._create_importer_config(env),
            validator=cls._create_validator_config(env),
            scheduler=cls._create_scheduler_config(env),
            log_config=cls.create_logging_config(env),
        )

        log_with_context(logger, logging.INFO, "IndexerConfig created successfully",
                        middleware_url=config.middleware.url,
                        fiat_price_enabled=config.fiat_price.url is not None,
                        error_cooldown_hours=config.importer.error_cooldown_hours,
                        reorg_depth=config.validator.reorg_depth)

        return config

    @staticmethod
    def _create_database_config(env: Mapping[str, str]) -> DatabaseConfig:
        db_url = env.get("HISTORY_DB_URL")
        if not db_url:
            db_user = env.get("HISTORY_DB_USER")
            db_password = env.get("HISTORY_DB_PASSWORD")
            db_host = env.get("HISTORY_DB_HOST", "127.0.0.1")
            db_port = env.get("HISTORY_DB_PORT", "5432")
            db_name = env.get("HISTORY_DB_NAME", "dex_history")

            if not db_user or not db_password:
                raise ValueError("Set HISTORY_DB_URL or HISTORY_DB_USER and HISTORY_DB_PASSWORD")

            db_url = f"postgresql+psycopg://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"

        return DatabaseConfig(
            url=db_url,
            pool_size=int(env.get("HISTORY_DB_POOL_SIZE", 5)),
            max_overflow=int(env.get("HISTORY_DB_MAX_OVERFLOW", 10)),
            echo=_env_bool(env, "HISTORY_DB_ECHO", False),
        )

    @staticmethod
    def _create_middleware_config(env: Mapping[str, str]) -> MiddlewareConfig:
        url = env.get("HISTORY_MDW_URL")
        if not url:
            raise ValueError("HISTORY_MDW_URL environment variable required")

        return MiddlewareConfig(
            url=url.rstrip('/'),
            timeout=int(env.get("HISTORY_MDW_TIMEOUT", 30)),
            max_retries=int(env.get("HISTORY_MDW_MAX_RETRIES", 3)),
            page_limit=int(env.get("HISTORY_MDW_PAGE_LIMIT", 100)),
        )

    @staticmethod
    def _create_fiat_price_config(env: Mapping[str, str]) -> FiatPriceConfig:
        return FiatPriceConfig(
            url=env.get("HISTORY_FIAT_PRICE_URL") or None,
            currency=env.get("HISTORY_FIAT_CURRENCY", "usd"),
            timeout=int(env.get("HISTORY_FIAT_PRICE_TIMEOUT", 10)),
        )

    @staticmethod
    def _create_importer_config(env: Mapping[str, str]) -> ImporterConfig:
        return ImporterConfig(
            error_cooldown_hours=float(env.get("HISTORY_ERROR_COOLDOWN_HOURS", 6)),
            wrapped_native_address=env.get("HISTORY_WRAPPED_NATIVE_ADDRESS") or None,
        )

    @staticmethod
    def _create_validator_config(env: Mapping[str, str]) -> ValidatorConfig:
        return ValidatorConfig(
            reorg_depth=int(env.get("HISTORY_REORG_DEPTH", 20)),
        )

    @staticmethod
    def _create_scheduler_config(env: Mapping[str, str]) -> SchedulerConfig:
        return SchedulerConfig(
            import_interval=int(env.get("HISTORY_IMPORT_INTERVAL", 60)),
            validate_interval=int(env.get("HISTORY_VALIDATE_INTERVAL", 300)),
        )

    @staticmethod
    def create_logging_config(env: Mapping[str, str]) -> LoggingConfig:
        log_dir_env = env.get("HISTORY_LOG_DIR")
        return LoggingConfig(
            log_level=env.get("HISTORY_LOG_LEVEL", "INFO"),
            log_dir=Path(log_dir_env) if log_dir_env else Path.cwd() / "logs",
            console_enabled=_env_bool(env, "HISTORY_LOG_CONSOLE", True),
            file_enabled=_env_bool(env, "HISTORY_LOG_FILE", False),
            structured_format=_env_bool(env, "HISTORY_LOG_STRUCTURED", True),
        )
