# history_indexer/core/logging.py
"""
Logging for the history indexer.

Every module logs below the `history_indexer` logger. IndexerLogger installs
the handlers on that logger once per process, log_with_context attaches
structured fields to a record, and LoggingMixin gives classes a logger named
after their module and class.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

from ..types import LoggingConfig

DEBUG = logging.DEBUG
INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR
CRITICAL = logging.CRITICAL

ROOT_LOGGER_NAME = 'history_indexer'

# Record attributes rendered after the message by the structured format
CONTEXT_FIELDS = (
    'job',
    'pair_id',
    'pair_address',
    'event_type',
    'height',
    'micro_block_hash',
    'transaction_hash',
    'log_index',
    'deleted',
    'error',
)


class IndexerFormatter(logging.Formatter):
    """`time - logger - LEVEL - message`, optionally followed by `| key=value ...`"""

    default_msec_format = '%s.%03d'

    def __init__(self, include_context: bool = False):
        super().__init__('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        if not self.include_context:
            return line

        context = ' '.join(
            f"{field}={getattr(record, field)}" for field in CONTEXT_FIELDS if hasattr(record, field)
        )
        return f"{line} | {context}" if context else line


class IndexerLogger:
    """Process-wide handler setup for the history_indexer logger tree"""

    _configured = False

    @classmethod
    def configure(cls,
                  log_dir: Optional[Path] = None,
                  log_level: str = "INFO",
                  console_enabled: bool = True,
                  file_enabled: bool = False,
                  structured_format: bool = True) -> None:
        if cls._configured:
            return

        level = getattr(logging, log_level.upper())
        package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        package_logger.setLevel(level)
        package_logger.handlers.clear()

        for handler in cls._build_handlers(log_dir, level, console_enabled, file_enabled, structured_format):
            package_logger.addHandler(handler)

        cls._configured = True

    @classmethod
    def configure_from(cls, config: LoggingConfig) -> None:
        cls.configure(
            log_dir=config.log_dir,
            log_level=config.log_level,
            console_enabled=config.console_enabled,
            file_enabled=config.file_enabled,
            structured_format=config.structured_format,
        )

    @staticmethod
    def _build_handlers(log_dir: Optional[Path],
                        level: int,
                        console_enabled: bool,
                        file_enabled: bool,
                        structured_format: bool) -> List[logging.Handler]:
        handlers: List[logging.Handler] = []
        structured = IndexerFormatter(include_context=True)

        if console_enabled:
            console = logging.StreamHandler(sys.stdout)
            console.setLevel(level)
            console.setFormatter(structured if structured_format else IndexerFormatter())
            handlers.append(console)

        if file_enabled and log_dir:
            log_dir.mkdir(parents=True, exist_ok=True)
            # everything at the configured level, plus a file with errors only
            for filename, file_level in (('history_indexer.log', level), ('history_indexer_errors.log', ERROR)):
                file_handler = logging.FileHandler(log_dir / filename)
                file_handler.setLevel(file_level)
                file_handler.setFormatter(structured)
                handlers.append(file_handler)

        return handlers

    @classmethod
    def reset(cls) -> None:
        """Drop handlers so configure() can run again (tests, CLI --verbose)"""
        logging.getLogger(ROOT_LOGGER_NAME).handlers.clear()
        cls._configured = False

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        if not cls._configured:
            cls.configure()

        if name != ROOT_LOGGER_NAME and not name.startswith(f'{ROOT_LOGGER_NAME}.'):
            name = f'{ROOT_LOGGER_NAME}.{name}'
        return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: int, message: str, **context) -> None:
    logger.log(level, message, extra=context, stacklevel=2)


class LoggingMixin:
    """
    Class-scoped logger plus context logging shortcuts.

    The logger is named `history_indexer.<module>.<Class>`, e.g.
    `history_indexer.tasks.importer.LiquidityHistoryImporter`.
    """

    @property
    def logger(self) -> logging.Logger:
        if not hasattr(self, '_logger'):
            module = type(self).__module__
            if module.startswith(f'{ROOT_LOGGER_NAME}.'):
                module = module[len(ROOT_LOGGER_NAME) + 1:]
            self._logger = IndexerLogger.get_logger(f"{module}.{type(self).__name__}")
        return self._logger

    def log_debug(self, message: str, **context) -> None:
        self.logger.log(DEBUG, message, extra=context, stacklevel=2)

    def log_info(self, message: str, **context) -> None:
        self.logger.log(INFO, message, extra=context, stacklevel=2)

    def log_warning(self, message: str, **context) -> None:
        self.logger.log(WARNING, message, extra=context, stacklevel=2)

    def log_error(self, message: str, **context) -> None:
        self.logger.log(ERROR, message, extra=context, stacklevel=2)
