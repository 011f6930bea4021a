# history_indexer/types/config.py

from typing import Optional
from pathlib import Path

from msgspec import Struct


class DatabaseConfig(Struct):
    url: str
    pool_size: int = 5
    max_overflow: int = 10
    echo: bool = False

class MiddlewareConfig(Struct):
    url: str
    timeout: int = 30
    max_retries: int = 3
    page_limit: int = 100

class FiatPriceConfig(Struct):
    url: Optional[str] = None
    currency: str = "usd"
    timeout: int = 10

class ImporterConfig(Struct):
    error_cooldown_hours: float = 6
    wrapped_native_address: Optional[str] = None

class ValidatorConfig(Struct):
    reorg_depth: int = 20

class SchedulerConfig(Struct):
    import_interval: int = 60
    validate_interval: int = 300

class LoggingConfig(Struct):
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    console_enabled: bool = True
    file_enabled: bool = False
    structured_format: bool = True
