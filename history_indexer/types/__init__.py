# history_indexer/types/__init__.py

# Configuration Types
from .config import (
    DatabaseConfig,
    MiddlewareConfig,
    FiatPriceConfig,
    ImporterConfig,
    ValidatorConfig,
    SchedulerConfig,
    LoggingConfig,
)

# Ledger Types
from .ledger import (
    EventType,
    LEDGER_EVENT_NAMES,
    LogPosition,
    Reserves,
    ReserveChange,
    DECIMAL_CONTEXT,
    PairEvent,
    PairMint,
    PairBurn,
    SwapTokens,
    Sync,
    LedgerEvent,
    LedgerEntry,
    ErrorIdentity,
    ImportSummary,
)

# Middleware Types
from .middleware import (
    ContractInfo,
    MicroBlock,
    ContractLog,
    MiddlewareStatus,
)

# Graph / History Types
from .graph import (
    GraphType,
    TimeFrame,
    OrderDirection,
    Graph,
    RawSeries,
    FilteredSeries,
    HistoryQuery,
    HistoryEntryView,
    PricedEntry,
)
