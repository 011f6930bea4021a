# history_indexer/types/graph.py

import enum
from decimal import Decimal
from typing import List, Optional

from msgspec import Struct


class GraphType(str, enum.Enum):
    TVL = "TVL"
    VOLUME = "Volume"
    FEES = "Fees"
    LOCKED = "Locked"
    PRICE = "Price"
    PRICE_TOKEN0_IN_TOKEN1 = "PriceToken0InToken1"
    PRICE_TOKEN1_IN_TOKEN0 = "PriceToken1InToken0"

    @property
    def is_price(self) -> bool:
        return "Price" in self.value

    @property
    def is_bar_chart(self) -> bool:
        return self in (GraphType.TVL, GraphType.VOLUME, GraphType.FEES, GraphType.LOCKED)

    @property
    def is_cumulative(self) -> bool:
        return self in (GraphType.TVL, GraphType.LOCKED) or self.is_price

    @property
    def is_point_in_time(self) -> bool:
        return self in (GraphType.VOLUME, GraphType.FEES)


class TimeFrame(str, enum.Enum):
    ONE_HOUR = "1H"
    ONE_DAY = "1D"
    ONE_WEEK = "1W"
    ONE_MONTH = "1M"
    ONE_YEAR = "1Y"
    MAX = "MAX"

    def hours(self) -> Optional[int]:
        """Length of the frame in hours, None for MAX"""
        durations = {
            TimeFrame.ONE_HOUR: 1,
            TimeFrame.ONE_DAY: 24,
            TimeFrame.ONE_WEEK: 24 * 7,
            TimeFrame.ONE_MONTH: 24 * 30,
            TimeFrame.ONE_YEAR: 24 * 365,
        }
        return durations.get(self)

    def milliseconds(self) -> Optional[int]:
        hours = self.hours()
        return None if hours is None else hours * 60 * 60 * 1000


class OrderDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


class Graph(Struct, rename="camel"):
    graph_type: GraphType
    time_frame: TimeFrame
    labels: List[str]
    data: List[str]


class RawSeries(Struct):
    """Parallel (timestamp, value) arrays folded from the ledger"""
    x: List[int]
    data: List[Decimal]


class FilteredSeries(Struct):
    filtered_data: List[Decimal]
    excluded_data: List[Decimal]
    filtered_time: List[int]
    excluded_time: List[int]
    min_time: int


class HistoryQuery(Struct, kw_only=True):
    limit: int = 100
    offset: int = 0
    order: OrderDirection = OrderDirection.ASC
    pair_address: Optional[str] = None
    token_address: Optional[str] = None
    height: Optional[int] = None
    from_block_time: Optional[int] = None
    to_block_time: Optional[int] = None


class HistoryEntryView(Struct, rename="camel", kw_only=True):
    """A ledger entry enriched with USD values derived at read time"""
    pair_address: str
    type: str
    reserve0: str
    reserve1: str
    delta_reserve0: str
    delta_reserve1: str
    token0_ae_price: Optional[str]
    token1_ae_price: Optional[str]
    ae_usd_price: str
    height: int
    micro_block_hash: str
    micro_block_time: str
    transaction_hash: str
    transaction_index: str
    log_index: int
    reserve0_usd: Optional[str] = None
    reserve1_usd: Optional[str] = None
    delta0_usd_value: Optional[str] = None
    delta1_usd_value: Optional[str] = None
    tx_usd_fee: Optional[str] = None


class PricedEntry(Struct, kw_only=True):
    """A ledger row with its USD values, shared by the history listing and graphs"""
    pair_address: str
    token0_address: str
    token1_address: str
    token0_decimals: int
    token1_decimals: int
    event_type: str
    reserve0: Decimal
    reserve1: Decimal
    delta_reserve0: Decimal
    delta_reserve1: Decimal
    token0_native_price: Optional[Decimal]
    token1_native_price: Optional[Decimal]
    fiat_price: Decimal
    micro_block_time: int
    reserve0_usd: Optional[Decimal] = None
    reserve1_usd: Optional[Decimal] = None
    delta0_usd_value: Optional[Decimal] = None
    delta1_usd_value: Optional[Decimal] = None
    tx_usd_fee: Optional[Decimal] = None
