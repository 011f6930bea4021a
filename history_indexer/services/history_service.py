# history_indexer/services/history_service.py

from decimal import Decimal, localcontext
from typing import List, Optional

import msgspec

from ..core.errors import UsageError
from ..core.logging import IndexerLogger, log_with_context, DEBUG
from ..database.connection import DatabaseManager
from ..database.tables import DBPairLiquidityInfoHistory
from ..types import DECIMAL_CONTEXT, EventType, HistoryEntryView, HistoryQuery, PricedEntry

MAX_HISTORY_LIMIT = 100
SWAP_FEE_RATE = Decimal('0.003')


def plain_decimal(value: Decimal) -> str:
    """Decimal as a plain string without exponent or trailing zeros"""
    if value.is_nan():
        return 'NaN'
    if value == 0:
        return '0'
    return format(value.normalize(), 'f')


def calculate_usd_value(amount: Decimal, token_native_price: Decimal, decimals: int, fiat_price: Decimal) -> Decimal:
    with localcontext(DECIMAL_CONTEXT):
        return abs(amount) / (Decimal(10) ** decimals) * token_native_price * fiat_price


def map_to_entry_with_price(entry: DBPairLiquidityInfoHistory) -> PricedEntry:
    """Attach USD values to a ledger row. USD values stay None while a token price is unknown."""
    pair = entry.pair
    priced = PricedEntry(
        pair_address=pair.address,
        token0_address=pair.token0.address,
        token1_address=pair.token1.address,
        token0_decimals=pair.token0.decimals,
        token1_decimals=pair.token1.decimals,
        event_type=EventType(entry.event_type).value,
        reserve0=entry.reserve0,
        reserve1=entry.reserve1,
        delta_reserve0=entry.delta_reserve0,
        delta_reserve1=entry.delta_reserve1,
        token0_native_price=entry.token0_native_price,
        token1_native_price=entry.token1_native_price,
        fiat_price=entry.fiat_price,
        micro_block_time=entry.micro_block_time,
    )

    if priced.token0_native_price is None or priced.token1_native_price is None:
        return priced

    priced.reserve0_usd = calculate_usd_value(
        priced.reserve0, priced.token0_native_price, priced.token0_decimals, priced.fiat_price)
    priced.reserve1_usd = calculate_usd_value(
        priced.reserve1, priced.token1_native_price, priced.token1_decimals, priced.fiat_price)
    priced.delta0_usd_value = calculate_usd_value(
        priced.delta_reserve0, priced.token0_native_price, priced.token0_decimals, priced.fiat_price)
    priced.delta1_usd_value = calculate_usd_value(
        priced.delta_reserve1, priced.token1_native_price, priced.token1_decimals, priced.fiat_price)

    # only swaps pay the pool fee; mints, burns and syncs report a zero fee
    if priced.event_type == EventType.SWAP_TOKENS.value:
        with localcontext(DECIMAL_CONTEXT):
            priced.tx_usd_fee = priced.delta0_usd_value * SWAP_FEE_RATE
    else:
        priced.tx_usd_fee = Decimal(0)

    return priced


def _optional(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else plain_decimal(value)


def to_history_view(entry: DBPairLiquidityInfoHistory) -> HistoryEntryView:
    priced = map_to_entry_with_price(entry)
    return HistoryEntryView(
        pair_address=priced.pair_address,
        type=priced.event_type,
        reserve0=plain_decimal(priced.reserve0),
        reserve1=plain_decimal(priced.reserve1),
        delta_reserve0=plain_decimal(priced.delta_reserve0),
        delta_reserve1=plain_decimal(priced.delta_reserve1),
        token0_ae_price=_optional(priced.token0_native_price),
        token1_ae_price=_optional(priced.token1_native_price),
        ae_usd_price=plain_decimal(priced.fiat_price),
        height=entry.height,
        micro_block_hash=entry.micro_block_hash,
        micro_block_time=str(entry.micro_block_time),
        transaction_hash=entry.transaction_hash,
        transaction_index=str(entry.transaction_index),
        log_index=entry.log_index,
        reserve0_usd=_optional(priced.reserve0_usd),
        reserve1_usd=_optional(priced.reserve1_usd),
        delta0_usd_value=_optional(priced.delta0_usd_value),
        delta1_usd_value=_optional(priced.delta1_usd_value),
        tx_usd_fee=_optional(priced.tx_usd_fee),
    )


class HistoryService:
    """Paginated listing of the liquidity history with USD values derived at read time"""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager
        self.history_repo = db_manager.get_liquidity_history_repo()
        self.logger = IndexerLogger.get_logger('services.history_service')

    def get_all_history_entries(self, query: HistoryQuery) -> List[HistoryEntryView]:
        if query.limit < 0 or query.offset < 0:
            raise UsageError("limit and offset must not be negative")

        query = msgspec.structs.replace(query, limit=min(query.limit, MAX_HISTORY_LIMIT))

        with self.db_manager.get_session() as session:
            rows = self.history_repo.get_all(session, query)
            views = [to_history_view(row) for row in rows]

        log_with_context(self.logger, DEBUG, "History entries listed",
                        count=len(views),
                        limit=query.limit,
                        offset=query.offset,
                        pair_address=query.pair_address,
                        token_address=query.token_address)
        return views
