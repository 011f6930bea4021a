# history_indexer/services/graph_service.py

import time
from decimal import Decimal, localcontext
from functools import reduce
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple

from ..core.errors import NotFoundError, UsageError
from ..core.logging import IndexerLogger, log_with_context, DEBUG
from ..database.connection import DatabaseManager
from ..database.tables import DBToken
from ..types import (
    DECIMAL_CONTEXT,
    EventType,
    FilteredSeries,
    Graph,
    GraphType,
    PricedEntry,
    RawSeries,
    TimeFrame,
)
from .history_service import map_to_entry_with_price, plain_decimal

BUCKET_COUNT = 30
NAN = Decimal('NaN')
ZERO = Decimal(0)

OVERVIEW = 'overview'
TOKEN = 'token'
PAIR = 'pair'

GRAPH_TYPES_BY_SCOPE: Dict[str, FrozenSet[GraphType]] = {
    OVERVIEW: frozenset({GraphType.TVL, GraphType.VOLUME}),
    TOKEN: frozenset({GraphType.PRICE, GraphType.TVL, GraphType.LOCKED, GraphType.VOLUME}),
    PAIR: frozenset({
        GraphType.PRICE_TOKEN0_IN_TOKEN1,
        GraphType.PRICE_TOKEN1_IN_TOKEN0,
        GraphType.TVL,
        GraphType.FEES,
        GraphType.VOLUME,
    }),
}

SCOPE_LABELS = {OVERVIEW: 'the overview', TOKEN: 'tokens', PAIR: 'pairs'}


def current_time_ms() -> int:
    return int(time.time() * 1000)


def _sign(value: Decimal) -> int:
    if value == 0:
        return 0
    return 1 if value > 0 else -1


def _nan_if_none(value: Optional[Decimal]) -> Decimal:
    return NAN if value is None else value


def _zero_if_none(value: Optional[Decimal]) -> Decimal:
    return ZERO if value is None else value


def _zero_if_nan(value: Decimal) -> Decimal:
    return ZERO if value.is_nan() else value


def _normalized(amount: Decimal, decimals: int) -> Decimal:
    return amount / (Decimal(10) ** decimals)


def _ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    return NAN if denominator == 0 else numerator / denominator


class GraphService:
    """
    Time series over the liquidity history.

    The ledger for the requested scope is folded into a raw series, cut to the
    requested time frame and, for bar charts, aggregated into 30 buckets
    spanning the frame up to now.
    """

    def __init__(self, db_manager: DatabaseManager, now: Callable[[], int] = current_time_ms):
        self.db_manager = db_manager
        self.pair_repo = db_manager.get_pair_repo()
        self.token_repo = db_manager.get_token_repo()
        self.history_repo = db_manager.get_liquidity_history_repo()
        self._now = now
        self.logger = IndexerLogger.get_logger('services.graph_service')

    def get_graph(
        self,
        graph_type: GraphType,
        time_frame: TimeFrame,
        token_address: Optional[str] = None,
        pair_address: Optional[str] = None,
    ) -> Graph:
        try:
            graph_type = GraphType(graph_type)
            time_frame = TimeFrame(time_frame)
        except ValueError as e:
            raise UsageError(str(e)) from e

        if token_address and pair_address:
            raise UsageError("It is not possible to request a graph for both tokenAddress and pairAddress")

        with self.db_manager.get_session() as session:
            token = None
            pair = None
            if token_address:
                token = self.token_repo.get_by_address(session, token_address)
                if token is None:
                    raise NotFoundError("Token not found")
            if pair_address:
                pair = self.pair_repo.get_by_address(session, pair_address)
                if pair is None:
                    raise NotFoundError("Pair not found")

            scope = PAIR if pair else TOKEN if token else OVERVIEW
            if graph_type not in GRAPH_TYPES_BY_SCOPE[scope]:
                raise UsageError(f"The graph type '{graph_type.value}' is not available for {SCOPE_LABELS[scope]}.")

            rows = self.history_repo.get_for_scope(
                session,
                pair_id=pair.id if pair else None,
                token_id=token.id if token else None,
            )
            entries = [map_to_entry_with_price(row) for row in rows]

        now = self._now()
        with localcontext(DECIMAL_CONTEXT):
            raw = self.graph_data(entries, graph_type, scope, token)
            filtered = self.filtered_data(raw, graph_type, time_frame, now)
            graph = self.bucketed_graph_data(filtered, graph_type, time_frame, now)

        log_with_context(self.logger, DEBUG, "Graph built",
                        graph_type=graph_type.value,
                        time_frame=time_frame.value,
                        scope=scope,
                        entries=len(entries),
                        points=len(graph.data))
        return graph

    # === Raw series ===

    def graph_data(
        self,
        entries: Sequence[PricedEntry],
        graph_type: GraphType,
        scope: str,
        token: Optional[DBToken] = None,
    ) -> RawSeries:
        """Fold the ledger, oldest first, into one value per entry"""
        if scope == OVERVIEW:
            values = self._overview_values(entries, graph_type)
        elif scope == TOKEN:
            values = self._token_values(entries, graph_type, token)
        else:
            values = [self._pair_value(entry, graph_type) for entry in entries]

        return RawSeries(x=[entry.micro_block_time for entry in entries], data=values)

    def _overview_values(self, entries: Sequence[PricedEntry], graph_type: GraphType) -> List[Decimal]:
        values = []
        tvl = ZERO
        for entry in entries:
            if graph_type == GraphType.TVL:
                # usd values are absolute, the reserve delta carries the direction
                delta0 = _nan_if_none(entry.delta0_usd_value) * _sign(entry.delta_reserve0)
                delta1 = _nan_if_none(entry.delta1_usd_value) * _sign(entry.delta_reserve1)
                tvl = tvl + _zero_if_nan(delta0) + _zero_if_nan(delta1)
                values.append(tvl)
            elif entry.event_type == EventType.SWAP_TOKENS.value:
                values.append(_zero_if_none(entry.delta0_usd_value) + _zero_if_none(entry.delta1_usd_value))
            else:
                values.append(ZERO)
        return values

    def _token_values(self, entries: Sequence[PricedEntry], graph_type: GraphType, token: DBToken) -> List[Decimal]:
        values = []
        reserve = ZERO
        for entry in entries:
            is_token0 = entry.token0_address == token.address
            delta = entry.delta_reserve0 if is_token0 else entry.delta_reserve1
            native_price = entry.token0_native_price if is_token0 else entry.token1_native_price
            reserve = reserve + delta
            price_usd = _nan_if_none(native_price) * entry.fiat_price

            if graph_type == GraphType.PRICE:
                values.append(price_usd)
            elif graph_type == GraphType.TVL:
                values.append(_normalized(reserve * price_usd, token.decimals))
            elif graph_type == GraphType.LOCKED:
                values.append(_normalized(reserve, token.decimals))
            elif entry.event_type == EventType.SWAP_TOKENS.value:
                values.append(_normalized(abs(delta) * price_usd, token.decimals))
            else:
                values.append(ZERO)
        return values

    def _pair_value(self, entry: PricedEntry, graph_type: GraphType) -> Decimal:
        if graph_type in (GraphType.PRICE_TOKEN0_IN_TOKEN1, GraphType.PRICE_TOKEN1_IN_TOKEN0):
            reserve0 = _normalized(entry.reserve0, entry.token0_decimals)
            reserve1 = _normalized(entry.reserve1, entry.token1_decimals)
            if graph_type == GraphType.PRICE_TOKEN0_IN_TOKEN1:
                return _ratio(reserve1, reserve0)
            return _ratio(reserve0, reserve1)

        if graph_type == GraphType.TVL:
            return _nan_if_none(entry.reserve0_usd) + _nan_if_none(entry.reserve1_usd)

        if graph_type == GraphType.FEES:
            return _zero_if_none(entry.tx_usd_fee)

        if entry.event_type == EventType.SWAP_TOKENS.value:
            return _nan_if_none(entry.delta0_usd_value) + _nan_if_none(entry.delta1_usd_value)
        return ZERO

    # === Windowing ===

    def filtered_data(self, raw: RawSeries, graph_type: GraphType, time_frame: TimeFrame, now: int) -> FilteredSeries:
        frame_ms = time_frame.milliseconds()
        if frame_ms is None:
            min_time = min(raw.x) if raw.x else now
        else:
            min_time = now - frame_ms

        filtered_data: List[Decimal] = []
        filtered_time: List[int] = []
        excluded_data: List[Decimal] = []
        excluded_time: List[int] = []

        for timestamp, value in zip(raw.x, raw.data):
            if value.is_nan():
                continue
            if timestamp >= min_time:
                filtered_data.append(value)
                filtered_time.append(timestamp)
            else:
                excluded_data.append(value)
                excluded_time.append(timestamp)

        if graph_type.is_cumulative and excluded_data:
            # carry the last value before the window in as its baseline
            filtered_data.insert(0, excluded_data.pop())
            filtered_time.insert(0, min_time)
            excluded_time.pop()

        if graph_type.is_point_in_time and filtered_data:
            filtered_data.insert(0, ZERO)
            filtered_time.insert(0, min_time)

        if graph_type.is_price and filtered_data:
            filtered_data.append(filtered_data[-1])
            filtered_time.append(now)

        return FilteredSeries(
            filtered_data=filtered_data,
            excluded_data=excluded_data,
            filtered_time=filtered_time,
            excluded_time=excluded_time,
            min_time=min_time,
        )

    # === Bucketing ===

    def bucketed_graph_data(
        self,
        filtered: FilteredSeries,
        graph_type: GraphType,
        time_frame: TimeFrame,
        now: int,
    ) -> Graph:
        if graph_type.is_point_in_time and not filtered.filtered_data:
            return Graph(graph_type=graph_type, time_frame=time_frame, labels=[], data=[])

        if not graph_type.is_bar_chart:
            return Graph(
                graph_type=graph_type,
                time_frame=time_frame,
                labels=[str(t) for t in filtered.filtered_time],
                data=[plain_decimal(v) for v in filtered.filtered_data],
            )

        min_time = filtered.min_time
        span = max(now - min_time, 0)

        buckets: List[List[Decimal]] = [[] for _ in range(BUCKET_COUNT)]
        for timestamp, value in zip(filtered.filtered_time, filtered.filtered_data):
            buckets[self._bucket_index(timestamp, min_time, span)].append(value)

        if graph_type.is_cumulative:
            values = self._forward_filled_means(buckets)
        else:
            values = tuple(sum(bucket, ZERO) for bucket in buckets)

        return Graph(
            graph_type=graph_type,
            time_frame=time_frame,
            labels=[str(min_time + i * span // BUCKET_COUNT) for i in range(BUCKET_COUNT)],
            data=[plain_decimal(v) for v in values],
        )

    @staticmethod
    def _bucket_index(timestamp: int, min_time: int, span: int) -> int:
        if span == 0:
            return 0
        index = (timestamp - min_time) * BUCKET_COUNT // span
        return min(max(index, 0), BUCKET_COUNT - 1)

    @staticmethod
    def _forward_filled_means(buckets: Sequence[Sequence[Decimal]]) -> Tuple[Decimal, ...]:
        """Mean per bucket, an empty bucket repeats the previous bucket's value"""
        def step(acc: Tuple[Decimal, ...], bucket: Sequence[Decimal]) -> Tuple[Decimal, ...]:
            if bucket:
                return acc + (sum(bucket, ZERO) / len(bucket),)
            return acc + (acc[-1] if acc else ZERO,)

        return reduce(step, buckets, ())
