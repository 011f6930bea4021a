# history_indexer/types/ledger.py

import enum
from decimal import Context, Decimal, localcontext
from typing import ClassVar, Optional, Union

from msgspec import Struct


class EventType(str, enum.Enum):
    CREATE_PAIR = "CreatePair"
    PAIR_MINT = "PairMint"
    PAIR_BURN = "PairBurn"
    SYNC = "Sync"
    SWAP_TOKENS = "SwapTokens"


# Event names emitted by pair contracts that change reserves
LEDGER_EVENT_NAMES = frozenset({
    EventType.PAIR_MINT.value,
    EventType.PAIR_BURN.value,
    EventType.SYNC.value,
    EventType.SWAP_TOKENS.value,
})


class LogPosition(Struct, frozen=True, order=True):
    height: int
    transaction_index: int
    log_index: int


class Reserves(Struct, frozen=True):
    reserve0: Decimal
    reserve1: Decimal

    @classmethod
    def zero(cls) -> 'Reserves':
        return cls(reserve0=Decimal(0), reserve1=Decimal(0))


class ReserveChange(Struct, frozen=True):
    reserve0: Decimal
    reserve1: Decimal
    delta_reserve0: Decimal
    delta_reserve1: Decimal


# Token amounts are integers of up to 256 bits, keep them exact
DECIMAL_CONTEXT = Context(prec=100)


'''
Decoded pair events. Each variant folds itself onto the previous reserves.
'''
class PairEvent(Struct, frozen=True, tag=True):
    event_type: ClassVar[EventType]

    def apply(self, baseline: Reserves) -> ReserveChange:
        with localcontext(DECIMAL_CONTEXT):
            return self._apply(baseline)

    def _apply(self, baseline: Reserves) -> ReserveChange:
        raise NotImplementedError

class PairMint(PairEvent):
    amount0: Decimal
    amount1: Decimal

    event_type: ClassVar[EventType] = EventType.PAIR_MINT

    def _apply(self, baseline: Reserves) -> ReserveChange:
        return ReserveChange(
            reserve0=baseline.reserve0 + self.amount0,
            reserve1=baseline.reserve1 + self.amount1,
            delta_reserve0=self.amount0,
            delta_reserve1=self.amount1,
        )

class PairBurn(PairEvent):
    amount0: Decimal
    amount1: Decimal

    event_type: ClassVar[EventType] = EventType.PAIR_BURN

    def _apply(self, baseline: Reserves) -> ReserveChange:
        return ReserveChange(
            reserve0=baseline.reserve0 - self.amount0,
            reserve1=baseline.reserve1 - self.amount1,
            delta_reserve0=-self.amount0,
            delta_reserve1=-self.amount1,
        )

class SwapTokens(PairEvent):
    amount0_in: Decimal
    amount1_in: Decimal
    amount0_out: Decimal
    amount1_out: Decimal

    event_type: ClassVar[EventType] = EventType.SWAP_TOKENS

    def _apply(self, baseline: Reserves) -> ReserveChange:
        delta0 = self.amount0_in - self.amount0_out
        delta1 = self.amount1_in - self.amount1_out
        return ReserveChange(
            reserve0=baseline.reserve0 + delta0,
            reserve1=baseline.reserve1 + delta1,
            delta_reserve0=delta0,
            delta_reserve1=delta1,
        )

class Sync(PairEvent):
    reserve0: Decimal
    reserve1: Decimal

    event_type: ClassVar[EventType] = EventType.SYNC

    def _apply(self, baseline: Reserves) -> ReserveChange:
        # absolute reserves, deltas are derived from the previous entry
        return ReserveChange(
            reserve0=self.reserve0,
            reserve1=self.reserve1,
            delta_reserve0=self.reserve0 - baseline.reserve0,
            delta_reserve1=self.reserve1 - baseline.reserve1,
        )


LedgerEvent = Union[PairMint, PairBurn, SwapTokens, Sync]


class LedgerEntry(Struct, kw_only=True):
    """One row of the liquidity history, as written by the importer"""
    pair_id: int
    event_type: EventType
    reserve0: Decimal
    reserve1: Decimal
    delta_reserve0: Decimal
    delta_reserve1: Decimal
    fiat_price: Decimal
    height: int
    micro_block_hash: str
    micro_block_time: int
    transaction_hash: str
    transaction_index: int
    log_index: int
    token0_native_price: Optional[Decimal] = None
    token1_native_price: Optional[Decimal] = None

    @property
    def position(self) -> LogPosition:
        return LogPosition(
            height=self.height,
            transaction_index=self.transaction_index,
            log_index=self.log_index,
        )


class ErrorIdentity(Struct, frozen=True):
    """Key of an import error record. Pair-level errors carry sentinel log fields."""
    pair_id: int
    micro_block_hash: str = ""
    transaction_hash: str = ""
    log_index: int = -1

    @classmethod
    def for_pair(cls, pair_id: int) -> 'ErrorIdentity':
        return cls(pair_id=pair_id)

    @classmethod
    def for_log(cls, pair_id: int, micro_block_hash: str, transaction_hash: str, log_index: int) -> 'ErrorIdentity':
        return cls(
            pair_id=pair_id,
            micro_block_hash=micro_block_hash,
            transaction_hash=transaction_hash,
            log_index=log_index,
        )

    @property
    def is_pair_level(self) -> bool:
        return self.log_index == -1 and not self.micro_block_hash and not self.transaction_hash


class ImportSummary(Struct, kw_only=True):
    """Counters of one importer run"""
    pairs: int = 0
    synced_logs: int = 0
    skipped_pairs: int = 0
    failed_pairs: int = 0
    skipped_logs: int = 0
    failed_logs: int = 0
