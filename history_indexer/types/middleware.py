# history_indexer/types/middleware.py

from typing import Any, List, Optional

from msgspec import Struct

from .ledger import LogPosition


class ContractInfo(Struct):
    contract: str
    block_hash: str
    source_tx_hash: str
    source_tx_type: Optional[str] = None
    aexn_type: Optional[str] = None

class MicroBlock(Struct):
    hash: str
    height: int
    time: int
    micro_block_index: Optional[int] = None
    transactions_count: Optional[int] = None
    prev_hash: Optional[str] = None
    prev_key_hash: Optional[str] = None

class ContractLog(Struct):
    block_hash: str
    block_time: int
    call_tx_hash: str
    call_txi: int
    contract_id: str
    height: int
    log_idx: int
    args: List[Any] = []
    data: str = ""
    event_name: Optional[str] = None
    event_hash: Optional[str] = None
    micro_index: Optional[int] = None

    @property
    def position(self) -> LogPosition:
        return LogPosition(
            height=self.height,
            transaction_index=self.call_txi,
            log_index=self.log_idx,
        )

class MiddlewareStatus(Struct):
    mdw_height: int
    node_height: Optional[int] = None
    mdw_synced: Optional[bool] = None
