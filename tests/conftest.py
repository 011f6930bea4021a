# tests/conftest.py

from decimal import Decimal
from typing import Callable, List, Optional
from unittest.mock import MagicMock

import pytest

from history_indexer.clients import FiatPriceClient, MiddlewareClientInterface
from history_indexer.core.config import IndexerConfig
from history_indexer.database.connection import DatabaseManager
from history_indexer.database.tables import DBPair, DBToken
from history_indexer.types import (
    ContractInfo,
    ContractLog,
    EventType,
    LedgerEntry,
    MicroBlock,
)

WAE_ADDRESS = "ct_wae"
TOKEN_ADDRESS = "ct_token"
OTHER_TOKEN_ADDRESS = "ct_other"
PAIR_ADDRESS = "ct_pair"
OTHER_PAIR_ADDRESS = "ct_other_pair"

TEST_ENV = {
    "HISTORY_DB_URL": "sqlite://",
    "HISTORY_MDW_URL": "https://mdw.test/",
    "HISTORY_WRAPPED_NATIVE_ADDRESS": WAE_ADDRESS,
    "HISTORY_MDW_MAX_RETRIES": "1",
    "HISTORY_LOG_CONSOLE": "false",
}

E18 = Decimal(10) ** 18


class FakeMiddleware(MiddlewareClientInterface):
    """Serves a fixed, chain-ordered list of logs newest first like the middleware does"""

    def __init__(self, logs: Optional[List[ContractLog]] = None):
        self.logs = list(logs or [])
        self.create_block = MicroBlock(hash="mh_create", height=100, time=1_000)
        self.height = 0
        self.canonical = {}
        self.log_requests = 0

    def get_contract(self, address: str) -> ContractInfo:
        tx_hash = "th_create" if address == PAIR_ADDRESS else f"th_create_{address}"
        return ContractInfo(contract=address, block_hash="mh_create", source_tx_hash=tx_hash)

    def get_micro_block(self, micro_block_hash: str) -> MicroBlock:
        return self.create_block

    def get_contract_logs_until_condition(
        self,
        address: str,
        condition: Callable[[ContractLog], bool]
    ) -> List[ContractLog]:
        self.log_requests += 1
        own_logs = [log for log in self.logs if log.contract_id == address]
        newest_first = sorted(own_logs, key=lambda log: log.position, reverse=True)
        fetched = []
        for log in newest_first:
            if condition(log):
                break
            fetched.append(log)
        return fetched

    def get_key_block_micro_blocks(self, height: int) -> List[MicroBlock]:
        return [MicroBlock(hash=h, height=height, time=0) for h in self.canonical.get(height, [])]

    def get_height(self) -> int:
        return self.height


def make_log(event_name: str, height: int, log_idx: int = 0, args=None, data: str = "",
             call_txi: Optional[int] = None, block_time: Optional[int] = None,
             contract_id: str = PAIR_ADDRESS) -> ContractLog:
    return ContractLog(
        block_hash=f"mh_{height}",
        block_time=block_time if block_time is not None else height * 1_000,
        call_tx_hash=f"th_{height}",
        call_txi=call_txi if call_txi is not None else height,
        contract_id=contract_id,
        height=height,
        log_idx=log_idx,
        args=list(args or []),
        data=data,
        event_name=event_name,
    )


def make_entry(pair_id: int, height: int, reserve0, reserve1, delta0=0, delta1=0,
               event_type: EventType = EventType.SYNC, micro_block_time: Optional[int] = None,
               micro_block_hash: Optional[str] = None, log_index: int = 0,
               token0_price=None, token1_price=None, fiat_price=0) -> LedgerEntry:
    return LedgerEntry(
        pair_id=pair_id,
        event_type=event_type,
        reserve0=Decimal(reserve0),
        reserve1=Decimal(reserve1),
        delta_reserve0=Decimal(delta0),
        delta_reserve1=Decimal(delta1),
        fiat_price=Decimal(fiat_price),
        token0_native_price=None if token0_price is None else Decimal(token0_price),
        token1_native_price=None if token1_price is None else Decimal(token1_price),
        height=height,
        micro_block_hash=micro_block_hash or f"mh_{height}",
        micro_block_time=micro_block_time if micro_block_time is not None else height * 1_000,
        transaction_hash=f"th_{height}_{log_index}",
        transaction_index=height,
        log_index=log_index,
    )


@pytest.fixture
def config() -> IndexerConfig:
    return IndexerConfig.from_env(TEST_ENV)


@pytest.fixture
def db_manager(config):
    manager = DatabaseManager(config.database)
    manager.initialize()
    manager.create_tables()
    yield manager
    manager.shutdown()


def _load_pair(db_manager: DatabaseManager, address: str) -> DBPair:
    with db_manager.get_session() as session:
        return db_manager.get_pair_repo().get_by_address(session, address)


@pytest.fixture
def pair(db_manager) -> DBPair:
    """WAE/TKN pair, both tokens with 18 decimals"""
    with db_manager.get_transaction() as session:
        wae = DBToken(address=WAE_ADDRESS, symbol="WAE", name="Wrapped AE", decimals=18)
        token = DBToken(address=TOKEN_ADDRESS, symbol="TKN", name="Token", decimals=18)
        session.add_all([wae, token])
        session.flush()
        session.add(DBPair(address=PAIR_ADDRESS, token0_id=wae.id, token1_id=token.id))

    return _load_pair(db_manager, PAIR_ADDRESS)


@pytest.fixture
def other_pair(db_manager, pair) -> DBPair:
    """TKN/OTH pair without the wrapped native token"""
    with db_manager.get_transaction() as session:
        token = db_manager.get_token_repo().get_by_address(session, TOKEN_ADDRESS)
        other = DBToken(address=OTHER_TOKEN_ADDRESS, symbol="OTH", name="Other", decimals=18)
        session.add(other)
        session.flush()
        session.add(DBPair(address=OTHER_PAIR_ADDRESS, token0_id=token.id, token1_id=other.id))

    return _load_pair(db_manager, OTHER_PAIR_ADDRESS)


@pytest.fixture
def middleware() -> FakeMiddleware:
    return FakeMiddleware()


@pytest.fixture
def fiat_price_client():
    client = MagicMock(spec=FiatPriceClient)
    client.get_fiat_price.return_value = Decimal("0.05")
    return client


@pytest.fixture
def insert_entries(db_manager):
    def insert(*entries: LedgerEntry) -> None:
        repo = db_manager.get_liquidity_history_repo()
        with db_manager.get_transaction() as session:
            for entry in entries:
                repo.upsert(session, entry)
    return insert
