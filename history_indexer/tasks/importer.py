# history_indexer/tasks/importer.py

from datetime import datetime
from decimal import Decimal, localcontext
from typing import Callable, List, Optional, Tuple

import msgspec

from ..clients import FiatPriceClient, MiddlewareClientInterface
from ..core.config import IndexerConfig
from ..core.logging import LoggingMixin
from ..database.base import utc_now
from ..database.connection import DatabaseManager
from ..database.tables import DBPair, DBPairLiquidityInfoHistory
from ..types import (
    ContractLog,
    DECIMAL_CONTEXT,
    ErrorIdentity,
    EventType,
    ImportSummary,
    LEDGER_EVENT_NAMES,
    LedgerEntry,
    LogPosition,
    Reserves,
)
from .decoder import decode_log


class LiquidityHistoryImporter(LoggingMixin):
    """
    Imports pair contract logs into the liquidity history ledger.

    Pairs are synced one after another. Within a pair every log is a separate
    read-compute-write step: the baseline reserves are read back from the
    database right before the log is applied, so an interrupted run resumes
    from the last committed entry. Failures are recorded per pair or per log
    and block that unit until the error cooldown has passed.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        middleware: MiddlewareClientInterface,
        fiat_price_client: FiatPriceClient,
        config: IndexerConfig,
        now: Callable[[], datetime] = utc_now,
    ):
        self.db_manager = db_manager
        self.middleware = middleware
        self.fiat_price_client = fiat_price_client
        self.cooldown_hours = config.importer.error_cooldown_hours
        self.wrapped_native_address = config.importer.wrapped_native_address
        self._now = now

        self.pair_repo = db_manager.get_pair_repo()
        self.history_repo = db_manager.get_liquidity_history_repo()
        self.error_repo = db_manager.get_liquidity_history_error_repo()

    def import_history(self) -> ImportSummary:
        summary = ImportSummary()
        self.logger.info("Started syncing pair liquidity info history.")

        try:
            with self.db_manager.get_session() as session:
                pairs = self.pair_repo.list_all(session)
        except Exception as e:
            self.log_error("Could not load pairs, liquidity info history sync aborted",
                           error=f"{type(e).__name__}: {e}")
            return summary

        summary.pairs = len(pairs)
        self.logger.info(f"Syncing liquidity info history for {len(pairs)} pairs.")

        for pair in pairs:
            self._sync_pair(pair, summary)

        self.logger.info("Finished liquidity info history sync for all pairs.")
        self.log_debug("Import summary", **msgspec.structs.asdict(summary))
        return summary

    def _sync_pair(self, pair: DBPair, summary: ImportSummary) -> None:
        pair_identity = ErrorIdentity.for_pair(pair.id)

        try:
            if self._has_recent_error(pair_identity):
                self.logger.info(f"Skipped pair {pair.id} due to recent error.")
                summary.skipped_pairs += 1
                return

            last_position = self._last_position_or_initialize(pair)

            fetched = self.middleware.get_contract_logs_until_condition(
                pair.address,
                lambda log: log.position <= last_position,
            )
            logs = self._pending_logs(fetched, last_position)

            synced = 0
            for log in logs:
                if self._import_log(pair, log, summary):
                    synced += 1

            summary.synced_logs += synced
            self.logger.info(f"Completed sync for pair {pair.id} {pair.address}. Synced {synced} log(s).")

        except Exception as e:
            summary.failed_pairs += 1
            self._record_error(pair_identity, e)

    def _pending_logs(self, logs: List[ContractLog], last_position: LogPosition) -> List[ContractLog]:
        pending = [
            log for log in logs
            if log.event_name in LEDGER_EVENT_NAMES and log.position > last_position
        ]
        return sorted(pending, key=lambda log: log.position)

    def _last_position_or_initialize(self, pair: DBPair) -> LogPosition:
        with self.db_manager.get_session() as session:
            latest = self.history_repo.get_latest_entry(session, pair.id)

        if latest is not None:
            return LogPosition(
                height=latest.height,
                transaction_index=latest.transaction_index,
                log_index=latest.log_index,
            )

        contract = self.middleware.get_contract(pair.address)
        micro_block = self.middleware.get_micro_block(contract.block_hash)

        entry = LedgerEntry(
            pair_id=pair.id,
            event_type=EventType.CREATE_PAIR,
            reserve0=Decimal(0),
            reserve1=Decimal(0),
            delta_reserve0=Decimal(0),
            delta_reserve1=Decimal(0),
            fiat_price=Decimal(0),
            height=micro_block.height,
            micro_block_hash=micro_block.hash,
            micro_block_time=micro_block.time,
            transaction_hash=contract.source_tx_hash,
            transaction_index=0,
            log_index=0,
        )
        with self.db_manager.get_transaction() as session:
            self.history_repo.upsert(session, entry)

        self.logger.info(f"Inserted initial liquidity for pair {pair.id} {pair.address}.")
        return entry.position

    def _import_log(self, pair: DBPair, log: ContractLog, summary: ImportSummary) -> bool:
        identity = ErrorIdentity.for_log(pair.id, log.block_hash, log.call_tx_hash, log.log_idx)

        try:
            if self._has_recent_error(identity):
                self.logger.info(
                    f"Skipped log with block hash {log.block_hash} tx hash {log.call_tx_hash} "
                    f"and log index {log.log_idx} due to recent error."
                )
                summary.skipped_logs += 1
                return False

            event = decode_log(log)
            fiat_price = self.fiat_price_client.get_fiat_price(log.block_time)

            with self.db_manager.get_transaction() as session:
                baseline = self._baseline(self.history_repo.get_latest_entry(session, pair.id))
                change = event.apply(baseline)
                token0_price, token1_price = self._token_native_prices(
                    pair, Reserves(reserve0=change.reserve0, reserve1=change.reserve1)
                )

                self.history_repo.upsert(session, LedgerEntry(
                    pair_id=pair.id,
                    event_type=event.event_type,
                    reserve0=change.reserve0,
                    reserve1=change.reserve1,
                    delta_reserve0=change.delta_reserve0,
                    delta_reserve1=change.delta_reserve1,
                    fiat_price=fiat_price,
                    token0_native_price=token0_price,
                    token1_native_price=token1_price,
                    height=log.height,
                    micro_block_hash=log.block_hash,
                    micro_block_time=log.block_time,
                    transaction_hash=log.call_tx_hash,
                    transaction_index=log.call_txi,
                    log_index=log.log_idx,
                ))
            return True

        except Exception as e:
            summary.failed_logs += 1
            self._record_error(identity, e)
            return False

    def _baseline(self, latest: Optional[DBPairLiquidityInfoHistory]) -> Reserves:
        if latest is None:
            return Reserves.zero()
        return Reserves(reserve0=latest.reserve0, reserve1=latest.reserve1)

    def _token_native_prices(self, pair: DBPair, reserves: Reserves) -> Tuple[Optional[Decimal], Optional[Decimal]]:
        """Price of each token in the native currency, known only for pairs against the wrapped native token"""
        if not self.wrapped_native_address:
            return None, None

        with localcontext(DECIMAL_CONTEXT):
            normalized0 = reserves.reserve0 / (Decimal(10) ** pair.token0.decimals)
            normalized1 = reserves.reserve1 / (Decimal(10) ** pair.token1.decimals)

            if pair.token0.address == self.wrapped_native_address:
                return Decimal(1), (normalized0 / normalized1 if normalized1 else None)
            if pair.token1.address == self.wrapped_native_address:
                return (normalized1 / normalized0 if normalized0 else None), Decimal(1)
        return None, None

    def _has_recent_error(self, identity: ErrorIdentity) -> bool:
        with self.db_manager.get_session() as session:
            record = self.error_repo.get_error_within_hours(session, identity, self.cooldown_hours, now=self._now())
        return record is not None

    def _record_error(self, identity: ErrorIdentity, error: Exception) -> None:
        prefix = "Skipped pair." if identity.is_pair_level else "Skipped log."
        message = f"{type(error).__name__}: {error}"
        details = msgspec.json.encode({
            'pairId': identity.pair_id,
            'microBlockHash': identity.micro_block_hash,
            'transactionHash': identity.transaction_hash,
            'logIndex': identity.log_index,
            'error': message,
        }).decode()

        self.logger.error(f"{prefix} {details}")

        try:
            with self.db_manager.get_transaction() as session:
                self.error_repo.upsert(session, identity, message)
        except Exception as e:
            self.log_error("Failed to record import error",
                           pair_id=identity.pair_id,
                           log_index=identity.log_index,
                           error=str(e))
