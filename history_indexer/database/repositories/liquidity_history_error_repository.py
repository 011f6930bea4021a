# history_indexer/database/repositories/liquidity_history_error_repository.py

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...core.logging import log_with_context, DEBUG, ERROR
from ...types import ErrorIdentity
from ..base import utc_now
from ..base_repository import BaseRepository
from ..tables import DBPairLiquidityInfoHistoryError
from ...tasks.cooldown import is_within_cooldown


class LiquidityHistoryErrorRepository(BaseRepository[DBPairLiquidityInfoHistoryError]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBPairLiquidityInfoHistoryError)

    def _identity_query(self, session: Session, identity: ErrorIdentity):
        model = DBPairLiquidityInfoHistoryError
        return session.query(model).filter(
            model.pair_id == identity.pair_id,
            model.micro_block_hash == identity.micro_block_hash,
            model.transaction_hash == identity.transaction_hash,
            model.log_index == identity.log_index,
        )

    def get_error(self, session: Session, identity: ErrorIdentity) -> Optional[DBPairLiquidityInfoHistoryError]:
        try:
            return self._identity_query(session, identity).first()
        except Exception as e:
            log_with_context(self.logger, ERROR, "Error getting error record",
                            pair_id=identity.pair_id,
                            micro_block_hash=identity.micro_block_hash,
                            transaction_hash=identity.transaction_hash,
                            log_index=identity.log_index,
                            error=str(e))
            raise

    def get_error_within_hours(
        self,
        session: Session,
        identity: ErrorIdentity,
        hours: float,
        now: Optional[datetime] = None
    ) -> Optional[DBPairLiquidityInfoHistoryError]:
        """Error record for the identity, if it still blocks a retry"""
        record = self.get_error(session, identity)
        if record is None or not is_within_cooldown(record.updated_at, now or utc_now(), hours):
            return None
        return record

    def upsert(self, session: Session, identity: ErrorIdentity, message: str) -> DBPairLiquidityInfoHistoryError:
        try:
            record = self._identity_query(session, identity).first()

            if record is None:
                record = DBPairLiquidityInfoHistoryError(
                    pair_id=identity.pair_id,
                    micro_block_hash=identity.micro_block_hash,
                    transaction_hash=identity.transaction_hash,
                    log_index=identity.log_index,
                    error=message,
                    times_occurred=1,
                )
                session.add(record)
            else:
                record.error = message
                record.times_occurred = record.times_occurred + 1
                record.updated_at = utc_now()

            session.flush()

            log_with_context(self.logger, DEBUG, "Error record upserted",
                            pair_id=identity.pair_id,
                            log_index=identity.log_index,
                            times_occurred=record.times_occurred)
            return record

        except Exception as e:
            log_with_context(self.logger, ERROR, "Error upserting error record",
                            pair_id=identity.pair_id,
                            log_index=identity.log_index,
                            error=str(e))
            raise
