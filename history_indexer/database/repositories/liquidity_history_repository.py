# history_indexer/database/repositories/liquidity_history_repository.py

from typing import List, Optional

import msgspec
from sqlalchemy import and_, or_, asc, desc
from sqlalchemy.orm import Session, aliased

from ...core.logging import log_with_context, DEBUG, INFO, ERROR
from ...types import LedgerEntry, LogPosition, HistoryQuery, OrderDirection
from ..base_repository import BaseRepository
from ..tables import DBPair, DBPairLiquidityInfoHistory, DBToken


class LiquidityHistoryRepository(BaseRepository[DBPairLiquidityInfoHistory]):
    """
    Repository for the pair liquidity ledger.

    Rows are identified by (micro_block_hash, transaction_hash, log_index) and
    are written through upsert() only. The validator is the single caller of
    delete_from_micro_block_time().
    """

    def __init__(self, db_manager):
        super().__init__(db_manager, DBPairLiquidityInfoHistory)

    def _position_order(self, direction=asc):
        model = DBPairLiquidityInfoHistory
        return (direction(model.height), direction(model.transaction_index), direction(model.log_index))

    def get_latest_entry(self, session: Session, pair_id: int) -> Optional[DBPairLiquidityInfoHistory]:
        try:
            return session.query(DBPairLiquidityInfoHistory).filter(
                DBPairLiquidityInfoHistory.pair_id == pair_id
            ).order_by(*self._position_order(desc)).first()
        except Exception as e:
            log_with_context(self.logger, ERROR, "Error getting latest history entry",
                            pair_id=pair_id, error=str(e))
            raise

    def get_entries_since(
        self,
        session: Session,
        pair_id: int,
        after: LogPosition
    ) -> List[DBPairLiquidityInfoHistory]:
        """Entries of a pair strictly after the given chain position, ascending"""
        model = DBPairLiquidityInfoHistory
        try:
            return session.query(model).filter(
                model.pair_id == pair_id,
                or_(
                    model.height > after.height,
                    and_(
                        model.height == after.height,
                        or_(
                            model.transaction_index > after.transaction_index,
                            and_(
                                model.transaction_index == after.transaction_index,
                                model.log_index > after.log_index,
                            ),
                        ),
                    ),
                ),
            ).order_by(*self._position_order()).all()
        except Exception as e:
            log_with_context(self.logger, ERROR, "Error getting history entries since position",
                            pair_id=pair_id, height=after.height, error=str(e))
            raise

    def get_within_height_sorted(self, session: Session, min_height: int) -> List[DBPairLiquidityInfoHistory]:
        model = DBPairLiquidityInfoHistory
        try:
            return session.query(model).filter(
                model.height >= min_height
            ).order_by(asc(model.height), asc(model.micro_block_time)).all()
        except Exception as e:
            log_with_context(self.logger, ERROR, "Error getting history entries within height",
                            height=min_height, error=str(e))
            raise

    def upsert(self, session: Session, entry: LedgerEntry) -> DBPairLiquidityInfoHistory:
        values = msgspec.structs.asdict(entry)

        try:
            existing = session.query(DBPairLiquidityInfoHistory).filter(
                DBPairLiquidityInfoHistory.micro_block_hash == entry.micro_block_hash,
                DBPairLiquidityInfoHistory.transaction_hash == entry.transaction_hash,
                DBPairLiquidityInfoHistory.log_index == entry.log_index,
            ).first()

            if existing is None:
                row = DBPairLiquidityInfoHistory(**values)
                session.add(row)
            else:
                row = existing
                for field, value in values.items():
                    setattr(row, field, value)

            session.flush()

            log_with_context(self.logger, DEBUG, "History entry upserted",
                            pair_id=entry.pair_id,
                            event_type=entry.event_type.value,
                            micro_block_hash=entry.micro_block_hash,
                            transaction_hash=entry.transaction_hash,
                            log_index=entry.log_index,
                            inserted=existing is None)
            return row

        except Exception as e:
            log_with_context(self.logger, ERROR, "Error upserting history entry",
                            pair_id=entry.pair_id,
                            micro_block_hash=entry.micro_block_hash,
                            transaction_hash=entry.transaction_hash,
                            log_index=entry.log_index,
                            error=str(e))
            raise

    def delete_from_micro_block_time(self, session: Session, micro_block_time: int) -> int:
        """Delete every entry, across all pairs, at or after the given time"""
        try:
            deleted = session.query(DBPairLiquidityInfoHistory).filter(
                DBPairLiquidityInfoHistory.micro_block_time >= micro_block_time
            ).delete(synchronize_session=False)

            log_with_context(self.logger, INFO, "History entries deleted",
                            micro_block_time=micro_block_time, deleted=deleted)
            return deleted
        except Exception as e:
            log_with_context(self.logger, ERROR, "Error deleting history entries",
                            micro_block_time=micro_block_time, error=str(e))
            raise

    def get_all(self, session: Session, query: HistoryQuery) -> List[DBPairLiquidityInfoHistory]:
        model = DBPairLiquidityInfoHistory
        direction = desc if query.order == OrderDirection.DESC else asc

        try:
            q = session.query(model).join(DBPair, model.pair_id == DBPair.id)

            if query.pair_address:
                q = q.filter(DBPair.address == query.pair_address)
            if query.token_address:
                token0 = aliased(DBToken)
                token1 = aliased(DBToken)
                q = q.join(token0, DBPair.token0_id == token0.id).join(token1, DBPair.token1_id == token1.id)
                q = q.filter(or_(token0.address == query.token_address,
                                 token1.address == query.token_address))
            if query.height is not None:
                q = q.filter(model.height == query.height)
            if query.from_block_time is not None:
                q = q.filter(model.micro_block_time >= query.from_block_time)
            if query.to_block_time is not None:
                q = q.filter(model.micro_block_time <= query.to_block_time)

            return q.order_by(
                direction(model.micro_block_time),
                *self._position_order(direction),
            ).offset(query.offset).limit(query.limit).all()

        except Exception as e:
            log_with_context(self.logger, ERROR, "Error listing history entries",
                            pair_address=query.pair_address,
                            token_address=query.token_address,
                            error=str(e))
            raise

    def get_for_scope(
        self,
        session: Session,
        pair_id: Optional[int] = None,
        token_id: Optional[int] = None
    ) -> List[DBPairLiquidityInfoHistory]:
        """Full ledger for a pair, a token or everything, oldest first"""
        model = DBPairLiquidityInfoHistory

        try:
            q = session.query(model)
            if pair_id is not None:
                q = q.filter(model.pair_id == pair_id)
            elif token_id is not None:
                q = q.join(DBPair, model.pair_id == DBPair.id).filter(
                    or_(DBPair.token0_id == token_id, DBPair.token1_id == token_id)
                )

            return q.order_by(asc(model.micro_block_time), *self._position_order()).all()

        except Exception as e:
            log_with_context(self.logger, ERROR, "Error getting history entries for scope",
                            pair_id=pair_id, token_id=token_id, error=str(e))
            raise
