# history_indexer/database/tables/liquidity_history_error.py

from sqlalchemy import Column, ForeignKey, Integer, String, Text, UniqueConstraint

from ..base import Base, TimestampMixin


class DBPairLiquidityInfoHistoryError(Base, TimestampMixin):
    __tablename__ = 'pair_liquidity_info_history_error'

    id = Column(Integer, primary_key=True, autoincrement=True)
    pair_id = Column(Integer, ForeignKey('pair.id', ondelete='CASCADE'), nullable=False, index=True)
    micro_block_hash = Column(String(64), nullable=False, default='')
    transaction_hash = Column(String(64), nullable=False, default='')
    log_index = Column(Integer, nullable=False, default=-1)
    error = Column(Text, nullable=False)
    times_occurred = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint('pair_id', 'micro_block_hash', 'transaction_hash', 'log_index',
                         name='uq_pair_liquidity_info_history_error_identity'),
    )

    def __repr__(self) -> str:
        return (f"<PairLiquidityInfoHistoryError(pair_id={self.pair_id}, "
                f"log_index={self.log_index}, times_occurred={self.times_occurred})>")
