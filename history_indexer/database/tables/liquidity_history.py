# history_indexer/database/tables/liquidity_history.py

from sqlalchemy import BigInteger, Column, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from ..base import Base, TimestampMixin
from ..types import DecimalType, EventTypeType


class DBPairLiquidityInfoHistory(Base, TimestampMixin):
    __tablename__ = 'pair_liquidity_info_history'

    id = Column(Integer, primary_key=True, autoincrement=True)
    pair_id = Column(Integer, ForeignKey('pair.id', ondelete='CASCADE'), nullable=False, index=True)
    event_type = Column(EventTypeType(), nullable=False)
    reserve0 = Column(DecimalType(), nullable=False)
    reserve1 = Column(DecimalType(), nullable=False)
    delta_reserve0 = Column(DecimalType(), nullable=False)
    delta_reserve1 = Column(DecimalType(), nullable=False)
    fiat_price = Column(DecimalType(), nullable=False)
    token0_native_price = Column(DecimalType(), nullable=True)
    token1_native_price = Column(DecimalType(), nullable=True)
    height = Column(Integer, nullable=False, index=True)
    micro_block_hash = Column(String(64), nullable=False)
    micro_block_time = Column(BigInteger, nullable=False, index=True)
    transaction_hash = Column(String(64), nullable=False)
    transaction_index = Column(BigInteger, nullable=False)
    log_index = Column(Integer, nullable=False)

    pair = relationship('DBPair', lazy='joined')

    __table_args__ = (
        UniqueConstraint('micro_block_hash', 'transaction_hash', 'log_index',
                         name='uq_pair_liquidity_info_history_log'),
        Index('idx_pair_liquidity_info_history_position',
              'pair_id', 'height', 'transaction_index', 'log_index'),
    )

    def __repr__(self) -> str:
        return (f"<PairLiquidityInfoHistory(pair_id={self.pair_id}, {self.event_type}, "
                f"height={self.height}, log_index={self.log_index})>")
