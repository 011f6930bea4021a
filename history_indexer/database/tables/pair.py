# history_indexer/database/tables/pair.py

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from ..base import Base


class DBPair(Base):
    __tablename__ = 'pair'

    id = Column(Integer, primary_key=True, autoincrement=True)
    address = Column(String(64), nullable=False, unique=True, index=True)
    token0_id = Column(Integer, ForeignKey('token.id'), nullable=False, index=True)
    token1_id = Column(Integer, ForeignKey('token.id'), nullable=False, index=True)

    token0 = relationship('DBToken', foreign_keys=[token0_id], lazy='joined')
    token1 = relationship('DBToken', foreign_keys=[token1_id], lazy='joined')

    def __repr__(self) -> str:
        return f"<Pair(id={self.id}, address={self.address})>"
