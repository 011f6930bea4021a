# history_indexer/database/tables/token.py

from sqlalchemy import Column, Integer, String

from ..base import Base


class DBToken(Base):
    __tablename__ = 'token'

    id = Column(Integer, primary_key=True, autoincrement=True)
    address = Column(String(64), nullable=False, unique=True, index=True)
    symbol = Column(String(32), nullable=False)
    name = Column(String(128), nullable=False)
    decimals = Column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<Token(id={self.id}, symbol={self.symbol}, address={self.address})>"
