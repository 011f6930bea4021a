# history_indexer/database/repositories/pair_repository.py

from ..base_repository import BaseRepository
from ..tables import DBPair


class PairRepository(BaseRepository[DBPair]):
    """Read access to pairs; rows are written by the pair sync, not by this service"""

    def __init__(self, db_manager):
        super().__init__(db_manager, DBPair)
