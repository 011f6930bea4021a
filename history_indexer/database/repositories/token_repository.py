# history_indexer/database/repositories/token_repository.py

from ..base_repository import BaseRepository
from ..tables import DBToken


class TokenRepository(BaseRepository[DBToken]):
    """Read access to tokens; rows are written by the token sync, not by this service"""

    def __init__(self, db_manager):
        super().__init__(db_manager, DBToken)
