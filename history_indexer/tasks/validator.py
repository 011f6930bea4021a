# history_indexer/tasks/validator.py

from typing import Set

from ..clients import MiddlewareClientInterface
from ..core.config import IndexerConfig
from ..core.logging import LoggingMixin
from ..database.connection import DatabaseManager


class LiquidityHistoryValidator(LoggingMixin):
    """
    Detects chain reorganizations in recently imported history.

    Only the last `reorg_depth` heights are compared with the canonical
    micro-blocks reported by the middleware. Everything from the first unknown
    micro-block onward is deleted, for all pairs, and the importer re-syncs it
    on its next run.
    """

    def __init__(self, db_manager: DatabaseManager, middleware: MiddlewareClientInterface, config: IndexerConfig):
        self.db_manager = db_manager
        self.middleware = middleware
        self.reorg_depth = config.validator.reorg_depth
        self.history_repo = db_manager.get_liquidity_history_repo()

    def validate(self) -> int:
        self.logger.info("Started validating pair liquidity info history.")

        current_height = self.middleware.get_height()
        min_height = current_height - self.reorg_depth

        with self.db_manager.get_session() as session:
            entries = self.history_repo.get_within_height_sorted(session, min_height)

        heights = sorted({entry.height for entry in entries})
        canonical_hashes: Set[str] = set()
        for height in heights:
            canonical_hashes.update(mb.hash for mb in self.middleware.get_key_block_micro_blocks(height))

        self.log_debug("Loaded canonical micro-blocks",
                       height=current_height,
                       entries=len(entries),
                       heights=len(heights),
                       micro_blocks=len(canonical_hashes))

        deleted = 0
        divergent = next((e for e in entries if e.micro_block_hash not in canonical_hashes), None)
        if divergent is not None:
            self.log_debug("Divergent micro-block found",
                           pair_id=divergent.pair_id,
                           height=divergent.height,
                           micro_block_hash=divergent.micro_block_hash)
            with self.db_manager.get_transaction() as session:
                deleted = self.history_repo.delete_from_micro_block_time(session, divergent.micro_block_time)

        if deleted > 0:
            self.logger.info(f"Found an inconsistency in pair liquidity info history. Deleted {deleted} entries.")
        else:
            self.logger.info("No problems in pair liquidity info history found.")

        self.logger.info("Finished validating pair liquidity info history.")
        return deleted
