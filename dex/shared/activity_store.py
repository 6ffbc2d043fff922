"""
In-process audit log and transaction store.

Used when no persistent storage is wired in (local runs, tests). Entries are
kept per user in insertion order.
"""
import logging
from collections import defaultdict
from typing import Dict, List

from dex.shared.interfaces.collaborators import ActivityLogStore, TransactionStore
from dex.shared.models.arbitrage_models import (
    ActivityLogEntry,
    ArbitrageTransaction,
    LogLevel,
)

logger = logging.getLogger(__name__)

_LEVEL_MAP = {
    LogLevel.INFO: logging.INFO,
    LogLevel.SUCCESS: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class LoggingActivityLog(ActivityLogStore):
    """Mirror audit entries into the Python logger and keep them in memory"""

    def __init__(self):
        self.entries: Dict[str, List[ActivityLogEntry]] = defaultdict(list)

    async def create_activity_log(self, user_id: str, entry: ActivityLogEntry) -> None:
        self.entries[user_id].append(entry)
        logger.log(
            _LEVEL_MAP.get(entry.level, logging.INFO),
            f"[{user_id}] {entry.type}: {entry.message}"
        )

    def get_entries(self, user_id: str) -> List[ActivityLogEntry]:
        return list(self.entries.get(user_id, []))


class InMemoryTransactionStore(TransactionStore):
    def __init__(self):
        self.transactions: Dict[str, List[ArbitrageTransaction]] = defaultdict(list)

    async def create_arbitrage_transaction(self, user_id: str, record: ArbitrageTransaction) -> None:
        self.transactions[user_id].append(record)
        logger.debug(f"Recorded {record.status.value} transaction {record.tx_hash} for {user_id}")

    def get_transactions(self, user_id: str) -> List[ArbitrageTransaction]:
        return list(self.transactions.get(user_id, []))
