"""
Append-only record of confirmed transactions.
"""
import asyncio
import logging
from typing import List

from .models import TransactionRecord
from .storage import LocalStore, TRANSACTIONS_KEY

logger = logging.getLogger(__name__)


class TransactionLedger:
    """
    Ordered list of TransactionRecord persisted in a LocalStore.

    Appends from one process are serialised; two processes appending at the
    same moment can still lose a record (last write wins).
    """

    def __init__(self, store: LocalStore):
        self.store = store
        self._append_lock = asyncio.Lock()

    def all(self) -> List[TransactionRecord]:
        """Records in append order"""
        raw = self.store.get(TRANSACTIONS_KEY) or []
        return [TransactionRecord.model_validate(item) for item in raw]

    def __len__(self) -> int:
        return len(self.store.get(TRANSACTIONS_KEY) or [])

    async def append(self, record: TransactionRecord) -> None:
        async with self._append_lock:
            history = list(self.store.get(TRANSACTIONS_KEY) or [])
            history.append(record.model_dump(mode="json", by_alias=True))
            self.store.set(TRANSACTIONS_KEY, history)
        logger.info(f"Recorded {record.kind.value} transaction {record.tx_hash}")
