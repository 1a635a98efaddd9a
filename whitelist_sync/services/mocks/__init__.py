# Mock External System Interfaces
from whitelist_sync.services.mocks.ledger import LedgerMock
from whitelist_sync.services.mocks.record_store import InMemoryRecordStore

__all__ = [
    "LedgerMock",
    "InMemoryRecordStore",
]
