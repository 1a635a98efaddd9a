"""
Whitelist Sync - Bridges

Adapters for the two systems a run reconciles:
- Record store (sheet-backed lambda, over HTTP)
- Ledger (SellingController contract, over JSON-RPC)
"""

from .interfaces import LedgerClient, RecordStoreClient
from .ledger import WHITELIST_ABI, Web3LedgerClient
from .record_store import HttpRecordStoreClient

__all__ = [
    # Interfaces
    "RecordStoreClient",
    "LedgerClient",
    # Adapters
    "HttpRecordStoreClient",
    "Web3LedgerClient",
    "WHITELIST_ABI",
]
