"""
Whitelist Sync - Record Store Mock Interface
In-memory stand-in for the sheet-backed lambda

This is a MOCK implementation.
In production, HttpRecordStoreClient talks to the deployed lambda.

Contract (same as the lambda):
    - fetch returns every row, indices untouched
    - mark_synced stores the tx hash on each listed row; repeating it changes nothing
"""

from datetime import datetime
from typing import Optional, Sequence

from whitelist_sync.bridges.interfaces import RecordStoreClient
from whitelist_sync.core.exceptions import RemoteProtocolError, RemoteUnavailable
from whitelist_sync.models.schemas import Row


class InMemoryRecordStore(RecordStoreClient):
    """Mock record store. Failure switches are configurable for testing scenarios."""

    def __init__(self, rows: Optional[Sequence[Row]] = None) -> None:
        self._rows: list[Row] = [r.model_copy() for r in rows or []]
        self.synced_by: dict[int, str] = {}

        self.fail_fetch: bool = False
        self.fail_write_back: bool = False

        self.fetch_count: int = 0
        self.patches: list[dict] = []

    @property
    def rows(self) -> list[Row]:
        return [r.model_copy() for r in self._rows]

    def add_row(self, address: Optional[str], approved: bool = True, synced: bool = False) -> Row:
        """Append a row the way a new application lands in the sheet."""
        row = Row(index=len(self._rows), address=address, approved=approved, synced=synced)
        self._rows.append(row)
        return row

    def approve(self, index: int) -> None:
        self._rows[index].approved = True

    async def fetch_rows(self) -> list[Row]:
        self.fetch_count += 1
        if self.fail_fetch:
            raise RemoteUnavailable("Cannot connect to record store (mock)")
        return self.rows

    async def find_rows(self, address: str) -> list[Row]:
        if self.fail_fetch:
            raise RemoteUnavailable("Cannot connect to record store (mock)")
        return [r.model_copy() for r in self._rows if r.address == address]

    async def mark_synced(self, row_indices: Sequence[int], tx_hash: str) -> None:
        self.patches.append({
            "rows": list(row_indices),
            "txHash": tx_hash,
            "timestamp": datetime.utcnow().isoformat(),
        })
        if self.fail_write_back:
            raise RemoteUnavailable("Cannot connect to record store (mock)")
        for index in row_indices:
            if not 0 <= index < len(self._rows):
                raise RemoteProtocolError(f"No row {index}", status_code=500)
        for index in row_indices:
            self._rows[index].synced = True
            self.synced_by[index] = tx_hash
