"""
Whitelist Sync - Pydantic Schemas
Wire formats for the record store, plus the per-run values the engine passes around.

RULE: Addresses are always checksummed (see core.types.Address).
      Gas and prices are integer wei, never floats.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from whitelist_sync.core.types import Address, TxHash, Wei


# Spreadsheet rows are numbered from 1 and the first row is the header.
SHEET_LINE_OFFSET = 2


# =============================================================================
# RECORD STORE WIRE SCHEMAS
# =============================================================================

class Row(BaseModel):
    """One candidate entry as served by the record store."""
    index: int = Field(..., ge=0)
    address: Optional[str] = None
    approved: bool = False
    synced: bool = False

    @property
    def line(self) -> int:
        """Line number an operator sees in the sheet."""
        return self.index + SHEET_LINE_OFFSET


class RowsResponse(BaseModel):
    """GET body: the full snapshot (or the rows matching one address)."""
    rows: list[Row]


class SyncPatch(BaseModel):
    """PATCH body: rows confirmed on-chain and the tx that did it."""
    model_config = ConfigDict(populate_by_name=True)

    rows: list[int]
    tx_hash: TxHash = Field(..., alias="txHash")


# =============================================================================
# RECONCILIATION VALUES
# =============================================================================

class ValidationIssue(BaseModel):
    """An approved, unsynced row whose address could not be used."""
    index: int
    line: int
    address: Optional[str] = None
    reason: str


class Candidate(BaseModel):
    """Approved, unsynced row with a parsed address."""
    index: int
    address: Address


class GasEstimate(BaseModel):
    """Gas units the node expects the batch call to consume."""
    gas: Wei


class BatchSubmission(BaseModel):
    """
    Ordered batch bound for exactly one ledger transaction.

    addresses[i] came from row_indices[i]. Built whole or not at all.
    """
    candidates: list[Candidate] = Field(..., min_length=1)

    @property
    def addresses(self) -> list[str]:
        return [c.address for c in self.candidates]

    @property
    def row_indices(self) -> list[int]:
        return [c.index for c in self.candidates]

    @model_validator(mode="after")
    def _unique_rows(self) -> "BatchSubmission":
        indices = self.row_indices
        if len(set(indices)) != len(indices):
            raise ValueError(f"Duplicate row indices in batch: {indices}")
        return self


class Confirmation(BaseModel):
    """Ledger result for a submitted transaction at the required depth."""
    tx_hash: TxHash
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    confirmations: int = 1


# =============================================================================
# RUN STATE
# =============================================================================

class RunState(str, Enum):
    """Reconciliation run states."""
    IDLE = "IDLE"
    FETCHED = "FETCHED"
    FILTERED = "FILTERED"
    GATE_DECIDED = "GATE_DECIDED"
    ESTIMATED = "ESTIMATED"
    SUBMITTED = "SUBMITTED"
    CONFIRMED = "CONFIRMED"
    WRITTEN_BACK = "WRITTEN_BACK"
    NO_OP = "NO_OP"
    ABORTED = "ABORTED"
    FAILED = "FAILED"


class ReconciliationResult(BaseModel):
    """Outcome of one reconciliation run."""
    state: RunState
    submitted_rows: list[int] = Field(default_factory=list)
    submitted_addresses: list[str] = Field(default_factory=list)
    tx_hash: Optional[str] = None

    issues: list[ValidationIssue] = Field(default_factory=list)
    missing_address_rows: list[int] = Field(default_factory=list)
    deferred_rows: list[int] = Field(default_factory=list)  # valid, beyond the batch cap

    gas_estimate: Optional[int] = None
    gas_price: Optional[int] = None

    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
