"""
Whitelist Sync - Error Taxonomy

Every failure a run can hit maps onto one of these:

    ConfigError             startup-fatal, raised before any network I/O
    AddressValidationError  per-row, recoverable (row is dropped, run continues)
    RemoteUnavailable       record store unreachable
    RemoteProtocolError     record store answered with something we can't use
    WriteBackFailed         record store write-back failed AFTER a confirmed tx
    EstimationFailed        contract call would revert / node unreachable
    SubmissionFailed        tx rejected, reverted, or never confirmed

An operator declining the confirmation gate is not an error: the engine
returns a result in the ABORTED state instead of raising.
"""

from typing import Optional


class WhitelistSyncError(Exception):
    """Base class for all whitelist sync failures."""
    pass


class ConfigError(WhitelistSyncError):
    """Secrets/config file missing or malformed."""
    pass


class AddressValidationError(WhitelistSyncError):
    """A row's address is absent or does not parse as a ledger address."""

    def __init__(self, raw: Optional[str], reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Invalid address {raw!r}: {reason}")


class InvalidRunTransition(WhitelistSyncError):
    """Reconciliation run moved to a state its current state can't reach."""
    pass


# =============================================================================
# RECORD STORE
# =============================================================================

class RemoteError(WhitelistSyncError):
    """Base class for record store failures."""
    pass


class RemoteUnavailable(RemoteError):
    """Record store could not be reached."""
    pass


class RemoteProtocolError(RemoteError):
    """Record store response could not be decoded or had a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class WriteBackFailed(RemoteError):
    """
    The ledger confirmed a batch but the record store was not updated.

    This is the one case where ledger state and record store state diverge.
    Rows listed here are whitelisted on-chain but still read as unsynced.
    """

    def __init__(self, tx_hash: str, row_indices: list[int], cause: Exception):
        self.tx_hash = tx_hash
        self.row_indices = list(row_indices)
        self.cause = cause
        super().__init__(
            f"Transaction {tx_hash} confirmed but marking rows {self.row_indices} "
            f"as synced failed: {cause}"
        )


# =============================================================================
# LEDGER
# =============================================================================

class LedgerError(WhitelistSyncError):
    """Base class for ledger failures."""
    pass


class EstimationFailed(LedgerError):
    """Gas estimation failed; nothing was submitted."""
    pass


class SubmissionFailed(LedgerError):
    """Transaction was rejected, reverted, or timed out waiting for confirmation."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)
