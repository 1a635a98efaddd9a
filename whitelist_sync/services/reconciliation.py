"""
Whitelist Sync - Reconciliation Engine

One run, strictly sequential, no state kept between runs:

IDLE -> FETCHED -> FILTERED -> GATE_DECIDED -> ESTIMATED -> SUBMITTED -> CONFIRMED -> WRITTEN_BACK
                            -> ABORTED      -> NO_OP
                                            -> ABORTED
Any non-terminal state can transition to FAILED on error.

Guarantees:
1. A row whose `synced` flag is set is never submitted.
2. At most `batch_cap` addresses per run, first come first served in sheet order.
3. Invalid addresses among approved rows need an operator's yes before any ledger call.
4. Exactly one ledger transaction per run, and write-back names exactly its rows.
5. Write-back only happens after the transaction is confirmed.

The `synced` flag in the record store is the only de-duplication signal.
Two runs at the same time against one store can both pick the same rows.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from whitelist_sync.bridges.interfaces import LedgerClient, RecordStoreClient
from whitelist_sync.core.exceptions import (
    AddressValidationError,
    InvalidRunTransition,
    RemoteError,
    WriteBackFailed,
)
from whitelist_sync.models.schemas import (
    BatchSubmission,
    Candidate,
    Confirmation,
    ReconciliationResult,
    Row,
    RunState,
    ValidationIssue,
)
from whitelist_sync.services.address import parse_address
from whitelist_sync.services.confirmation import ConfirmFn

logger = logging.getLogger(__name__)

BATCH_CAP = 10
GAS_PRICE_MARGIN_PERCENT = 10


def price_with_margin(suggested: int, margin_percent: int = GAS_PRICE_MARGIN_PERCENT) -> int:
    """Suggested gas price plus a margin, in integer wei (10% -> price + price // 10)."""
    return suggested + suggested * margin_percent // 100


# =============================================================================
# CANDIDATE SELECTION
# =============================================================================

@dataclass
class Selection:
    """Approved, unsynced rows split by what the engine can do with them."""
    batch: list[Candidate] = field(default_factory=list)
    deferred: list[Candidate] = field(default_factory=list)
    issues: list[ValidationIssue] = field(default_factory=list)
    missing_address_rows: list[int] = field(default_factory=list)

    @property
    def errors_present(self) -> bool:
        return bool(self.issues)


def select_candidates(rows: Iterable[Row], cap: int = BATCH_CAP) -> Selection:
    """
    Pick the rows to whitelist this run.

    Every approved, unsynced row is checked so the gate sees all invalid
    addresses, then the valid ones are cut to `cap` keeping sheet order.
    Rows past the cap are left for a later run.
    """
    selection = Selection()
    valid: list[Candidate] = []

    for row in rows:
        if not row.approved or row.synced:
            continue

        if row.address is None:
            logger.warning(f"[RECONCILE] Address not available for row {row.line}! Ignoring this line...")
            selection.missing_address_rows.append(row.index)
            continue

        try:
            address = parse_address(row.address)
        except AddressValidationError as e:
            logger.warning(
                f"[RECONCILE] Invalid address {row.address!r} specified on line {row.line}! "
                "Ignoring this line..."
            )
            selection.issues.append(ValidationIssue(
                index=row.index,
                line=row.line,
                address=row.address,
                reason=e.reason,
            ))
            continue

        valid.append(Candidate(index=row.index, address=address))

    selection.batch = valid[:cap]
    selection.deferred = valid[cap:]
    return selection


# =============================================================================
# RUN STATE MACHINE
# =============================================================================

class ReconciliationRun:
    """Tracks one run through its states and collects the result."""

    TRANSITIONS: dict[RunState, list[RunState]] = {
        RunState.IDLE: [RunState.FETCHED, RunState.FAILED],
        RunState.FETCHED: [RunState.FILTERED, RunState.FAILED],
        RunState.FILTERED: [RunState.GATE_DECIDED, RunState.ABORTED, RunState.FAILED],
        RunState.GATE_DECIDED: [RunState.ESTIMATED, RunState.NO_OP, RunState.ABORTED, RunState.FAILED],
        RunState.ESTIMATED: [RunState.SUBMITTED, RunState.FAILED],
        RunState.SUBMITTED: [RunState.CONFIRMED, RunState.FAILED],
        RunState.CONFIRMED: [RunState.WRITTEN_BACK, RunState.FAILED],
        RunState.WRITTEN_BACK: [],  # Terminal state
        RunState.NO_OP: [],  # Terminal state
        RunState.ABORTED: [],  # Terminal state
        RunState.FAILED: [],  # Terminal state
    }

    def __init__(self):
        self.result = ReconciliationResult(state=RunState.IDLE)

    @property
    def state(self) -> RunState:
        return self.result.state

    @property
    def finished(self) -> bool:
        return not self.TRANSITIONS[self.state]

    def can_transition(self, target: RunState) -> bool:
        return target in self.TRANSITIONS.get(self.state, [])

    def transition(self, target: RunState, **kwargs) -> ReconciliationResult:
        """
        Move to `target`, recording any result fields passed as kwargs.

        Raises:
            InvalidRunTransition: target is not reachable from the current state
        """
        if not self.can_transition(target):
            raise InvalidRunTransition(f"Invalid transition: {self.state.value} -> {target.value}")

        for key, value in kwargs.items():
            if not hasattr(self.result, key):
                raise AttributeError(f"ReconciliationResult has no field {key!r}")
            setattr(self.result, key, value)

        logger.debug(f"[RECONCILE] {self.state.value} -> {target.value}")
        self.result.state = target
        if self.finished:
            self.result.completed_at = datetime.utcnow()
        return self.result


# =============================================================================
# ENGINE
# =============================================================================

class ReconciliationEngine:
    """
    Drives one fetch -> filter -> gate -> estimate -> submit -> write-back pass.

    Holds no state of its own; build a new run on every call so each starts
    from a fresh record store snapshot.
    """

    def __init__(
        self,
        record_store: RecordStoreClient,
        ledger: LedgerClient,
        confirm: ConfirmFn,
        batch_cap: int = BATCH_CAP,
        gas_price_margin_percent: int = GAS_PRICE_MARGIN_PERCENT,
    ):
        if batch_cap < 1:
            raise ValueError(f"batch_cap must be positive, got {batch_cap}")
        self.record_store = record_store
        self.ledger = ledger
        self.confirm = confirm
        self.batch_cap = batch_cap
        self.gas_price_margin_percent = gas_price_margin_percent

    async def reconcile(self, run: Optional[ReconciliationRun] = None) -> ReconciliationResult:
        """
        Run once. Pass `run` to observe its state after a raise.

        Returns the result in WRITTEN_BACK, NO_OP, or ABORTED (operator declined).

        Raises:
            RemoteUnavailable, RemoteProtocolError: fetch failed, nothing submitted
            EstimationFailed, SubmissionFailed: nothing written back, rows stay unsynced
            WriteBackFailed: tx confirmed but the record store was not updated
        """
        if run is None:
            run = ReconciliationRun()
        try:
            return await self._reconcile(run)
        except Exception:
            if not run.finished:
                run.transition(RunState.FAILED)
            raise

    async def _reconcile(self, run: ReconciliationRun) -> ReconciliationResult:
        rows = await self.record_store.fetch_rows()
        run.transition(RunState.FETCHED)

        selection = select_candidates(rows, self.batch_cap)
        run.transition(
            RunState.FILTERED,
            issues=selection.issues,
            missing_address_rows=selection.missing_address_rows,
            deferred_rows=[c.index for c in selection.deferred],
        )
        if selection.deferred:
            logger.info(
                f"[RECONCILE] {len(selection.deferred)} valid row(s) beyond the cap of "
                f"{self.batch_cap} left for a later run"
            )

        if selection.errors_present:
            if not await self.confirm(selection.issues):
                logger.info("[RECONCILE] Operator declined, nothing submitted")
                return run.transition(RunState.ABORTED)
        run.transition(RunState.GATE_DECIDED)

        if not selection.batch:
            logger.info("[RECONCILE] Nothing to whitelist")
            return run.transition(RunState.NO_OP)

        batch = BatchSubmission(candidates=selection.batch)
        logger.info(f"[RECONCILE] Whitelisting addresses {batch.addresses}")

        suggested = await self.ledger.suggested_gas_price()
        gas_price = price_with_margin(suggested, self.gas_price_margin_percent)
        estimate = await self.ledger.estimate_batch_cost(batch.addresses)
        run.transition(RunState.ESTIMATED, gas_estimate=estimate.gas, gas_price=gas_price)

        run.transition(
            RunState.SUBMITTED,
            submitted_rows=batch.row_indices,
            submitted_addresses=batch.addresses,
        )
        confirmation = await self.ledger.submit_batch(batch.addresses, estimate, gas_price)
        run.transition(RunState.CONFIRMED, tx_hash=confirmation.tx_hash)

        await self._write_back(batch, confirmation)
        return run.transition(RunState.WRITTEN_BACK)

    async def _write_back(self, batch: BatchSubmission, confirmation: Confirmation) -> None:
        try:
            await self.record_store.mark_synced(batch.row_indices, confirmation.tx_hash)
        except RemoteError as e:
            logger.critical(
                f"[RECONCILE] Ledger and record store diverged: tx {confirmation.tx_hash} "
                f"whitelisted rows {batch.row_indices} but write-back failed ({e}). "
                "Mark these rows as synced by hand."
            )
            raise WriteBackFailed(confirmation.tx_hash, batch.row_indices, e) from e


async def disable_whitelist(
    ledger: LedgerClient,
    gas_price_margin_percent: int = GAS_PRICE_MARGIN_PERCENT,
) -> Confirmation:
    """Turn the contract's whitelist off. No record store involvement."""
    suggested = await ledger.suggested_gas_price()
    gas_price = price_with_margin(suggested, gas_price_margin_percent)
    logger.info(f"[RECONCILE] Disabling whitelist at gas price {gas_price}")
    return await ledger.disable_access(gas_price)
