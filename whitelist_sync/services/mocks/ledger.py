"""
Whitelist Sync - Ledger Mock Interface
In-memory stand-in for the whitelist contract

This is a MOCK implementation.
In production, Web3LedgerClient talks to the deployed SellingController.

Contract:
    - addBatchToWhitelist is add-if-absent, one transaction per call
    - disableWhitelist flips a flag, one transaction per call
    - every call is logged so tests can assert on exactly what was sent
"""

import hashlib
from datetime import datetime
from typing import Optional, Sequence

from whitelist_sync.bridges.interfaces import LedgerClient
from whitelist_sync.core.exceptions import EstimationFailed, SubmissionFailed
from whitelist_sync.models.schemas import Confirmation, GasEstimate

BASE_GAS = 21_000
GAS_PER_ADDRESS = 25_000


class LedgerMock(LedgerClient):
    """
    Mock Ledger Client

    Failure switches and the next tx hash are configurable for testing scenarios.
    """

    def __init__(self, gas_price: int = 10_000_000_000) -> None:
        self._gas_price: int = gas_price
        self.whitelist: set[str] = set()
        self.whitelist_enabled: bool = True
        self.block_number: int = 0

        self.fail_estimation: bool = False
        self.fail_submission: bool = False
        self.next_tx_hash: Optional[str] = None

        self._call_log: list[dict] = []

    @property
    def submitted_batches(self) -> list[list[str]]:
        """Address lists of every batch transaction that was sent."""
        return [c["addresses"] for c in self._call_log if c["action"] == "submit_batch"]

    def _log(self, action: str, **details) -> None:
        self._call_log.append({
            "action": action,
            **details,
            "timestamp": datetime.utcnow().isoformat(),
        })

    def _tx_hash(self) -> str:
        if self.next_tx_hash is not None:
            tx_hash, self.next_tx_hash = self.next_tx_hash, None
            return tx_hash
        seed = f"{len(self._call_log)}:{self.block_number}".encode()
        return "0x" + hashlib.sha256(seed).hexdigest()

    def _confirm(self, tx_hash: str, gas: int) -> Confirmation:
        self.block_number += 1
        return Confirmation(tx_hash=tx_hash, block_number=self.block_number, gas_used=gas)

    async def suggested_gas_price(self) -> int:
        self._log("gas_price")
        return self._gas_price

    async def estimate_batch_cost(self, addresses: Sequence[str]) -> GasEstimate:
        self._log("estimate", addresses=list(addresses))
        if not addresses:
            raise ValueError("estimate_batch_cost called with an empty batch")
        if self.fail_estimation:
            raise EstimationFailed("execution reverted (mock)")
        return GasEstimate(gas=BASE_GAS + GAS_PER_ADDRESS * len(addresses))

    async def submit_batch(
        self,
        addresses: Sequence[str],
        estimate: GasEstimate,
        gas_price: int,
    ) -> Confirmation:
        self._log("submit_batch", addresses=list(addresses), gas=estimate.gas, gas_price=gas_price)
        if self.fail_submission:
            raise SubmissionFailed("transaction reverted (mock)")
        self.whitelist.update(addresses)
        return self._confirm(self._tx_hash(), estimate.gas)

    async def disable_access(self, gas_price: int) -> Confirmation:
        self._log("disable", gas_price=gas_price)
        if self.fail_submission:
            raise SubmissionFailed("transaction reverted (mock)")
        self.whitelist_enabled = False
        return self._confirm(self._tx_hash(), BASE_GAS)

    def get_call_log(self) -> list[dict]:
        """Return the ledger call audit log."""
        return self._call_log.copy()

