"""
Whitelist Sync - Bridge Interfaces
==================================

The reconciliation engine only talks to these two contracts.
Production adapters live next to this module; in-memory fakes live in
whitelist_sync.services.mocks.

RULE: Adapters translate transport exceptions into core.exceptions.
      Nothing above this layer sees httpx or web3 errors.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from whitelist_sync.models.schemas import Confirmation, GasEstimate, Row


class RecordStoreClient(ABC):
    """Stateless adapter over the remote list of candidate rows."""

    @abstractmethod
    async def fetch_rows(self) -> list[Row]:
        """
        Read the full row snapshot.

        Raises:
            RemoteUnavailable: store unreachable
            RemoteProtocolError: non-2xx status or undecodable body
        """
        pass

    @abstractmethod
    async def mark_synced(self, row_indices: Sequence[int], tx_hash: str) -> None:
        """
        Record that the given rows were whitelisted by tx_hash.

        Repeating the same call must leave the store unchanged.

        Raises:
            RemoteUnavailable, RemoteProtocolError
        """
        pass

    @abstractmethod
    async def find_rows(self, address: str) -> list[Row]:
        """Rows whose address matches exactly (as typed in the sheet)."""
        pass


class LedgerClient(ABC):
    """Adapter over the access-control contract. Holds the signing key for one run."""

    @abstractmethod
    async def suggested_gas_price(self) -> int:
        """Network-suggested gas price in wei. Raises EstimationFailed."""
        pass

    @abstractmethod
    async def estimate_batch_cost(self, addresses: Sequence[str]) -> GasEstimate:
        """
        Estimate gas for addBatchToWhitelist(addresses).

        Callers must not pass an empty batch.

        Raises:
            EstimationFailed: call would revert or the node is unreachable
        """
        pass

    @abstractmethod
    async def submit_batch(
        self,
        addresses: Sequence[str],
        estimate: GasEstimate,
        gas_price: int,
    ) -> Confirmation:
        """
        Sign and send one addBatchToWhitelist(addresses) transaction and
        block until it reaches the configured confirmation depth.

        Raises:
            SubmissionFailed: rejected, reverted, or never confirmed
        """
        pass

    @abstractmethod
    async def disable_access(self, gas_price: int) -> Confirmation:
        """Sign and send disableWhitelist() with the same confirmation discipline."""
        pass
