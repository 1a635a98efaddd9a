"""
Whitelist Sync - Ledger Bridge

web3 adapter for the SellingController whitelist functions:
- addBatchToWhitelist(address[])  one atomic call per batch
- disableWhitelist()              parameterless kill switch

Transactions are signed locally with the maintainer key and sent raw.
Gas price policy (margin over the node's suggestion) is the caller's job;
this module only reports the suggested price.
"""

import asyncio
import logging
from typing import Any, Sequence

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import Web3Exception

from whitelist_sync.bridges.interfaces import LedgerClient
from whitelist_sync.core.config import Settings
from whitelist_sync.core.exceptions import EstimationFailed, SubmissionFailed
from whitelist_sync.models.schemas import Confirmation, GasEstimate

logger = logging.getLogger(__name__)

# Only the functions this client calls.
WHITELIST_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "addBatchToWhitelist",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "addresses", "type": "address[]", "internalType": "address[]"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "disableWhitelist",
        "stateMutability": "nonpayable",
        "inputs": [],
        "outputs": [],
    },
]

# aiohttp connection failures surface as OSError.
NODE_ERRORS = (Web3Exception, ValueError, OSError, asyncio.TimeoutError)


class Web3LedgerClient(LedgerClient):
    """
    Ledger client bound to one contract and one signing account.

    The account lives only as long as this object; the key is never logged.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        contract: Any,
        account: LocalAccount,
        confirmations: int = 1,
        receipt_timeout: float = 600.0,
        poll_latency: float = 2.0,
    ):
        self.w3 = w3
        self.contract = contract
        self.account = account
        self.confirmations = confirmations
        self.receipt_timeout = receipt_timeout
        self.poll_latency = poll_latency

    @classmethod
    def from_settings(cls, settings: Settings) -> "Web3LedgerClient":
        logger.info("[LEDGER] Connecting to the smart contract")
        w3 = AsyncWeb3(AsyncHTTPProvider(settings.NODE_URL))
        contract = w3.eth.contract(
            address=to_checksum_address(settings.CONTRACT_ADDRESS),
            abi=WHITELIST_ABI,
        )
        account = Account.from_key(settings.MAINTAINER_SECRET_KEY.get_secret_value())
        return cls(
            w3,
            contract,
            account,
            confirmations=settings.CONFIRMATIONS,
            receipt_timeout=settings.RECEIPT_TIMEOUT_SECONDS,
            poll_latency=settings.RECEIPT_POLL_SECONDS,
        )

    @property
    def maintainer(self) -> str:
        return self.account.address

    async def suggested_gas_price(self) -> int:
        try:
            price = await self.w3.eth.gas_price
        except NODE_ERRORS as e:
            raise EstimationFailed(f"Could not read suggested gas price from provider: {e}") from e
        logger.debug(f"[LEDGER] Suggested gas price {price}")
        return int(price)

    async def estimate_batch_cost(self, addresses: Sequence[str]) -> GasEstimate:
        if not addresses:
            raise ValueError("estimate_batch_cost called with an empty batch")
        fn = self.contract.functions.addBatchToWhitelist(list(addresses))
        return await self._estimate(fn, "addBatchToWhitelist")

    async def submit_batch(
        self,
        addresses: Sequence[str],
        estimate: GasEstimate,
        gas_price: int,
    ) -> Confirmation:
        fn = self.contract.functions.addBatchToWhitelist(list(addresses))
        return await self._transact(fn, "addBatchToWhitelist", estimate.gas, gas_price)

    async def disable_access(self, gas_price: int) -> Confirmation:
        fn = self.contract.functions.disableWhitelist()
        estimate = await self._estimate(fn, "disableWhitelist")
        return await self._transact(fn, "disableWhitelist", estimate.gas, gas_price)

    # -------------------------------------------------------------------------
    # internals
    # -------------------------------------------------------------------------

    async def _estimate(self, fn: Any, name: str) -> GasEstimate:
        try:
            gas = await fn.estimate_gas({"from": self.maintainer})
        except NODE_ERRORS as e:
            raise EstimationFailed(f"{name} gas estimation failed: {e}") from e
        logger.info(f"[LEDGER] Gas estimation for {name}: {gas}")
        return GasEstimate(gas=gas)

    async def _transact(self, fn: Any, name: str, gas: int, gas_price: int) -> Confirmation:
        try:
            nonce = await self.w3.eth.get_transaction_count(self.maintainer, "pending")
            chain_id = await self.w3.eth.chain_id
            tx = await fn.build_transaction({
                "from": self.maintainer,
                "gas": gas,
                "gasPrice": gas_price,
                "nonce": nonce,
                "chainId": chain_id,
            })
            signed = self.account.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except NODE_ERRORS as e:
            raise SubmissionFailed(f"{name} transaction was rejected: {e}") from e

        tx_hex = AsyncWeb3.to_hex(tx_hash)
        logger.info(f"[LEDGER] {name} sent as {tx_hex}, waiting for {self.confirmations} confirmation(s)")
        return await self._await_confirmation(tx_hash, tx_hex)

    async def _await_confirmation(self, tx_hash: Any, tx_hex: str) -> Confirmation:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.receipt_timeout
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self.receipt_timeout,
                poll_latency=self.poll_latency,
            )
        except NODE_ERRORS as e:
            raise SubmissionFailed(f"No receipt for {tx_hex}: {e}", tx_hash=tx_hex) from e

        if receipt["status"] != 1:
            raise SubmissionFailed(f"Transaction {tx_hex} reverted", tx_hash=tx_hex)

        block_number = receipt["blockNumber"]
        target = block_number + self.confirmations - 1
        try:
            while await self.w3.eth.block_number < target:
                if loop.time() > deadline:
                    raise SubmissionFailed(
                        f"Transaction {tx_hex} not confirmed {self.confirmations} deep "
                        f"within {self.receipt_timeout}s",
                        tx_hash=tx_hex,
                    )
                await asyncio.sleep(self.poll_latency)
        except NODE_ERRORS as e:
            raise SubmissionFailed(f"Lost contact while confirming {tx_hex}: {e}", tx_hash=tx_hex) from e

        logger.info(f"[LEDGER] {tx_hex} confirmed in block {block_number}")
        return Confirmation(
            tx_hash=tx_hex,
            block_number=block_number,
            gas_used=receipt.get("gasUsed"),
            confirmations=self.confirmations,
        )
