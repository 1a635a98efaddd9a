"""
Whitelist Sync - Record Store Bridge

HTTP adapter for the sheet-backed lambda that holds whitelist applications.

    GET   <lambda_url>            -> {"rows": [{index, address, approved, synced}, ...]}
    GET   <lambda_url>/<address>  -> same shape, only rows for that address
    PATCH <lambda_url>            <- {"rows": [int, ...], "txHash": "0x..."}

The lambda authenticates the CLI by comparing the raw Cookie header to its
configured secret, so the cookie is sent verbatim.
"""

import logging
from typing import Optional, Sequence
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from whitelist_sync.bridges.interfaces import RecordStoreClient
from whitelist_sync.core.exceptions import RemoteProtocolError, RemoteUnavailable
from whitelist_sync.models.schemas import Row, RowsResponse, SyncPatch

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class HttpRecordStoreClient(RecordStoreClient):
    """Record store client over httpx. One short-lived connection per call."""

    def __init__(
        self,
        base_url: str,
        secret_cookie: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._cookie = secret_cookie
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"Cookie": self._cookie},
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise RemoteUnavailable(f"Cannot connect to record store at {url}: {e}") from e

        if not response.is_success:
            raise RemoteProtocolError(
                f"Record store {method} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    async def _get_rows(self, url: str) -> list[Row]:
        response = await self._send("GET", url)
        try:
            return RowsResponse.model_validate_json(response.content).rows
        except ValidationError as e:
            raise RemoteProtocolError(
                f"Record store response does not match the row schema: {e.error_count()} error(s)",
                status_code=response.status_code,
            ) from e

    async def fetch_rows(self) -> list[Row]:
        logger.info("[RECORDS] Connecting to the spreadsheet")
        rows = await self._get_rows(self.base_url)
        logger.debug(f"[RECORDS] Fetched {len(rows)} rows")
        return rows

    async def find_rows(self, address: str) -> list[Row]:
        return await self._get_rows(f"{self.base_url}/{quote(address, safe='')}")

    async def mark_synced(self, row_indices: Sequence[int], tx_hash: str) -> None:
        patch = SyncPatch(rows=list(row_indices), tx_hash=tx_hash)
        logger.info(f"[RECORDS] Updating the spreadsheet: rows {patch.rows} -> {patch.tx_hash}")
        response = await self._send(
            "PATCH",
            self.base_url,
            json=patch.model_dump(by_alias=True),
        )
        logger.debug(f"[RECORDS] Write-back status {response.status_code}")
