"""Terra LCD client with endpoint fallback."""
from __future__ import annotations

import base64
import json
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig
from ...errors import ChainError

logger = logging.getLogger(__name__)

BROADCAST_MODE_SYNC = "BROADCAST_MODE_SYNC"


def encode_query(query: dict[str, Any]) -> str:
    """Base64 of the compact JSON form of a contract query."""
    raw = json.dumps(query, separators=(",", ":")).encode()
    return base64.b64encode(raw).decode()


class TerraClient:
    """Terra LCD (REST) client with automatic endpoint fallback."""

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = list(config.lcd_endpoints)
        self.timeout = config.rpc_timeout
        self.current_lcd_index = 0

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
        not_found_ok: bool = False,
        fallback: bool = True,
    ) -> dict[str, Any] | None:
        """Make an LCD call, falling back to the other endpoints on failure.

        Returns None for a 404 when ``not_found_ok`` is set; raises
        ChainError once every endpoint has failed. With ``fallback`` off only
        the current endpoint is tried.
        """
        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        attempts = len(self.endpoints) if fallback else 1
        for attempt in range(attempts):
            lcd_index = (self.current_lcd_index + attempt) % len(self.endpoints)
            lcd_url = self.endpoints[lcd_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.request(
                        method,
                        f"{lcd_url}{path}",
                        params=params,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        if response.status == 404 and not_found_ok:
                            return None
                        if response.status != 200:
                            body = await response.text()
                            raise RuntimeError(f"HTTP {response.status}: {body[:200]}")
                        result = await response.json()

                        if lcd_index != self.current_lcd_index:
                            logger.info("Switched to LCD endpoint: %s", lcd_url)
                            self.current_lcd_index = lcd_index

                        return result
            except Exception as e:
                last_error = e
                logger.warning("LCD endpoint %s failed: %s", lcd_url, e)
                if attempt < attempts - 1:
                    logger.info("Trying next endpoint...")
                continue

        raise ChainError(f"All LCD endpoints failed. Last error: {last_error}")

    async def query_contract(self, contract: str, query: dict[str, Any]) -> Any:
        """Run a smart query against a wasm contract."""
        result = await self.request(
            "GET",
            f"/terra/wasm/v1beta1/contracts/{contract}/store",
            params={"query_msg": encode_query(query)},
        )
        if not result or "query_result" not in result:
            raise ChainError(f"Malformed query response from {contract}: {result}")
        return result["query_result"]

    async def broadcast_tx(self, tx_bytes: str) -> dict[str, Any]:
        """Broadcast signed transaction bytes; returns the tx_response.

        Sent to the current endpoint only: a retry elsewhere after a timeout
        would re-submit bytes the first endpoint may already have accepted.
        """
        result = await self.request(
            "POST",
            "/cosmos/tx/v1beta1/txs",
            payload={"tx_bytes": tx_bytes, "mode": BROADCAST_MODE_SYNC},
            fallback=False,
        )
        if not result or "tx_response" not in result:
            raise ChainError(f"Malformed broadcast response: {result}")
        return result["tx_response"]

    async def get_tx(self, txhash: str) -> dict[str, Any] | None:
        """Look up a transaction; None while it is not yet in a block."""
        result = await self.request(
            "GET", f"/cosmos/tx/v1beta1/txs/{txhash}", not_found_ok=True
        )
        if result is None:
            return None
        return result.get("tx_response")
