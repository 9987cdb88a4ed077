"""Remote signer — the key never lives in this process."""
from __future__ import annotations

import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig, WalletConfig
from ...errors import SigningError

logger = logging.getLogger(__name__)


class RemoteSigner:
    """Sign transactions through an HTTP signing service.

    The service owns the key and the account sequence; it is sent the
    unsigned messages and returns base64 tx bytes ready for broadcast.
    """

    def __init__(self, wallet: WalletConfig, chain: ChainConfig) -> None:
        self._address = wallet.address
        self._url = f"{wallet.signer_url}/sign"
        self._token = wallet.signer_token
        self._chain_id = chain.chain_id
        self._gas_adjustment = chain.gas_adjustment
        self._fee_denom = chain.fee_denom
        self._timeout = chain.rpc_timeout

    async def sign(self, msgs: list[dict[str, Any]], memo: str = "") -> str:
        payload = {
            "chain_id": self._chain_id,
            "signer": self._address,
            "msgs": msgs,
            "memo": memo,
            "gas_adjustment": str(self._gas_adjustment),
            "fee_denom": self._fee_denom,
        }
        headers = {"Authorization": f"Bearer {self._token}"}

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    self._url,
                    json=payload,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self._timeout),
                ) as response:
                    if response.status != 200:
                        body = await response.text()
                        raise SigningError(
                            f"signer returned HTTP {response.status}: {body[:200]}"
                        )
                    data = await response.json()
        except aiohttp.ClientError as e:
            raise SigningError(f"signer unreachable: {e}") from e

        tx_bytes = data.get("tx_bytes")
        if not tx_bytes:
            raise SigningError("signer response has no tx_bytes")
        logger.debug("Signed transaction with %d message(s)", len(msgs))
        return tx_bytes
