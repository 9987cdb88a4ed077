"""Multi-message transaction submission: build, sign, broadcast, confirm."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from ...config import ChainConfig
from ...errors import ChainError, SubmissionError
from ...interfaces.chain import ChainClient
from ...interfaces.submitter import MessageFactory, Signer
from ...models import ExecuteMsg, TxResult

logger = logging.getLogger(__name__)

# cosmos-sdk ErrTxInMempoolCache: the same bytes were already accepted
CODE_TX_IN_MEMPOOL = 19


class TerraTransactionSubmitter:
    """Submit an ordered list of messages as a single Terra transaction."""

    def __init__(self, client: ChainClient, signer: Signer, config: ChainConfig) -> None:
        self._client = client
        self._signer = signer
        self._confirmation_timeout = config.confirmation_timeout
        self._poll_interval = config.confirmation_poll_interval

    async def execute(self, steps: Sequence[MessageFactory], memo: str = "") -> TxResult:
        """Build every message, then sign, broadcast and wait for the block.

        Nothing is broadcast unless all messages were built and signed.
        """
        if not steps:
            raise SubmissionError("no messages to submit")

        msgs: list[ExecuteMsg] = []
        for index, step in enumerate(steps):
            try:
                msgs.append(step())
            except Exception as e:
                raise SubmissionError(f"building message {index}: {e}") from e

        try:
            tx_bytes = await self._signer.sign([m.to_dict() for m in msgs], memo)
        except Exception as e:
            raise SubmissionError(f"signing transaction: {e}") from e

        try:
            tx_response = await self._client.broadcast_tx(tx_bytes)
        except ChainError as e:
            raise SubmissionError(f"broadcasting transaction: {e}") from e

        txhash = tx_response.get("txhash", "")
        code = int(tx_response.get("code", 0))
        if code == CODE_TX_IN_MEMPOOL and txhash:
            logger.info("Transaction %s already in mempool", txhash)
        elif code != 0:
            raise SubmissionError(
                f"transaction {txhash} rejected (code {code}): {tx_response.get('raw_log', '')}"
            )
        if not txhash:
            raise SubmissionError("broadcast response has no txhash")

        logger.info("Transaction %s broadcast, waiting for confirmation", txhash)
        return await self._wait_for(txhash)

    async def _wait_for(self, txhash: str) -> TxResult:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._confirmation_timeout

        while True:
            try:
                tx_response = await self._client.get_tx(txhash)
            except ChainError as e:
                logger.debug("Polling %s failed: %s", txhash, e)
                tx_response = None

            if tx_response is not None:
                return self._to_result(txhash, tx_response)

            if loop.time() >= deadline:
                raise SubmissionError(
                    f"timed out after {self._confirmation_timeout}s waiting for {txhash}"
                )
            await asyncio.sleep(self._poll_interval)

    @staticmethod
    def _to_result(txhash: str, tx_response: dict[str, Any]) -> TxResult:
        code = int(tx_response.get("code", 0))
        if code != 0:
            raise SubmissionError(
                f"transaction {txhash} failed (code {code}): {tx_response.get('raw_log', '')}"
            )
        result = TxResult(
            txhash=txhash,
            height=int(tx_response.get("height", 0)),
            gas_used=int(tx_response.get("gas_used", 0)),
        )
        logger.info("Transaction %s confirmed at height %d", txhash, result.height)
        return result
