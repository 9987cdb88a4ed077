"""Integration tests for Terra transaction submission."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from ltv_keeper.chains.terra import TerraTransactionSubmitter
from ltv_keeper.config import ChainConfig
from ltv_keeper.errors import ChainError, SigningError, SubmissionError
from ltv_keeper.models import ExecuteMsg

CONFIRMED = {"txhash": "H1", "code": 0, "height": "4242", "gas_used": "312000"}


def _msg(name: str) -> ExecuteMsg:
    return ExecuteMsg(sender="terra1me", contract="terra1market", execute_msg={name: {}})


@pytest.fixture()
def chain_client() -> AsyncMock:
    client = AsyncMock()
    client.broadcast_tx.return_value = {"txhash": "H1", "code": 0}
    client.get_tx.return_value = CONFIRMED
    return client


@pytest.fixture()
def signer() -> AsyncMock:
    signer = AsyncMock()
    signer.sign.return_value = "dHhieXRlcw=="
    return signer


@pytest.fixture()
def tx_submitter(
    chain_client: AsyncMock, signer: AsyncMock, sample_chain_config: ChainConfig
) -> TerraTransactionSubmitter:
    return TerraTransactionSubmitter(chain_client, signer, sample_chain_config)


class TestExecute:
    @pytest.mark.asyncio
    async def test_messages_signed_in_order(
        self, tx_submitter: TerraTransactionSubmitter, signer: AsyncMock, chain_client: AsyncMock
    ) -> None:
        result = await tx_submitter.execute(
            [lambda: _msg("borrow_stable"), lambda: _msg("deposit_stable")], memo="ltv"
        )

        assert result.txhash == "H1"
        assert result.height == 4242
        assert result.gas_used == 312000
        msgs, memo = signer.sign.call_args[0]
        assert [list(m["execute_msg"]) for m in msgs] == [["borrow_stable"], ["deposit_stable"]]
        assert memo == "ltv"
        chain_client.broadcast_tx.assert_awaited_once_with("dHhieXRlcw==")

    @pytest.mark.asyncio
    async def test_waits_until_included(
        self, tx_submitter: TerraTransactionSubmitter, chain_client: AsyncMock
    ) -> None:
        chain_client.get_tx.side_effect = [None, ChainError("flaky"), CONFIRMED]

        result = await tx_submitter.execute([lambda: _msg("repay_stable")])

        assert result.height == 4242
        assert chain_client.get_tx.await_count == 3

    @pytest.mark.asyncio
    async def test_empty_steps_rejected(
        self, tx_submitter: TerraTransactionSubmitter, signer: AsyncMock
    ) -> None:
        with pytest.raises(SubmissionError, match="no messages"):
            await tx_submitter.execute([])
        signer.sign.assert_not_called()

    @pytest.mark.asyncio
    async def test_build_failure_stops_before_signing(
        self, tx_submitter: TerraTransactionSubmitter, signer: AsyncMock
    ) -> None:
        second = MagicMock(side_effect=ValueError("amount must not be negative"))

        with pytest.raises(SubmissionError, match="building message 1"):
            await tx_submitter.execute([lambda: _msg("send"), second])
        signer.sign.assert_not_called()

    @pytest.mark.asyncio
    async def test_signing_failure_stops_before_broadcast(
        self,
        tx_submitter: TerraTransactionSubmitter,
        signer: AsyncMock,
        chain_client: AsyncMock,
    ) -> None:
        signer.sign.side_effect = SigningError("signer unreachable")

        with pytest.raises(SubmissionError, match="signing transaction"):
            await tx_submitter.execute([lambda: _msg("borrow_stable")])
        chain_client.broadcast_tx.assert_not_called()

    @pytest.mark.asyncio
    async def test_broadcast_failure(
        self, tx_submitter: TerraTransactionSubmitter, chain_client: AsyncMock
    ) -> None:
        chain_client.broadcast_tx.side_effect = ChainError("All LCD endpoints failed")

        with pytest.raises(SubmissionError, match="broadcasting transaction"):
            await tx_submitter.execute([lambda: _msg("borrow_stable")])

    @pytest.mark.asyncio
    async def test_rejected_by_mempool(
        self, tx_submitter: TerraTransactionSubmitter, chain_client: AsyncMock
    ) -> None:
        chain_client.broadcast_tx.return_value = {
            "txhash": "H1",
            "code": 5,
            "raw_log": "insufficient funds",
        }

        with pytest.raises(SubmissionError, match=r"rejected \(code 5\): insufficient funds"):
            await tx_submitter.execute([lambda: _msg("repay_stable")])
        chain_client.get_tx.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_in_block(
        self, tx_submitter: TerraTransactionSubmitter, chain_client: AsyncMock
    ) -> None:
        chain_client.get_tx.return_value = {
            "txhash": "H1",
            "code": 11,
            "raw_log": "out of gas",
        }

        with pytest.raises(SubmissionError, match=r"failed \(code 11\)"):
            await tx_submitter.execute([lambda: _msg("borrow_stable")])

    @pytest.mark.asyncio
    async def test_confirmation_timeout(
        self, chain_client: AsyncMock, signer: AsyncMock
    ) -> None:
        chain_client.get_tx.return_value = None
        tx_submitter = TerraTransactionSubmitter(
            chain_client,
            signer,
            ChainConfig(confirmation_timeout=0.05, confirmation_poll_interval=0.01),
        )

        with pytest.raises(SubmissionError, match="timed out"):
            await tx_submitter.execute([lambda: _msg("borrow_stable")])

    @pytest.mark.asyncio
    async def test_already_in_mempool_waits_for_inclusion(
        self, tx_submitter: TerraTransactionSubmitter, chain_client: AsyncMock
    ) -> None:
        chain_client.broadcast_tx.return_value = {
            "txhash": "H1",
            "code": 19,
            "raw_log": "tx already in mempool",
        }

        result = await tx_submitter.execute([lambda: _msg("borrow_stable")])

        assert result.txhash == "H1"
        assert result.height == 4242
        chain_client.get_tx.assert_awaited_with("H1")
