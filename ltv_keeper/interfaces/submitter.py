"""Transaction submission protocols."""
from __future__ import annotations

from typing import Any, Callable, Protocol, Sequence

from ..models import ExecuteMsg, TxResult

# Builds one message of a transaction; called once, in order.
MessageFactory = Callable[[], ExecuteMsg]


class TransactionSubmitter(Protocol):
    """Executes an ordered list of messages as one transaction.

    Implementations block until the transaction is confirmed on-chain and
    raise SubmissionError otherwise.
    """

    async def execute(
        self, steps: Sequence[MessageFactory], memo: str = ""
    ) -> TxResult: ...


class Signer(Protocol):
    """Produces signed transaction bytes for the keeper's account."""

    async def sign(self, msgs: list[dict[str, Any]], memo: str = "") -> str: ...
