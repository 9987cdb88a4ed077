"""Anchor protocol adapter — reads position state and builds market messages."""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from ...config import ProtocolConfig
from ...errors import ChainError, StateUnavailableError
from ...interfaces.chain import ChainClient
from ...models import BorrowerInfo, Coin, EpochState, ExecuteMsg
from . import parser

logger = logging.getLogger(__name__)


class AnchorAdapter:
    """Anchor money market: overseer, market and aUST contracts."""

    def __init__(self, chain_client: ChainClient, config: ProtocolConfig) -> None:
        self._client = chain_client
        self._market = config.contracts.get("market", "")
        self._overseer = config.contracts.get("overseer", "")
        self._aterra = config.contracts.get("aterra", "")
        self._stable_denom = config.stable_denom

    async def _query(self, contract: str, query: dict[str, Any], what: str) -> Any:
        try:
            return await self._client.query_contract(contract, query)
        except ChainError as e:
            raise StateUnavailableError(f"querying {what}: {e}") from e

    @staticmethod
    def _parse(parse, result: Any, what: str) -> Any:
        try:
            return parse(result)
        except (KeyError, TypeError, InvalidOperation) as e:
            raise StateUnavailableError(f"parsing {what}: {e!r} in {result}") from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def borrow_limit(self, account: str) -> Decimal:
        result = await self._query(
            self._overseer, {"borrow_limit": {"borrower": account}}, "borrow limit"
        )
        return self._parse(parser.parse_borrow_limit, result, "borrow limit")

    async def borrower_info(self, account: str) -> BorrowerInfo:
        result = await self._query(
            self._market, {"borrower_info": {"borrower": account}}, "borrower info"
        )
        return self._parse(parser.parse_borrower_info, result, "borrower info")

    async def loan_amount(self, account: str) -> Decimal:
        return (await self.borrower_info(account)).loan_amount

    async def epoch_state(self) -> EpochState:
        result = await self._query(self._market, {"epoch_state": {}}, "epoch state")
        return self._parse(parser.parse_epoch_state, result, "epoch state")

    async def exchange_rate(self) -> Decimal:
        return (await self.epoch_state()).exchange_rate

    async def token_balance(self, account: str) -> Decimal:
        """aUST balance of ``account``."""
        result = await self._query(
            self._aterra, {"balance": {"address": account}}, "aUST balance"
        )
        return self._parse(parser.parse_token_balance, result, "aUST balance")

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def _stable(self, amount: Decimal) -> tuple[Coin, ...]:
        return (Coin(denom=self._stable_denom, amount=parser.to_micro(amount)),)

    def new_borrow_stable_msg(self, sender: str, amount: Decimal) -> ExecuteMsg:
        return ExecuteMsg(
            sender=sender,
            contract=self._market,
            execute_msg={
                "borrow_stable": {"borrow_amount": str(parser.to_micro(amount))}
            },
        )

    def new_deposit_stable_msg(self, sender: str, amount: Decimal) -> ExecuteMsg:
        return ExecuteMsg(
            sender=sender,
            contract=self._market,
            execute_msg={"deposit_stable": {}},
            coins=self._stable(amount),
        )

    def new_redeem_stable_msg(self, sender: str, amount: Decimal) -> ExecuteMsg:
        """Send ``amount`` aUST to the market with a redeem hook."""
        return ExecuteMsg(
            sender=sender,
            contract=self._aterra,
            execute_msg={
                "send": {
                    "contract": self._market,
                    "amount": str(parser.to_micro(amount)),
                    "msg": parser.encode_hook_msg({"redeem_stable": {}}),
                }
            },
        )

    def new_repay_stable_msg(self, sender: str, amount: Decimal) -> ExecuteMsg:
        return ExecuteMsg(
            sender=sender,
            contract=self._market,
            execute_msg={"repay_stable": {}},
            coins=self._stable(amount),
        )
