"""Position adjustment — moves the loan to a target LTV.

A positive delta expands the position: borrow the delta and deposit it back
into the money market. A negative delta contracts it: redeem enough aUST to
cover the delta and repay it. Both procedures go out as one two-message
transaction, in that order, so the position stays collateralized between
messages.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Awaitable, Callable, TypeVar

from ..errors import InsufficientBalanceError, StateUnavailableError, SubmissionError
from ..interfaces.protocol_adapter import LendingProtocol
from ..interfaces.submitter import MessageFactory, TransactionSubmitter
from ..models import Adjustment, Direction, TxResult
from . import ltv as ltv_math

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PositionAdjuster:
    """Computes the corrective delta and submits the matching transaction."""

    def __init__(
        self,
        protocol: LendingProtocol,
        submitter: TransactionSubmitter,
        account: str,
    ) -> None:
        self._protocol = protocol
        self._submitter = submitter
        self._account = account

    async def _read(self, what: str, read: Callable[[], Awaitable[T]]) -> T:
        try:
            return await read()
        except Exception as e:
            raise StateUnavailableError(f"getting {what}: {e}") from e

    async def _submit(self, what: str, steps: list[MessageFactory]) -> TxResult:
        try:
            return await self._submitter.execute(steps)
        except SubmissionError:
            raise
        except Exception as e:
            raise SubmissionError(f"executing {what} transaction: {e}") from e

    async def set_ltv(self, target_ltv: Decimal) -> Adjustment:
        """Borrow or repay so that the loan sits at ``target_ltv`` percent.

        All state is read fresh. Nothing is submitted when the delta is zero
        or when the wallet lacks the aUST needed to contract.

        Raises:
            StateUnavailableError: a read failed; nothing was submitted.
            InsufficientBalanceError: not enough aUST to repay the delta.
            SubmissionError: the transaction failed to go through.
        """
        account = self._account
        borrow_limit = await self._read(
            "borrow limit", lambda: self._protocol.borrow_limit(account)
        )
        loan_amount = await self._read(
            "borrower info", lambda: self._protocol.loan_amount(account)
        )

        new_loan_amount = ltv_math.target_loan_amount(borrow_limit, target_ltv)
        logger.info("new loan amount: %.2f UST", new_loan_amount)
        delta = new_loan_amount - loan_amount
        logger.info("diff with current loan: %.2f", delta)

        plan = Adjustment(
            direction=Direction.NONE,
            target_ltv=target_ltv,
            borrow_limit=borrow_limit,
            loan_amount=loan_amount,
            new_loan_amount=new_loan_amount,
            delta=delta,
        )

        if delta == 0:
            logger.info("ltv is already at the asked value")
            return plan

        if delta > 0:
            result = await self._expand(plan)
        else:
            result = await self._contract(plan)

        logger.info("ltv set to %s", target_ltv)
        return result

    async def _expand(self, plan: Adjustment) -> Adjustment:
        amount = plan.delta
        logger.info("borrowing & depositing to anchor...")
        tx = await self._submit(
            "borrow & deposit",
            [
                lambda: self._protocol.new_borrow_stable_msg(self._account, amount),
                lambda: self._protocol.new_deposit_stable_msg(self._account, amount),
            ],
        )
        return replace(plan, direction=Direction.EXPAND, tx=tx)

    async def _contract(self, plan: Adjustment) -> Adjustment:
        logger.info("redeeming aUST & repaying loan...")
        to_repay = abs(plan.delta)
        exchange_rate = await self._read("exchange rate", self._protocol.exchange_rate)
        to_redeem = ltv_math.yield_token_for(to_repay, exchange_rate)
        logger.info("aUST to redeem: %.2f (exchange rate: %s)", to_redeem, exchange_rate)
        if to_redeem == 0:
            # cw20 rejects zero-amount sends
            logger.info("repay of %s UST is below one micro aUST; nothing to do", to_repay)
            return plan

        balance = await self._read(
            "aUST balance", lambda: self._protocol.token_balance(self._account)
        )
        logger.info("aUST balance: %.2f", balance)
        if balance < to_redeem:
            raise InsufficientBalanceError(balance, to_redeem)

        tx = await self._submit(
            "redeem & repay",
            [
                lambda: self._protocol.new_redeem_stable_msg(self._account, to_redeem),
                lambda: self._protocol.new_repay_stable_msg(self._account, to_repay),
            ],
        )
        return replace(
            plan,
            direction=Direction.CONTRACT,
            redeem_amount=to_redeem,
            exchange_rate=exchange_rate,
            tx=tx,
        )
