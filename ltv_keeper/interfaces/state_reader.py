"""State reader protocol — point-in-time reads of the position."""
from __future__ import annotations

from decimal import Decimal
from typing import Protocol


class StateReader(Protocol):
    """Reads the on-chain quantities the LTV control loop needs.

    Each call is an independent point-in-time read; nothing is guaranteed
    about consistency between two calls.
    """

    async def borrow_limit(self, account: str) -> Decimal: ...

    async def loan_amount(self, account: str) -> Decimal: ...

    async def exchange_rate(self) -> Decimal: ...

    async def token_balance(self, account: str) -> Decimal: ...
