"""Lending protocol adapter — state reads plus message builders."""
from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from ..models import ExecuteMsg
from .state_reader import StateReader


class LendingProtocol(StateReader, Protocol):
    """A StateReader that can also build the four corrective messages."""

    def new_borrow_stable_msg(self, sender: str, amount: Decimal) -> ExecuteMsg: ...

    def new_deposit_stable_msg(self, sender: str, amount: Decimal) -> ExecuteMsg: ...

    def new_redeem_stable_msg(self, sender: str, amount: Decimal) -> ExecuteMsg: ...

    def new_repay_stable_msg(self, sender: str, amount: Decimal) -> ExecuteMsg: ...
