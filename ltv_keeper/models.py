"""Data models — all frozen (immutable)."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

EXECUTE_CONTRACT_TYPE = "/terra.wasm.v1beta1.MsgExecuteContract"


@dataclass(frozen=True)
class Coin:
    """Native coin amount in micro units."""

    denom: str
    amount: int

    def to_dict(self) -> dict[str, str]:
        return {"denom": self.denom, "amount": str(self.amount)}


@dataclass(frozen=True)
class ExecuteMsg:
    """A wasm MsgExecuteContract ready to be placed in a transaction."""

    sender: str
    contract: str
    execute_msg: dict[str, Any]
    coins: tuple[Coin, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "@type": EXECUTE_CONTRACT_TYPE,
            "sender": self.sender,
            "contract": self.contract,
            "execute_msg": self.execute_msg,
            "coins": [c.to_dict() for c in self.coins],
        }


@dataclass(frozen=True)
class BorrowerInfo:
    """Money-market view of a borrower."""

    borrower: str
    loan_amount: Decimal
    interest_index: Decimal = Decimal(1)
    pending_rewards: Decimal = Decimal(0)


@dataclass(frozen=True)
class EpochState:
    """Money-market epoch state; exchange_rate converts aUST to UST."""

    exchange_rate: Decimal
    aterra_supply: Decimal = Decimal(0)


@dataclass(frozen=True)
class LtvReading:
    """Point-in-time LTV of the position, in percent."""

    borrow_limit: Decimal
    loan_amount: Decimal
    ltv: Decimal


class Direction(enum.Enum):
    NONE = "none"
    EXPAND = "expand"
    CONTRACT = "contract"


@dataclass(frozen=True)
class TxResult:
    """Outcome of a confirmed transaction."""

    txhash: str
    height: int = 0
    gas_used: int = 0


@dataclass(frozen=True)
class Adjustment:
    """Result of a single set-LTV call."""

    direction: Direction
    target_ltv: Decimal
    borrow_limit: Decimal
    loan_amount: Decimal
    new_loan_amount: Decimal
    delta: Decimal
    redeem_amount: Decimal | None = None
    exchange_rate: Decimal | None = None
    tx: TxResult | None = None

    @property
    def submitted(self) -> bool:
        return self.tx is not None
