"""Pure parsing and encoding helpers for Anchor contract data — no I/O."""
from __future__ import annotations

import base64
import json
from decimal import ROUND_DOWN, Decimal
from typing import Any

from ...models import BorrowerInfo, EpochState

MICRO = Decimal(1_000_000)
MICRO_QUANTUM = Decimal("0.000001")


def from_micro(raw: Any) -> Decimal:
    """Convert an on-chain micro-unit integer (usually a string) to units.

    Examples:
        "150000000" → Decimal("150")
        "1"         → Decimal("0.000001")
    """
    return Decimal(str(raw)) / MICRO


def to_micro(amount: Decimal) -> int:
    """Convert a unit amount to micro units, truncating below 10^-6."""
    if amount < 0:
        raise ValueError(f"amount must not be negative: {amount}")
    return int(amount.quantize(MICRO_QUANTUM, rounding=ROUND_DOWN) * MICRO)


def parse_borrow_limit(result: dict[str, Any]) -> Decimal:
    """Overseer ``borrow_limit`` response → borrow limit in UST."""
    return from_micro(result["borrow_limit"])


def parse_borrower_info(result: dict[str, Any]) -> BorrowerInfo:
    """Market ``borrower_info`` response → BorrowerInfo (amounts in UST)."""
    return BorrowerInfo(
        borrower=result.get("borrower", ""),
        loan_amount=from_micro(result["loan_amount"]),
        interest_index=Decimal(str(result.get("interest_index", "1"))),
        pending_rewards=from_micro(result.get("pending_rewards", "0")),
    )


def parse_epoch_state(result: dict[str, Any]) -> EpochState:
    """Market ``epoch_state`` response. The exchange rate is a plain decimal."""
    return EpochState(
        exchange_rate=Decimal(str(result["exchange_rate"])),
        aterra_supply=from_micro(result.get("aterra_supply", "0")),
    )


def parse_token_balance(result: dict[str, Any]) -> Decimal:
    """cw20 ``balance`` response → balance in token units."""
    return from_micro(result["balance"])


def encode_hook_msg(msg: dict[str, Any]) -> str:
    """Base64 JSON payload for a cw20 ``send`` hook."""
    return base64.b64encode(json.dumps(msg, separators=(",", ":")).encode()).decode()
