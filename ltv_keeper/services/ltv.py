"""Pure LTV arithmetic — no I/O, Decimal only."""
from __future__ import annotations

from decimal import ROUND_DOWN, Decimal

from ..errors import StateUnavailableError, ZeroBorrowLimitError

PERCENT = Decimal(100)
QUANTUM = Decimal("0.000001")


def truncate6(value: Decimal) -> Decimal:
    """Truncate (toward zero, never round) to 6 fractional digits."""
    return value.quantize(QUANTUM, rounding=ROUND_DOWN)


def compute_ltv(borrow_limit: Decimal, loan_amount: Decimal) -> Decimal:
    """LTV in percent: loan_amount * 100 / borrow_limit."""
    if borrow_limit == 0:
        raise ZeroBorrowLimitError(
            f"borrow limit is zero (loan amount {loan_amount}); ltv is undefined"
        )
    return loan_amount * PERCENT / borrow_limit


def is_out_of_band(ltv: Decimal, min_ltv: Decimal, max_ltv: Decimal) -> bool:
    """True when ltv lies strictly outside [min_ltv, max_ltv]."""
    return ltv < min_ltv or ltv > max_ltv


def target_loan_amount(borrow_limit: Decimal, target_ltv: Decimal) -> Decimal:
    return truncate6(borrow_limit * target_ltv / PERCENT)


def yield_token_for(stable_amount: Decimal, exchange_rate: Decimal) -> Decimal:
    """Yield-token amount redeeming to ``stable_amount``, truncated."""
    if exchange_rate <= 0:
        raise StateUnavailableError(f"exchange rate must be positive, got {exchange_rate}")
    return truncate6(stable_amount / exchange_rate)
