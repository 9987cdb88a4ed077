"""LTV evaluation — reads the position and decides whether to correct it."""
from __future__ import annotations

import logging
from decimal import Decimal

from ..errors import InsufficientBalanceError, KeeperError, StateUnavailableError
from ..interfaces.state_reader import StateReader
from ..models import Adjustment, LtvReading
from . import ltv as ltv_math
from .adjuster import PositionAdjuster

logger = logging.getLogger(__name__)


class LtvEvaluator:
    """Computes the current LTV and triggers an adjustment when out of band."""

    def __init__(self, reader: StateReader, adjuster: PositionAdjuster, account: str) -> None:
        self._reader = reader
        self._adjuster = adjuster
        self._account = account

    async def compute_ltv(self) -> LtvReading:
        try:
            borrow_limit = await self._reader.borrow_limit(self._account)
        except Exception as e:
            raise StateUnavailableError(f"getting borrow limit: {e}") from e
        try:
            loan_amount = await self._reader.loan_amount(self._account)
        except Exception as e:
            raise StateUnavailableError(f"getting borrower info: {e}") from e

        return LtvReading(
            borrow_limit=borrow_limit,
            loan_amount=loan_amount,
            ltv=ltv_math.compute_ltv(borrow_limit, loan_amount),
        )

    async def check_and_correct(
        self, min_ltv: Decimal, max_ltv: Decimal, target_ltv: Decimal
    ) -> Adjustment | None:
        """Set the LTV back to target when it is below min or above max.

        Returns the adjustment made, or None when the LTV is within the band
        (both bounds inclusive). A failed correction is re-raised as the same
        error type, prefixed with the step ("borrowing to target ltv 75: ...").
        """
        reading = await self.compute_ltv()
        logger.info("ltv: %.2f", reading.ltv)

        if not ltv_math.is_out_of_band(reading.ltv, min_ltv, max_ltv):
            return None

        if reading.ltv < min_ltv:
            step = f"borrowing to target ltv {target_ltv}"
            logger.info(
                "current ltv (%s) is less than minimum ltv (%.2f) -> borrowing to target ltv (%.2f)",
                reading.ltv, min_ltv, target_ltv,
            )
        else:
            step = f"repaying to target ltv {target_ltv}"
            logger.info(
                "current ltv (%s) is greater than maximum ltv (%.2f) -> repaying to target ltv (%.2f)",
                reading.ltv, max_ltv, target_ltv,
            )

        try:
            return await self._adjuster.set_ltv(target_ltv)
        except InsufficientBalanceError as e:
            raise InsufficientBalanceError(e.balance, e.needed, context=step) from e
        except KeeperError as e:
            raise type(e)(f"{step}: {e}") from e
