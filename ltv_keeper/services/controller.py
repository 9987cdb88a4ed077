"""Keeper orchestration — wiring, the timer loop and notifications."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal

from ..chains.terra import RemoteSigner, TerraClient, TerraTransactionSubmitter
from ..config import AppConfig
from ..errors import InsufficientBalanceError, SubmissionError
from ..interfaces.notifier import Notifier
from ..models import Adjustment, Direction, LtvReading
from ..notifications import TelegramNotifier
from ..protocols.anchor import AnchorAdapter
from .adjuster import PositionAdjuster
from .evaluator import LtvEvaluator

logger = logging.getLogger(__name__)


class Controller:
    """Owns one account and keeps its LTV inside the configured band."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._band = config.keeper.band
        self._account = config.wallet.address
        self._lock = asyncio.Lock()

        client = TerraClient(config.chain)
        signer = RemoteSigner(config.wallet, config.chain)
        self._protocol = AnchorAdapter(client, config.protocol)
        self._submitter = TerraTransactionSubmitter(client, signer, config.chain)
        self._adjuster = PositionAdjuster(self._protocol, self._submitter, self._account)
        self._evaluator = LtvEvaluator(self._protocol, self._adjuster, self._account)

        self._notifiers: list[Notifier] = []
        if config.notifications.telegram.enabled:
            self._notifiers.append(TelegramNotifier(config.notifications.telegram))

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _format_wallet(address: str) -> str:
        if len(address) > 16:
            return f"{address[:10]}...{address[-6:]}"
        return address

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    def _build_adjustment_message(self, adjustment: Adjustment) -> str:
        if adjustment.direction is Direction.EXPAND:
            action = f"Borrowed & deposited {adjustment.delta:,.2f} UST"
        else:
            action = (
                f"Redeemed {adjustment.redeem_amount:,.2f} aUST & "
                f"repaid {abs(adjustment.delta):,.2f} UST"
            )
        txhash = adjustment.tx.txhash if adjustment.tx else "—"
        return (
            f"⚖️ LTV adjusted · {self._format_wallet(self._account)}\n"
            f"\n"
            f"{action}\n"
            f"Loan: {adjustment.loan_amount:,.2f} → {adjustment.new_loan_amount:,.2f} UST\n"
            f"Borrow limit: {adjustment.borrow_limit:,.2f} UST\n"
            f"Target LTV: {adjustment.target_ltv:.2f}%\n"
            f"Tx: {txhash}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

    def _build_failure_alert(self, error: Exception) -> str:
        hint = "Check the signer and LCD endpoints."
        if isinstance(error, InsufficientBalanceError):
            hint = "Top up aUST or widen the LTV band."
        return (
            f"🚨 LTV correction failed · {self._format_wallet(self._account)}\n"
            f"\n"
            f"{error}\n"
            f"\n"
            f"Band: {self._band.min_ltv}% – {self._band.max_ltv}% "
            f"(target {self._band.target_ltv}%)\n"
            f"{hint}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _send_log(self, message: str, silent: bool = True) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=silent)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    async def status(self) -> LtvReading:
        """Read the current LTV without acting on it."""
        return await self._evaluator.compute_ltv()

    async def evaluate(
        self, min_ltv: Decimal, max_ltv: Decimal, target_ltv: Decimal
    ) -> Adjustment | None:
        """Run one check-and-correct pass.

        Returns None when the position is within band or when another
        evaluation is already in flight (that call is skipped, not queued).
        """
        if self._lock.locked():
            logger.warning("An evaluation is already running; skipping")
            return None
        async with self._lock:
            adjustment = await self._evaluator.check_and_correct(
                min_ltv, max_ltv, target_ltv
            )
        if adjustment is not None and adjustment.submitted:
            await self._send_log(self._build_adjustment_message(adjustment))
        return adjustment

    async def set_ltv(self, target_ltv: Decimal) -> Adjustment:
        """One-shot adjustment to ``target_ltv`` regardless of the band."""
        async with self._lock:
            adjustment = await self._adjuster.set_ltv(target_ltv)
        if adjustment.submitted:
            await self._send_log(self._build_adjustment_message(adjustment))
        return adjustment

    async def run_cycle(self) -> None:
        """One loop iteration; failures are logged and reported, never raised."""
        try:
            await self.evaluate(
                self._band.min_ltv, self._band.max_ltv, self._band.target_ltv
            )
        except (InsufficientBalanceError, SubmissionError) as e:
            logger.error("checking ltv: %s", e)
            await self._send_alert(
                self._build_failure_alert(e), subject="🚨 LTV correction failed"
            )
        except Exception as e:
            logger.error("checking ltv: %s", e)

    async def run_continuous(
        self, stop: asyncio.Event, check_interval_seconds: int | None = None
    ) -> None:
        """Tick every interval until ``stop`` is set.

        The first check happens one interval after start. Cycles never
        overlap: ticks that fall due while a cycle is running are skipped.
        Setting ``stop`` lets a running cycle finish.
        """
        interval = check_interval_seconds or self._config.keeper.check_interval_seconds
        logger.info(
            "Starting ltv keeper for %s (checking every %ds, band %s-%s, target %s)",
            self._format_wallet(self._account),
            interval,
            self._band.min_ltv,
            self._band.max_ltv,
            self._band.target_ltv,
        )

        loop = asyncio.get_running_loop()
        next_tick = loop.time() + interval
        while not stop.is_set():
            try:
                await asyncio.wait_for(
                    stop.wait(), timeout=max(0.0, next_tick - loop.time())
                )
                break
            except asyncio.TimeoutError:
                pass

            await self.run_cycle()

            next_tick += interval
            now = loop.time()
            if next_tick <= now:
                skipped = int((now - next_tick) // interval) + 1
                logger.warning(
                    "Cycle overran the check period; skipping %d tick(s)", skipped
                )
                next_tick += skipped * interval

        logger.info("ltv keeper stopped")


async def run_until_stopped(
    controller: Controller,
    stop: asyncio.Event,
    shutdown_timeout: float,
    check_interval_seconds: int | None = None,
) -> int:
    """Run the keeper loop until ``stop`` is set, then wait a bounded time.

    Returns 0 on a clean stop, 1 when the loop failed or the running cycle
    did not finish within ``shutdown_timeout`` seconds and had to be cancelled.
    """
    task = asyncio.create_task(controller.run_continuous(stop, check_interval_seconds))
    stopper = asyncio.create_task(stop.wait())

    done, _ = await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)
    if task in done:
        stopper.cancel()
        return _loop_exit_code(task)

    try:
        await asyncio.wait_for(asyncio.shield(task), timeout=shutdown_timeout)
    except asyncio.TimeoutError:
        logger.warning("app shutdown sequence timed out")
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        return 1
    except Exception as e:
        logger.error("ltv keeper loop failed: %s", e)
        return 1
    return 0


def _loop_exit_code(task: asyncio.Task) -> int:
    error = task.exception()
    if error is not None:
        logger.error("ltv keeper loop failed: %s", error)
        return 1
    return 0
