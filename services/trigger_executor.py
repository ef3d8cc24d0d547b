"""Submits the keeper trigger transaction and records its outcome."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from analysis.models import CycleResult, RunStatistics, TriggerReceipt
from services.chain_client import ChainCallError, ErrorKind, matches_benign_reason

BENIGN = "benign"
UNEXPECTED = "unexpected"


def classify_failure(exc: BaseException) -> str:
    """Benign when the contract said the gap closed, unexpected otherwise."""
    if isinstance(exc, ChainCallError):
        if exc.kind is ErrorKind.OPPORTUNITY_CLOSED:
            return BENIGN
        if exc.kind in (ErrorKind.TIMEOUT, ErrorKind.CONNECTION):
            return UNEXPECTED
    # Untyped errors only carry the revert text.
    message = getattr(exc, "reason", None) or str(exc)
    return BENIGN if matches_benign_reason(message) else UNEXPECTED


class TriggerExecutor:
    """
    Sends exactly one trigger per call and blocks until it is mined. A trigger
    whose receipt wait timed out stays in ``pending_tx_hash``; no new trigger is
    sent until that hash has a receipt.
    """

    def __init__(
        self,
        client,
        *,
        gas_limit: int,
        receipt_timeout: float,
        simulate: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.gas_limit = gas_limit
        self.receipt_timeout = receipt_timeout
        self.simulate = simulate
        self._clock = clock
        self.pending_tx_hash: Optional[str] = None
        self.logger = logging.getLogger(__name__)

    async def execute(self, stats: RunStatistics) -> CycleResult:
        return await asyncio.to_thread(self._execute_sync, stats)

    async def resolve_pending(self, stats: RunStatistics) -> Optional[CycleResult]:
        """None when nothing is in flight; a ``tx_pending`` result while the last trigger is unmined."""
        if self.pending_tx_hash is None:
            return None
        return await asyncio.to_thread(self._resolve_pending_sync, stats)

    def _resolve_pending_sync(self, stats: RunStatistics) -> Optional[CycleResult]:
        tx_hash = self.pending_tx_hash
        receipt = self.client.get_receipt(tx_hash)
        if receipt is None:
            self.logger.warning("Trigger %s still pending, not sending another", tx_hash)
            return CycleResult(triggered=False, reason="tx_pending", tx_hash=tx_hash)

        self.pending_tx_hash = None
        if receipt.status == 1:
            self._record_success(receipt, stats)
        else:
            stats.unexpected_errors += 1
            self.logger.error("Error: transaction %s reverted on-chain", tx_hash)
        return None

    def _execute_sync(self, stats: RunStatistics) -> CycleResult:
        try:
            if self.simulate:
                self.client.simulate_trigger()

            self.logger.info("Triggering arb (gas limit %s)...", self.gas_limit)
            tx_hash = self.client.send_trigger(self.gas_limit)
            self.logger.info("TX sent: %s", tx_hash)

            try:
                receipt = self.client.wait_for_receipt(tx_hash, self.receipt_timeout)
            except ChainCallError as exc:
                if exc.kind is ErrorKind.TIMEOUT:
                    self.pending_tx_hash = tx_hash
                raise
            if receipt.status != 1:
                raise ChainCallError(ErrorKind.REVERTED, f"transaction {tx_hash} reverted on-chain")

            self._record_success(receipt, stats)
            return CycleResult(triggered=True, reason="triggered", tx_hash=tx_hash)
        except Exception as exc:
            return self.handle_failure(exc, stats)

    def _record_success(self, receipt: TriggerReceipt, stats: RunStatistics) -> None:
        stats.record_success(receipt.gas_used, receipt.effective_gas_price, self._clock())
        self.logger.info(
            "ARB SUCCESS tx=%s gas=%s total_triggers=%s",
            receipt.tx_hash,
            receipt.gas_used,
            stats.total_triggers_sent,
        )

    def handle_failure(self, exc: Exception, stats: RunStatistics) -> CycleResult:
        message = getattr(exc, "message", None) or str(exc)
        if classify_failure(exc) == BENIGN:
            stats.benign_rejections += 1
            self.logger.info("Opportunity closed before trigger: %s", message)
            return CycleResult(triggered=False, reason="opportunity_closed")

        stats.unexpected_errors += 1
        self.logger.error("Error: %s", message)
        return CycleResult(triggered=False, reason="error", error=message)
