# keeper.py
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from analysis.guard_evaluator import GuardEvaluator, format_eth
from analysis.models import CycleResult, RunStatistics
from analysis.opportunity_checker import OpportunityChecker
from config import AppConfig
from services.chain_client import ChainClient
from services.trigger_executor import TriggerExecutor

logger = logging.getLogger(__name__)


class KeeperMonitor:
    def __init__(
        self,
        config: AppConfig,
        client: ChainClient,
        checker: OpportunityChecker,
        guards: GuardEvaluator,
        executor: TriggerExecutor,
        stats: Optional[RunStatistics] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config
        self.client = client
        self.checker = checker
        self.guards = guards
        self.executor = executor
        self.stats = stats or RunStatistics()
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: AppConfig, client: ChainClient) -> "KeeperMonitor":
        return cls(
            config,
            client,
            OpportunityChecker(client, config.pool_labels),
            GuardEvaluator(client, config.min_balance),
            TriggerExecutor(
                client,
                gas_limit=config.gas_limit,
                receipt_timeout=config.receipt_timeout,
                simulate=config.simulate,
            ),
        )

    async def start(self):
        """Logs the startup report and polls until the process is stopped."""
        await self.log_startup()
        await self.run_forever()

    async def log_startup(self):
        rule = "=" * 50
        logger.info(rule)
        logger.info("ARB KEEPER STARTED")
        logger.info(rule)
        logger.info("Polling every %g seconds", self.config.interval)
        logger.info("Profile: %s", self.config.profile)
        logger.info("ARB Contract: %s", self.config.arb_contract)
        logger.info("WWMM Contract: %s", self.config.wwmm_contract)
        logger.info("Keeper Wallet: %s", self.client.signer_address)
        logger.info("Gas limit: %s", self.config.gas_limit)

        balance = await asyncio.to_thread(self.client.get_balance)
        logger.info("Wallet Balance: %s", format_eth(balance))
        if balance < self.config.min_balance:
            logger.warning("Balance is below the %s minimum; triggers will be skipped", format_eth(self.config.min_balance))

        if self.client.requires_keeper:
            if await asyncio.to_thread(self.client.is_keeper):
                logger.info("Wallet is authorized keeper")
            else:
                logger.warning("WARNING: Wallet is NOT an authorized keeper!")
                logger.warning('Run: wwmmContract.setKeeper("%s", true)', self.client.signer_address)

        enabled = await asyncio.to_thread(self.client.is_action_enabled)
        logger.info("Action enabled: %s", enabled)

        threshold = await asyncio.to_thread(self.client.get_gap_threshold_bps)
        logger.info("Gap Threshold: %s bps (%s%%)", threshold, threshold / 100)
        logger.info("-" * 50)

    async def run_forever(self, max_cycles: Optional[int] = None):
        """The main polling loop; ``max_cycles`` bounds it."""
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            await self.run_cycle()
            cycles += 1
            if self.config.stats_every and self.stats.cycles_run % self.config.stats_every == 0:
                self.log_stats()
            await self._sleep(self.config.interval)

    async def run_once(self) -> CycleResult:
        return await self.run_cycle()

    async def run_cycle(self) -> CycleResult:
        """One check-guard-execute pass. Remote failures end the cycle, never the loop."""
        self.stats.cycles_run += 1
        try:
            pending = await self.executor.resolve_pending(self.stats)
            if pending is not None:
                return pending

            snapshot = await asyncio.to_thread(self.checker.check)
            if not snapshot.available:
                return CycleResult(triggered=False, reason='no_opportunity')

            outcome = await asyncio.to_thread(self.guards.evaluate)
            if not outcome.passed:
                self.stats.record_guard_abort(outcome.reason)
                return CycleResult(triggered=False, reason=outcome.reason)
        except Exception as exc:
            return self.executor.handle_failure(exc, self.stats)

        return await self.executor.execute(self.stats)

    def log_stats(self):
        summary = self.stats.to_dict()
        summary["gas_spent_eth"] = format(summary.pop("total_gas_spent_wei") / 10 ** 18, ".6f")
        summary.pop("last_trigger_timestamp")
        logger.info("Stats: %s", " ".join(f"{key}={value}" for key, value in summary.items()))
