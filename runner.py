"""Runs one depositor and one withdrawer against a shared account."""

import threading
import time
from typing import List, Optional

import structlog

from account import Account
from actors import Actor, AmountSource, DepositActor, Reporter, WithdrawActor
from amounts import RandomAmountSource
from config import Settings, get_settings
from errors import InvariantViolation, ShutdownTimeoutError
from models import ActorRole, RunReport
from repositories import EventRepository, InMemoryEventRepository

logger = structlog.get_logger()

STOP_DURATION = "duration elapsed"
STOP_COMPLETED = "iterations complete"
STOP_STARVED = "withdrawer starved"
STOP_FAILED = "actor failed"
STOP_REQUESTED = "stop requested"
STOP_INTERRUPTED = "interrupted"


class Runner:
    """Owns the account and both actor threads for the duration of one run.

    ``run()`` never returns while an actor thread is alive: it either joins
    both within ``shutdown_grace`` or raises ``ShutdownTimeoutError``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        account: Optional[Account] = None,
        deposit_amounts: Optional[AmountSource] = None,
        withdraw_amounts: Optional[AmountSource] = None,
        reporter: Optional[Reporter] = None,
        repository: Optional[EventRepository] = None,
    ):
        self.settings = settings or get_settings()
        self.account = account or Account(self.settings.initial_balance, fair=self.settings.fair_lock)
        self.repository = repository or InMemoryEventRepository()
        self.reporter = reporter
        self.stop_event = threading.Event()

        seed = self.settings.seed
        self.deposit_amounts = deposit_amounts or RandomAmountSource(
            self.settings.min_amount, self.settings.max_amount, seed
        )
        self.withdraw_amounts = withdraw_amounts or RandomAmountSource(
            self.settings.min_amount, self.settings.max_amount, None if seed is None else seed + 1
        )

        self.depositor = DepositActor(
            self.account,
            self.deposit_amounts,
            self.stop_event,
            self.repository,
            reporter=reporter,
            iterations=self.settings.deposit_iterations,
            interval=self.settings.deposit_interval,
        )
        self.withdrawer = WithdrawActor(
            self.account,
            self.withdraw_amounts,
            self.stop_event,
            self.repository,
            reporter=reporter,
            iterations=self.settings.withdraw_iterations,
        )
        self._threads: List[threading.Thread] = []

    @property
    def actors(self) -> List[Actor]:
        return [self.depositor, self.withdrawer]

    def stop(self) -> None:
        """Ask both actors to stop; ``run()`` then shuts down."""
        self.stop_event.set()
        self.account.wake_waiters()

    def run(self) -> RunReport:
        if self._threads:
            raise RuntimeError("Runner can only be run once")

        initial_balance = self.account.balance
        started = time.monotonic()
        logger.info(
            "Starting run",
            initial_balance=initial_balance,
            duration=self.settings.duration,
            deposit_iterations=self.settings.deposit_iterations,
            withdraw_iterations=self.settings.withdraw_iterations,
            fair_lock=self.account.fair,
        )

        for actor in self.actors:
            thread = threading.Thread(target=actor.run, name=f"{actor.role.value}-actor")
            self._threads.append(thread)
            thread.start()

        try:
            reason = self._wait(started)
        except KeyboardInterrupt:
            reason = STOP_INTERRUPTED
        finally:
            self.stop()
            self._join()

        elapsed = time.monotonic() - started
        failed = [actor for actor in self.actors if actor.error is not None]
        if failed:
            raise failed[0].error

        report = self._report(initial_balance, elapsed, reason)
        logger.info(
            "Run finished",
            final_balance=report.final_balance,
            stop_reason=reason,
            deposits=report.deposit_count,
            withdrawals=report.withdrawal_count,
            elapsed=round(elapsed, 4),
        )
        return report

    def _wait(self, started: float) -> str:
        duration = self.settings.duration
        deadline = None if duration is None else started + duration
        while True:
            if any(actor.error is not None for actor in self.actors):
                return STOP_FAILED
            if self.stop_event.is_set():
                return STOP_REQUESTED
            if self.depositor.finished.is_set():
                if self.withdrawer.finished.is_set():
                    return STOP_COMPLETED
                # Nothing will ever fund a withdrawal parked after the last deposit
                if self.account.waiting > 0:
                    return STOP_STARVED
            if deadline is not None and time.monotonic() >= deadline:
                return STOP_DURATION
            self.stop_event.wait(self.settings.poll_interval)

    def _join(self) -> None:
        deadline = time.monotonic() + self.settings.shutdown_grace
        for thread in self._threads:
            thread.join(max(0.0, deadline - time.monotonic()))

        alive = [thread.name for thread in self._threads if thread.is_alive()]
        if alive:
            logger.error("Actors did not stop in time", actors=alive, grace=self.settings.shutdown_grace)
            raise ShutdownTimeoutError(f"Actors still running after shutdown: {', '.join(alive)}")

    def _report(self, initial_balance: int, elapsed: float, reason: str) -> RunReport:
        totals = self.repository.totals()
        report = RunReport(
            initial_balance=initial_balance,
            final_balance=self.account.balance,
            deposit_count=self.repository.count(ActorRole.deposit),
            deposit_total=totals[ActorRole.deposit],
            withdrawal_count=self.repository.count(ActorRole.withdraw),
            withdrawal_total=totals[ActorRole.withdraw],
            elapsed_seconds=elapsed,
            withdrawal_cancelled=self.withdrawer.cancelled,
            stop_reason=reason,
        )
        if report.final_balance != report.expected_balance:
            logger.critical(
                "Balance does not match recorded transactions",
                final_balance=report.final_balance,
                expected_balance=report.expected_balance,
            )
            raise InvariantViolation(
                f"Final balance {report.final_balance} != expected {report.expected_balance}"
            )
        return report
