import threading
from typing import Callable, Optional

import structlog

from account import Account
from errors import AmountsExhausted, WithdrawalCancelled
from models import ActorRole, TransactionEvent
from repositories import EventRepository

logger = structlog.get_logger()

AmountSource = Callable[[], int]
Reporter = Callable[[TransactionEvent], None]


class Actor:
    """Loop that keeps transacting against a shared account until told to stop.

    The stop signal is only checked between iterations; a transaction that has
    started always runs to completion, except a withdrawal parked on
    insufficient funds, which gives up once the signal is raised.
    """

    role: ActorRole

    def __init__(
        self,
        account: Account,
        amounts: AmountSource,
        stop: threading.Event,
        repository: EventRepository,
        reporter: Optional[Reporter] = None,
        iterations: Optional[int] = None,
    ):
        self.account = account
        self.amounts = amounts
        self.stop = stop
        self.repository = repository
        self.reporter = reporter
        self.iterations = iterations
        self.completed = 0
        self.cancelled = False
        self.error: Optional[BaseException] = None
        self.finished = threading.Event()

    def run(self) -> None:
        log = logger.bind(role=self.role.value)
        log.info("Actor started", iterations=self.iterations)
        try:
            while not self.stop.is_set():
                if self.iterations is not None and self.completed >= self.iterations:
                    break
                try:
                    amount = self.amounts()
                except AmountsExhausted:
                    log.info("Amount source exhausted", completed=self.completed)
                    break

                event = self.transact(amount)
                self.repository.record(event)
                if self.reporter is not None:
                    self.reporter(event)
                self.completed += 1
                if self.iterations is None or self.completed < self.iterations:
                    self.pause()

        except WithdrawalCancelled as e:
            self.cancelled = True
            log.info("Pending withdrawal cancelled", reason=str(e))

        except Exception as e:
            self.error = e
            log.error("Actor failed", error=str(e), exc_info=True)
            # Bring the peer down too, including one parked in withdraw
            self.stop.set()
            self.account.wake_waiters()

        finally:
            self.finished.set()
            log.info("Actor stopped", completed=self.completed, cancelled=self.cancelled)

    def transact(self, amount: int) -> TransactionEvent:
        raise NotImplementedError

    def pause(self) -> None:
        pass


class DepositActor(Actor):
    role = ActorRole.deposit

    def __init__(self, *args, interval: float = 1.0, **kwargs):
        super().__init__(*args, **kwargs)
        self.interval = interval

    def transact(self, amount: int) -> TransactionEvent:
        event = self.account.deposit(amount)
        logger.debug("Deposit processed", amount=amount, new_balance=event.balance)
        return event

    def pause(self) -> None:
        # Waiting on the stop event lets a stop request cut the delay short
        if self.interval > 0:
            self.stop.wait(self.interval)


class WithdrawActor(Actor):
    """Withdraws back to back; each call may park until funds suffice."""

    role = ActorRole.withdraw

    def transact(self, amount: int) -> TransactionEvent:
        event = self.account.withdraw(amount, cancel=self.stop)
        logger.debug("Withdrawal processed", amount=amount, new_balance=event.balance)
        return event
