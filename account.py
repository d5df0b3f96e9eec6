"""Shared account monitor.

The balance is guarded by one mutex and one condition variable. Deposits
broadcast on the condition; withdrawals park on it until the balance covers
the requested amount, re-checking the guard after every wake-up.
"""

import threading
from collections import deque
from typing import Deque, Optional, Set, Tuple

import structlog

from errors import InvalidAmountError, InvariantViolation, WithdrawalCancelled
from models import ActorRole, TransactionEvent

logger = structlog.get_logger()


class FairLock:
    """Non-reentrant FIFO mutex.

    Threads that find the lock taken queue up and are handed ownership in
    arrival order on release, so a long-waiting thread can't be overtaken by
    newcomers. Usable as the lock of a ``threading.Condition``.
    """

    def __init__(self):
        self._mutex = threading.Lock()
        self._waiters: Deque[Tuple[int, threading.Event]] = deque()
        self._owner: Optional[int] = None

    def acquire(self, blocking: bool = True, timeout: float = -1) -> bool:
        me = threading.get_ident()
        with self._mutex:
            if self._owner is None and not self._waiters:
                self._owner = me
                return True
            if not blocking:
                return False
            ticket = threading.Event()
            self._waiters.append((me, ticket))

        if ticket.wait(None if timeout < 0 else timeout):
            return True

        with self._mutex:
            # Ownership may have been handed over right after the timeout
            if ticket.is_set():
                return True
            self._waiters.remove((me, ticket))
            return False

    def release(self) -> None:
        with self._mutex:
            if self._owner != threading.get_ident():
                raise RuntimeError("cannot release un-acquired lock")
            if self._waiters:
                # Hand ownership straight to the oldest waiter
                self._owner, ticket = self._waiters.popleft()
                ticket.set()
            else:
                self._owner = None

    def locked(self) -> bool:
        with self._mutex:
            return self._owner is not None

    def queued(self) -> int:
        """Number of threads queued for entry."""
        with self._mutex:
            return len(self._waiters)

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()


class Account:
    """Single balance shared by a depositor and a withdrawer.

    ``deposit`` and ``withdraw`` return the ``TransactionEvent`` describing the
    mutation. Event sequence numbers are assigned inside the exclusive
    section, so they follow the real order in which the balance changed.
    """

    def __init__(self, initial_balance: int = 0, fair: bool = True):
        if isinstance(initial_balance, bool) or not isinstance(initial_balance, int) or initial_balance < 0:
            raise InvalidAmountError(f"Initial balance must be a non-negative integer, got {initial_balance!r}")
        self._balance = initial_balance
        self._lock = FairLock() if fair else threading.Lock()
        self._funds = threading.Condition(self._lock)
        # Withdrawers parked since the last broadcast
        self._parked: Set[int] = set()
        self._sequence = 0
        self.fair = fair

    @property
    def balance(self) -> int:
        with self._funds:
            return self._balance

    @property
    def waiting(self) -> int:
        """Number of withdrawers parked on insufficient funds and not yet notified."""
        with self._funds:
            return len(self._parked)

    def deposit(self, amount: int) -> TransactionEvent:
        self._validate_amount(amount)
        with self._funds:
            self._balance += amount
            self._check_invariant()
            event = self._record(ActorRole.deposit, amount)
            self._broadcast()
        return event

    def withdraw(self, amount: int, cancel: Optional[threading.Event] = None) -> TransactionEvent:
        """Remove ``amount``, blocking while the balance is insufficient.

        The lock is released while parked. If ``cancel`` is set while the
        withdrawal waits, ``WithdrawalCancelled`` is raised and the balance
        is left untouched.
        """
        self._validate_amount(amount)
        with self._funds:
            while self._balance < amount:
                if cancel is not None and cancel.is_set():
                    raise WithdrawalCancelled(
                        f"Withdrawal of {amount} cancelled with balance {self._balance}"
                    )
                logger.debug(
                    "Insufficient funds, waiting",
                    requested_amount=amount,
                    current_balance=self._balance,
                )
                me = threading.get_ident()
                self._parked.add(me)
                try:
                    self._funds.wait()
                finally:
                    self._parked.discard(me)

            self._balance -= amount
            self._check_invariant()
            return self._record(ActorRole.withdraw, amount)

    def wake_waiters(self) -> None:
        """Wake every parked withdrawer so it re-checks its guard and cancel signal."""
        with self._funds:
            self._broadcast()

    def _broadcast(self) -> None:
        self._parked.clear()
        self._funds.notify_all()

    def _record(self, role: ActorRole, amount: int) -> TransactionEvent:
        self._sequence += 1
        return TransactionEvent(
            sequence=self._sequence,
            role=role,
            amount=amount,
            balance=self._balance,
        )

    def _check_invariant(self) -> None:
        if self._balance < 0:
            logger.critical("Balance went negative", balance=self._balance)
            raise InvariantViolation(f"Balance went negative: {self._balance}")

    @staticmethod
    def _validate_amount(amount) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmountError(f"Amount must be a positive integer, got {amount!r}")
