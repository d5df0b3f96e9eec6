"""Exception hierarchy for the bank monitor demo."""


class BankMonitorError(Exception):
    """Base exception for all bank monitor errors."""


class InvariantViolation(BankMonitorError):
    """Raised when the balance goes negative or deposits and withdrawals don't add up.

    Always a synchronization bug, never recoverable.
    """


class InvalidAmountError(BankMonitorError, ValueError):
    """Raised when an amount is not a positive integer."""


class AmountsExhausted(BankMonitorError):
    """Raised by a scripted amount source once every amount was handed out."""


class WithdrawalCancelled(BankMonitorError):
    """Raised inside a parked withdrawal once the stop signal is observed."""


class ShutdownTimeoutError(BankMonitorError):
    """Raised when an actor thread is still alive after the shutdown grace."""
