from pydantic import BaseModel, Field, PositiveInt, NonNegativeInt, model_validator
from enum import Enum
from typing import Optional


class ActorRole(str, Enum):
    deposit = "deposit"
    withdraw = "withdraw"


class AmountRange(BaseModel):
    low: PositiveInt = Field(1, description="Smallest amount drawn (inclusive)")
    high: PositiveInt = Field(10, description="Largest amount drawn (inclusive)")

    @model_validator(mode="after")
    def validate_bounds(self):
        if self.low > self.high:
            raise ValueError("Lower bound must not exceed upper bound")
        return self


class TransactionEvent(BaseModel):
    sequence: PositiveInt = Field(..., description="Position in the account's mutation order")
    role: ActorRole = Field(..., description="Actor that performed the transaction")
    amount: PositiveInt = Field(..., description="Amount deposited or withdrawn")
    balance: NonNegativeInt = Field(..., description="Account balance right after the transaction")

    @property
    def signed_amount(self) -> int:
        return self.amount if self.role == ActorRole.deposit else -self.amount

    def describe(self) -> str:
        """Human-readable line for the transaction log."""
        sign = "+" if self.role == ActorRole.deposit else "-"
        return (
            f"[{self.sequence:04d}] {self.role.value:<8} {sign}{self.amount:<3} "
            f"balance={self.balance}"
        )


class RunReport(BaseModel):
    initial_balance: NonNegativeInt
    final_balance: NonNegativeInt
    deposit_count: NonNegativeInt = 0
    deposit_total: NonNegativeInt = 0
    withdrawal_count: NonNegativeInt = 0
    withdrawal_total: NonNegativeInt = 0
    elapsed_seconds: float = Field(..., ge=0)
    withdrawal_cancelled: bool = Field(False, description="A parked withdrawal was abandoned at shutdown")
    stop_reason: Optional[str] = None

    @property
    def expected_balance(self) -> int:
        return self.initial_balance + self.deposit_total - self.withdrawal_total

    def describe(self) -> str:
        return (
            f"final balance={self.final_balance} "
            f"(initial {self.initial_balance}, {self.deposit_count} deposits totalling {self.deposit_total}, "
            f"{self.withdrawal_count} withdrawals totalling {self.withdrawal_total}) "
            f"in {self.elapsed_seconds:.2f}s"
        )
