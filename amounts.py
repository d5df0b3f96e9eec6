"""Amount sources for the deposit and withdraw actors."""

import random
import threading
from collections import deque
from typing import Iterable, Optional

from pydantic import ValidationError

from errors import AmountsExhausted, InvalidAmountError
from models import AmountRange


class RandomAmountSource:
    """Uniform integer amounts in ``[low, high]``, optionally seeded."""

    def __init__(self, low: int = 1, high: int = 10, seed: Optional[int] = None):
        try:
            self.range = AmountRange(low=low, high=high)
        except ValidationError as e:
            raise InvalidAmountError(f"Invalid amount range [{low}, {high}]: {e}") from e
        self._rng = random.Random(seed)
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            return self._rng.randint(self.range.low, self.range.high)


class ScriptedAmountSource:
    """Hands out a fixed sequence of amounts, then raises ``AmountsExhausted``."""

    def __init__(self, amounts: Iterable[int]):
        self._amounts = deque(amounts)
        for amount in self._amounts:
            if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
                raise InvalidAmountError(f"Scripted amounts must be positive integers, got {amount!r}")
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            if not self._amounts:
                raise AmountsExhausted("No scripted amounts left")
            return self._amounts.popleft()

    def remaining(self) -> int:
        with self._lock:
            return len(self._amounts)
