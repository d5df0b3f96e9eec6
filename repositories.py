from abc import ABC, abstractmethod
from typing import Dict, List
import threading
from models import ActorRole, TransactionEvent


class EventRepository(ABC):
    @abstractmethod
    def record(self, event: TransactionEvent) -> None:
        """Store a completed transaction event."""
        pass

    @abstractmethod
    def list_events(self) -> List[TransactionEvent]:
        """Get all events ordered by sequence number."""
        pass

    @abstractmethod
    def totals(self) -> Dict[ActorRole, int]:
        """Get the summed amount per actor role."""
        pass

    @abstractmethod
    def count(self, role: ActorRole) -> int:
        """Get number of events recorded for a role."""
        pass


class InMemoryEventRepository(EventRepository):
    def __init__(self):
        self.events: List[TransactionEvent] = []
        self.lock = threading.Lock()

    def record(self, event: TransactionEvent) -> None:
        with self.lock:
            self.events.append(event)

    def list_events(self) -> List[TransactionEvent]:
        # Actors append after leaving the account lock, so arrival order may differ
        with self.lock:
            return sorted(self.events, key=lambda e: e.sequence)

    def totals(self) -> Dict[ActorRole, int]:
        result = {role: 0 for role in ActorRole}
        with self.lock:
            for event in self.events:
                result[event.role] += event.amount
        return result

    def count(self, role: ActorRole) -> int:
        with self.lock:
            return sum(1 for event in self.events if event.role == role)
