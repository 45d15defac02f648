"""Capability interface for calendar stores."""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from processor.models import StoreRecord


class CalendarStore(ABC):
    """Store that holds calendar records for a default destination."""

    @abstractmethod
    def find_records(
        self,
        window_start: datetime,
        window_end: datetime
    ) -> List[StoreRecord]:
        """Return records whose time span overlaps [window_start, window_end)."""

    @abstractmethod
    def create_record(self) -> StoreRecord:
        """Return a fresh, empty record bound to the default destination."""

    @abstractmethod
    def save(self, record: StoreRecord) -> None:
        """Persist a created or modified record."""
