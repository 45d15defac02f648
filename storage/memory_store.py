"""In-memory calendar store."""
import copy
import logging
import uuid
from datetime import datetime
from typing import Dict, List

from processor.models import StoreRecord
from storage.calendar_store import CalendarStore

logger = logging.getLogger(__name__)


class InMemoryCalendarStore(CalendarStore):
    """Dictionary-backed store; records are copied in and out."""

    def __init__(self, calendar_id: str = 'default'):
        self.calendar_id = calendar_id
        self.records: Dict[str, StoreRecord] = {}

    def find_records(
        self,
        window_start: datetime,
        window_end: datetime
    ) -> List[StoreRecord]:
        return [
            copy.deepcopy(record) for record in self.records.values()
            if record.overlaps(window_start, window_end)
        ]

    def create_record(self) -> StoreRecord:
        return StoreRecord(record_id=uuid.uuid4().hex, calendar_id=self.calendar_id)

    def save(self, record: StoreRecord) -> None:
        self.records[record.record_id] = copy.deepcopy(record)
        logger.debug(f"Saved record {record.record_id}")
