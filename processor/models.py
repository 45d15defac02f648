"""Data models for calendar event import."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class RawAttribute:
    """Textual value of a calendar property plus its parameters."""
    value: str
    params: Dict[str, str] = field(default_factory=dict)

    def param(self, name: str) -> Optional[str]:
        """Look up a parameter by name, ignoring case."""
        for key, value in self.params.items():
            if key.upper() == name.upper():
                return value
        return None


@dataclass
class RawEvent:
    """Source event as produced by the feed parser."""
    anchor: str
    attributes: Dict[str, RawAttribute]

    def component(self, name: str) -> Optional[RawAttribute]:
        return self.attributes.get(name.upper())


@dataclass(frozen=True)
class CalendarContext:
    """Timezone identifiers declared by the enclosing calendar, in order."""
    timezones: Tuple[str, ...] = ()


@dataclass
class ParsedCalendar:
    """Result of parsing one calendar feed."""
    context: CalendarContext
    events: List[RawEvent]


@dataclass(frozen=True)
class GeoPoint:
    """Latitude/longitude pair in degrees."""
    latitude: float
    longitude: float


@dataclass
class EventDraft:
    """Normalized, store-agnostic projection of one source event."""
    anchor: str
    notes: str
    start: datetime
    title: Optional[str] = None
    location: Optional[str] = None
    url: Optional[str] = None
    end: Optional[datetime] = None
    geo: Optional[GeoPoint] = None


@dataclass
class StoreRecord:
    """Mutable record held by a calendar store."""
    record_id: str
    calendar_id: str
    title: Optional[str] = None
    notes: Optional[str] = None
    location: Optional[str] = None
    url: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    geo: Optional[GeoPoint] = None

    def overlaps(self, window_start: datetime, window_end: datetime) -> bool:
        """
        Check whether the record's time span touches [window_start, window_end).

        A record without an end is treated as a point at its start.
        """
        if self.start is None:
            return False
        end = self.end or self.start
        return self.start < window_end and end >= window_start


@dataclass
class ImportResult:
    """Outcome of importing a single source event."""
    anchor: str
    status: str
    record_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in ('created', 'updated')

    def to_dict(self) -> dict:
        return {
            'anchor': self.anchor,
            'status': self.status,
            'record_id': self.record_id,
            'error': self.error
        }


@dataclass
class ProcessedBatch:
    """Drafts mapped from a batch, plus the events that were rejected."""
    drafts: List[EventDraft]
    rejected: List[ImportResult]


@dataclass
class SyncResult:
    """Result of sync operation."""
    created: int
    updated: int
    failed: int
    results: List[ImportResult]
    errors: list[str]
